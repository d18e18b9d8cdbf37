from flask import Blueprint

payment_bp = Blueprint('payments', __name__, url_prefix='/api/payments')

from charter.api.payments import process, refunds, status, webhook
