from flask import Blueprint

fleet_bp = Blueprint('fleet', __name__, url_prefix='/api/fleet')

from charter.api.fleet import listings, booking
