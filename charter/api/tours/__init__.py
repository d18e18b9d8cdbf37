from flask import Blueprint

tours_bp = Blueprint('tours', __name__, url_prefix='/api/tours')

from charter.api.tours import listings, availability
