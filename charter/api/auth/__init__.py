"""
Authentication API module
"""
from flask import Blueprint

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

from charter.api.auth import access, registration

__all__ = ['auth_bp']
