from datetime import datetime, timezone

from flask import current_app, request
from flask_jwt_extended import create_access_token

from charter.api.auth import auth_bp
from charter.api.auth.schemas import AuthSchemas
from charter.extensions import db
from charter.models import User
from charter.utils.api_response import APIResponse
from charter.utils.decorators import login_required


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Login with email and password

    Returns:
        200: Login successful with access token
        400: Validation error
        401: Invalid credentials
    """
    is_valid, errors, cleaned_data = AuthSchemas.validate_login(request.get_json(silent=True))
    if not is_valid:
        return APIResponse.validation_error(errors)

    user = User.query.filter_by(email=cleaned_data['email']).first()
    if not user or not user.check_password(cleaned_data['password']):
        current_app.logger.info(f"Failed login attempt for {cleaned_data['email']}")
        return APIResponse.unauthorized('Invalid email or password')

    if not user.is_active:
        return APIResponse.forbidden('Your account has been deactivated. Please contact support.')

    user.last_login = datetime.now(timezone.utc)
    db.session.commit()

    return APIResponse.success({
        'user': user.to_dict(),
        'accessToken': create_access_token(identity=user.id),
    }, 'Login successful')


@auth_bp.route('/me', methods=['GET'])
@login_required
def me(current_user):
    return APIResponse.success(current_user.to_dict())
