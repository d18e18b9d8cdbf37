from flask import current_app, request
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import IntegrityError

from charter.api.auth import auth_bp
from charter.api.auth.schemas import AuthSchemas
from charter.extensions import db
from charter.models import User
from charter.models.enums import UserRole
from charter.utils.api_response import APIResponse


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Register a new customer account

    Request Body:
        {
            "email": "jane@example.com",
            "password": "SecurePass123",
            "firstName": "Jane",
            "lastName": "Doe",
            "phone": "+971501234567" (optional)
        }

    Returns:
        201: User created with access token
        400: Validation error
        409: Email already registered
    """
    is_valid, errors, cleaned_data = AuthSchemas.validate_registration(request.get_json(silent=True))
    if not is_valid:
        return APIResponse.validation_error(errors)

    if User.query.filter_by(email=cleaned_data['email']).first():
        return APIResponse.error('An account with this email already exists', status_code=409)

    user = User(
        email=cleaned_data['email'],
        first_name=cleaned_data['first_name'],
        last_name=cleaned_data['last_name'],
        phone=cleaned_data.get('phone'),
        role=UserRole.CUSTOMER,
    )
    user.set_password(cleaned_data['password'])
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return APIResponse.error('An account with this email already exists', status_code=409)

    current_app.logger.info(f"New user registered: {user.id}")
    return APIResponse.created({
        'user': user.to_dict(),
        'accessToken': create_access_token(identity=user.id),
    }, 'Registration successful')
