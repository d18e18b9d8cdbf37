"""
Authentication validation schemas
"""
from typing import Any, Dict, Optional, Tuple

from charter.utils.validation import Validator


class AuthSchemas:
    """Validation schemas for authentication endpoints"""

    @staticmethod
    def validate_registration(data: Dict[str, Any]) -> Tuple[bool, Optional[Dict[str, str]], Optional[Dict[str, Any]]]:
        """
        Validate user registration data

        Returns:
            Tuple of (is_valid, errors, cleaned_data)
        """
        errors = {}
        cleaned_data = {}
        data = data or {}

        email = str(data.get('email') or '').strip().lower()
        if not email:
            errors['email'] = 'Email is required'
        elif not Validator.validate_email(email):
            errors['email'] = 'Invalid email format'
        else:
            cleaned_data['email'] = email

        password = data.get('password') or ''
        if not password:
            errors['password'] = 'Password is required'
        elif len(password) < 8:
            errors['password'] = 'Password must be at least 8 characters'
        elif not (any(c.isalpha() for c in password) and any(c.isdigit() for c in password)):
            errors['password'] = 'Password must contain at least one letter and one number'
        else:
            cleaned_data['password'] = password

        for field, key in (('firstName', 'first_name'), ('lastName', 'last_name')):
            value = Validator.sanitize_input(data.get(field), max_length=50)
            if not value:
                errors[field] = f"{'First' if field == 'firstName' else 'Last'} name is required"
            else:
                cleaned_data[key] = value

        phone = Validator.sanitize_input(data.get('phone'), max_length=20)
        if phone:
            if not Validator.validate_phone(phone):
                errors['phone'] = 'Invalid phone number'
            else:
                cleaned_data['phone'] = phone

        return len(errors) == 0, errors or None, cleaned_data if not errors else None

    @staticmethod
    def validate_login(data: Dict[str, Any]) -> Tuple[bool, Optional[Dict[str, str]], Optional[Dict[str, Any]]]:
        errors = {}
        data = data or {}

        email = str(data.get('email') or '').strip().lower()
        password = data.get('password') or ''
        if not email:
            errors['email'] = 'Email is required'
        if not password:
            errors['password'] = 'Password is required'

        if errors:
            return False, errors, None
        return True, None, {'email': email, 'password': password}
