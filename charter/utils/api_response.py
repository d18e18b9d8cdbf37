from flask import jsonify


class APIResponse:
    """Standardized API response format"""

    @staticmethod
    def success(data=None, message=None, status_code=200):
        response = {
            'success': True,
            'message': message or 'Operation successful'
        }
        if data is not None:
            response['data'] = data
        return jsonify(response), status_code

    @staticmethod
    def created(data=None, message=None):
        return APIResponse.success(data, message or 'Created successfully', status_code=201)

    @staticmethod
    def error(message, errors=None, status_code=400):
        response = {
            'success': False,
            'error': message
        }
        if errors:
            response['errors'] = errors
        return jsonify(response), status_code

    @staticmethod
    def validation_error(errors, message="Validation failed"):
        return APIResponse.error(message, errors=errors, status_code=400)

    @staticmethod
    def unauthorized(message="Unauthorized access"):
        return APIResponse.error(message, status_code=401)

    @staticmethod
    def forbidden(message="Forbidden"):
        return APIResponse.error(message, status_code=403)
