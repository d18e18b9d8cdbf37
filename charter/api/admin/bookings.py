from flask import request

from charter.api.admin import admin_bp
from charter.services.booking import get_booking_service
from charter.utils.api_response import APIResponse
from charter.utils.decorators import admin_required
from charter.utils.validation import Validator


@admin_bp.route('/bookings/stats', methods=['GET'])
@admin_required
def booking_stats(current_user):
    """
    Booking counts and confirmed revenue

    Query Parameters:
        startDate, endDate: YYYY-MM-DD (optional, inclusive)
    """
    errors = {}
    dates = {}
    for param in ('startDate', 'endDate'):
        value = request.args.get(param)
        if value:
            dates[param] = Validator.parse_date(value)
            if dates[param] is None:
                errors[param] = 'Date must be in YYYY-MM-DD format'
    if errors:
        return APIResponse.validation_error(errors)

    stats = get_booking_service().stats(dates.get('startDate'), dates.get('endDate'))
    return APIResponse.success(stats)
