from flask import request

from charter.api.bookings.schemas import BookingSchemas
from charter.api.fleet import fleet_bp
from charter.services.booking import get_booking_service
from charter.utils.api_response import APIResponse
from charter.utils.decorators import login_required


@fleet_bp.route('/<int:vehicle_id>/book', methods=['POST'])
@login_required
def book_vehicle(current_user, vehicle_id):
    """Availability-checked booking of one fleet vehicle"""
    is_valid, errors, cleaned = BookingSchemas.validate_booking(request.get_json(silent=True),
                                                                require_resource=False)
    if not is_valid:
        return APIResponse.validation_error(errors)

    booking = get_booking_service().create_booking(current_user, resource_id=vehicle_id, **cleaned)
    return APIResponse.created(booking.to_dict(), 'Booking created')
