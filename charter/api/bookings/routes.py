from flask import request

from charter.api.bookings import bookings_bp
from charter.api.bookings.schemas import BookingSchemas
from charter.services.booking import get_booking_service
from charter.utils.api_response import APIResponse
from charter.utils.decorators import login_required


@bookings_bp.route('', methods=['POST'])
@login_required
def create_booking(current_user):
    """
    Book a tour or vehicle

    Request Body:
    {
        "resourceId": 3,
        "date": "2026-12-01",
        "startTime": "10:00",
        "duration": 2,
        "partySize": 4
    }
    """
    is_valid, errors, cleaned = BookingSchemas.validate_booking(request.get_json(silent=True))
    if not is_valid:
        return APIResponse.validation_error(errors)

    booking = get_booking_service().create_booking(current_user, **cleaned)
    return APIResponse.created(booking.to_dict(), 'Booking created')


@bookings_bp.route('', methods=['GET'])
@login_required
def list_bookings(current_user):
    bookings = get_booking_service().list_bookings(current_user, status=request.args.get('status'))
    return APIResponse.success([b.to_dict() for b in bookings])


@bookings_bp.route('/<int:booking_id>', methods=['GET'])
@login_required
def get_booking(current_user, booking_id):
    booking = get_booking_service().get_booking(booking_id, current_user)
    return APIResponse.success(booking.to_dict())


@bookings_bp.route('/<int:booking_id>', methods=['PUT'])
@login_required
def update_booking(current_user, booking_id):
    is_valid, errors, cleaned = BookingSchemas.validate_update(request.get_json(silent=True))
    if not is_valid:
        return APIResponse.validation_error(errors)

    booking = get_booking_service().update_booking(booking_id, current_user, **cleaned)
    return APIResponse.success(booking.to_dict(), 'Booking updated')
