from flask import current_app, request

from charter.api.tours import tours_bp
from charter.api.tours.listings import get_resource_or_404
from charter.extensions import db
from charter.services.availability import AvailabilityService
from charter.utils.api_response import APIResponse
from charter.utils.validation import Validator


@tours_bp.route('/<int:tour_id>/availability', methods=['GET'])
def tour_availability(tour_id):
    """
    Time slots for one day

    Query Parameters:
        date: YYYY-MM-DD
    """
    resource = get_resource_or_404(tour_id, active_only=True)
    day = Validator.parse_date(request.args.get('date'))
    if day is None:
        return APIResponse.validation_error({'date': 'Date must be in YYYY-MM-DD format'})

    service = AvailabilityService.from_config(db.session, current_app.config)
    slots = service.get_slots(resource, day)
    return APIResponse.success({
        'tourId': resource.id,
        'date': day.isoformat(),
        'slots': [slot.to_dict() for slot in slots],
    })


@tours_bp.route('/<int:tour_id>/blocked-dates', methods=['GET'])
def blocked_dates(tour_id):
    resource = get_resource_or_404(tour_id)
    service = AvailabilityService.from_config(db.session, current_app.config)
    return APIResponse.success({'tourId': resource.id, 'blockedDates': service.blocked_dates(resource.id)})
