"""
Booking validation schemas
"""
from typing import Any, Dict, Optional, Tuple

from charter.models.enums import BookingStatus
from charter.utils.validation import Validator

MAX_DURATION_HOURS = 24 * 7
MAX_PARTY_SIZE = 500


class BookingSchemas:

    @staticmethod
    def validate_booking(data: Dict[str, Any], require_resource: bool = True) -> Tuple[bool, Optional[Dict], Optional[Dict]]:
        """
        Validate a booking request

        Returns:
            Tuple of (is_valid, errors, cleaned_data)
        """
        errors = {}
        cleaned = {}
        data = data or {}

        if require_resource:
            resource_id = Validator.parse_int(data.get('resourceId', data.get('tourId')), minimum=1)
            if resource_id is None:
                errors['resourceId'] = 'Resource is required'
            else:
                cleaned['resource_id'] = resource_id

        day = Validator.parse_date(data.get('date'))
        if day is None:
            errors['date'] = 'Date must be in YYYY-MM-DD format'
        else:
            cleaned['day'] = day

        start_time = Validator.parse_time(data.get('startTime', data.get('time')))
        if start_time is None:
            errors['startTime'] = 'Start time must be in HH:MM format'
        else:
            cleaned['start_time'] = start_time

        duration = Validator.parse_int(data.get('duration', 1), minimum=1, maximum=MAX_DURATION_HOURS)
        if duration is None:
            errors['duration'] = 'Duration must be a whole number of hours'
        else:
            cleaned['duration'] = duration

        party_size = Validator.parse_int(data.get('partySize', data.get('guests', 1)), minimum=1,
                                         maximum=MAX_PARTY_SIZE)
        if party_size is None:
            errors['partySize'] = 'Party size must be at least 1'
        else:
            cleaned['party_size'] = party_size

        contact_email = Validator.sanitize_input(data.get('contactEmail'), max_length=120)
        if contact_email and not Validator.validate_email(contact_email):
            errors['contactEmail'] = 'Invalid email format'
        cleaned['contact_email'] = contact_email or None
        cleaned['contact_name'] = Validator.sanitize_input(data.get('contactName'), max_length=120) or None
        cleaned['contact_phone'] = Validator.sanitize_input(data.get('contactPhone'), max_length=20) or None
        cleaned['special_requests'] = Validator.sanitize_input(data.get('specialRequests'), max_length=2000) or None

        if errors:
            return False, errors, None
        return True, None, cleaned

    @staticmethod
    def validate_update(data: Dict[str, Any]) -> Tuple[bool, Optional[Dict], Optional[Dict]]:
        errors = {}
        cleaned = {}
        data = data or {}

        if 'status' in data:
            status = str(data.get('status') or '').lower()
            if status not in [s.value for s in BookingStatus]:
                errors['status'] = 'Invalid booking status'
            else:
                cleaned['status'] = status

        if 'specialRequests' in data:
            cleaned['special_requests'] = Validator.sanitize_input(data.get('specialRequests'), max_length=2000)

        if not errors and not cleaned:
            errors['status'] = 'Nothing to update'

        if errors:
            return False, errors, None
        return True, None, cleaned
