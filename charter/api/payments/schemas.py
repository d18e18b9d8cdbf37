"""
Payment request schemas

Amount and currency rules live in the orchestrator; these only check shape.
"""
from typing import Any, Dict, Optional, Tuple

from charter.models.enums import IntentStatus
from charter.utils.validation import Validator

INTENT_STATUSES = [s.value for s in IntentStatus]


class PaymentSchemas:

    @staticmethod
    def validate_create(data: Dict[str, Any]) -> Tuple[bool, Optional[Dict], Optional[Dict]]:
        errors = {}
        data = data or {}

        if data.get('amount') is None:
            errors['amount'] = 'Amount is required'
        if not data.get('currency'):
            errors['currency'] = 'Currency is required'
        if not data.get('gatewayId'):
            errors['gatewayId'] = 'Payment gateway is required'
        booking_id = Validator.parse_int(data.get('bookingId'), minimum=1)
        if booking_id is None:
            errors['bookingId'] = 'Booking ID is required'
        metadata = data.get('metadata')
        if metadata is not None and not isinstance(metadata, dict):
            errors['metadata'] = 'Metadata must be an object'

        if errors:
            return False, errors, None
        return True, None, {
            'amount': data['amount'],
            'currency': data['currency'],
            'gateway_id': str(data['gatewayId']),
            'booking_id': booking_id,
            'metadata': metadata or {},
        }

    @staticmethod
    def validate_confirm(data: Dict[str, Any]) -> Tuple[bool, Optional[Dict], Optional[Dict]]:
        errors = {}
        data = data or {}

        intent_id = data.get('paymentIntentId') or data.get('paymentId')
        if not intent_id:
            errors['paymentIntentId'] = 'Payment ID is required'
        status = str(data.get('status') or '').lower()
        if status not in INTENT_STATUSES:
            errors['status'] = f"Status must be one of: {', '.join(INTENT_STATUSES)}"

        if errors:
            return False, errors, None
        return True, None, {
            'intent_id': str(intent_id),
            'status': status,
            'token': data.get('token') or None,
        }
