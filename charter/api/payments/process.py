from flask import current_app, request

from charter.api.payments import payment_bp as bp
from charter.api.payments.schemas import PaymentSchemas
from charter.errors import NotFoundError
from charter.services.payment import get_payment_orchestrator
from charter.utils.api_response import APIResponse
from charter.utils.decorators import login_required

# ==================== GATEWAYS ====================

@bp.route('/gateways', methods=['GET'])
def list_gateways():
    gateways = get_payment_orchestrator().list_gateways()
    if not gateways:
        return APIResponse.success([], 'Online payment is currently unavailable. Please contact us to complete your booking.')
    return APIResponse.success(gateways)


# ==================== PAYMENT INTENT ENDPOINTS ====================

@bp.route('/create', methods=['POST'])
@login_required
def create_payment(current_user):
    """
    Open a payment with the chosen gateway

    Request Body:
    {
        "amount": 100.00,
        "currency": "AED",
        "gatewayId": "stripe",
        "bookingId": 42,
        "metadata": {}
    }
    """
    is_valid, errors, cleaned = PaymentSchemas.validate_create(request.get_json(silent=True))
    if not is_valid:
        return APIResponse.validation_error(errors)

    orchestrator = get_payment_orchestrator()
    booking = orchestrator.bookings.get(cleaned['booking_id'])
    if booking is None or (booking.user_id != current_user.id and not current_user.is_admin):
        raise NotFoundError('Booking not found')

    intent, client_secret = orchestrator.create_intent(**cleaned)
    current_app.logger.info(f"User {current_user.id} opened payment {intent.id}")
    return APIResponse.created(intent.to_dict(client_secret=client_secret), 'Payment created')


@bp.route('/confirm', methods=['POST'])
@login_required
def confirm_payment(current_user):
    """
    Report the outcome of a client-side confirmation

    Request Body:
    {
        "paymentIntentId": "pi_...",
        "status": "completed",
        "token": "card nonce / approval token" (optional)
    }
    """
    is_valid, errors, cleaned = PaymentSchemas.validate_confirm(request.get_json(silent=True))
    if not is_valid:
        return APIResponse.validation_error(errors)

    orchestrator = get_payment_orchestrator()
    intent = orchestrator.get_intent(cleaned['intent_id'])
    if intent.booking.user_id != current_user.id and not current_user.is_admin:
        raise NotFoundError('Payment not found')

    intent = orchestrator.confirm_intent(cleaned['intent_id'], cleaned['status'], token=cleaned['token'])
    return APIResponse.success(intent.to_dict(), 'Payment updated')
