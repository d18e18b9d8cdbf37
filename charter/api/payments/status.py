from charter.api.payments import payment_bp as bp
from charter.errors import NotFoundError
from charter.services.payment import get_payment_orchestrator
from charter.utils.api_response import APIResponse
from charter.utils.decorators import login_required


def _owned_intent(orchestrator, intent_id, user):
    intent = orchestrator.get_intent(intent_id)
    if intent.booking.user_id != user.id and not user.is_admin:
        raise NotFoundError('Payment not found')
    return intent


@bp.route('/<string:payment_id>', methods=['GET'])
@login_required
def get_payment(current_user, payment_id):
    intent = _owned_intent(get_payment_orchestrator(), payment_id, current_user)
    data = intent.to_dict()
    data['events'] = [event.to_dict() for event in intent.events]
    return APIResponse.success(data)


@bp.route('/booking/<int:booking_id>', methods=['GET'])
@login_required
def booking_payments(current_user, booking_id):
    orchestrator = get_payment_orchestrator()
    booking = orchestrator.bookings.get(booking_id)
    if booking is None or (booking.user_id != current_user.id and not current_user.is_admin):
        raise NotFoundError('Booking not found')
    return APIResponse.success([i.to_dict() for i in orchestrator.list_for_booking(booking_id)])


@bp.route('/<string:payment_id>/receipt', methods=['POST'])
@login_required
def create_receipt(current_user, payment_id):
    orchestrator = get_payment_orchestrator()
    _owned_intent(orchestrator, payment_id, current_user)
    return APIResponse.success({'receiptUrl': orchestrator.generate_receipt(payment_id)})
