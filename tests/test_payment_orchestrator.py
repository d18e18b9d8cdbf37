import os
from decimal import Decimal

import pytest

from charter.errors import (ConflictError, GatewayError, GatewayUnavailable, IllegalTransition,
                            NotFoundError, NotificationError, ValidationError)
from charter.models import AuditLog, AvailabilitySlot, Booking, PaymentEvent, PaymentIntent
from charter.models.enums import BookingStatus, IntentStatus, PaymentStatus


def _events(db, intent_id):
    return [e.status for e in db.session.query(PaymentEvent).filter_by(intent_id=intent_id).order_by(PaymentEvent.id)]


# ==================== createIntent ====================

def test_create_intent_echoes_input(orchestrator, fake_gateway, booking, db):
    intent, client_secret = orchestrator.create_intent(Decimal('100.00'), 'AED', 'stripe', 42, {'source': 'web'})

    assert intent.status == IntentStatus.PENDING
    assert intent.amount == Decimal('100.00')
    assert intent.currency == 'AED'
    assert intent.gateway_id == 'stripe'
    assert intent.booking_id == 42
    assert intent.payment_metadata == {'source': 'web'}
    assert client_secret == f"{intent.id}_secret"

    stored = db.session.get(PaymentIntent, intent.id)
    assert stored is not None
    assert _events(db, intent.id) == [IntentStatus.PENDING]


@pytest.mark.parametrize('currency', ['AED', 'USD', 'EUR', 'GBP'])
def test_create_intent_accepts_supported_currencies(orchestrator, fake_gateway, booking, currency):
    intent, _ = orchestrator.create_intent('250.50', currency, 'stripe', booking.id)
    assert intent.currency == currency
    assert intent.amount == Decimal('250.50')


@pytest.mark.parametrize('amount', [0, -5, '0.00', 'abc', None, True, '1.005'])
def test_create_intent_rejects_bad_amount(orchestrator, fake_gateway, booking, amount, db):
    with pytest.raises(ValidationError):
        orchestrator.create_intent(amount, 'AED', 'stripe', booking.id)
    assert fake_gateway.created == []
    assert db.session.query(PaymentIntent).count() == 0


@pytest.mark.parametrize('currency', ['AE', 'DOLLARS', '12A', None, 'JPY'])
def test_create_intent_rejects_bad_currency(orchestrator, fake_gateway, booking, currency):
    with pytest.raises(ValidationError):
        orchestrator.create_intent('10.00', currency, 'stripe', booking.id)
    assert fake_gateway.created == []


def test_create_intent_rejects_amount_above_limit(orchestrator, fake_gateway, booking):
    with pytest.raises(ValidationError):
        orchestrator.create_intent('1000000.01', 'AED', 'stripe', booking.id)


def test_create_intent_unknown_or_disabled_gateway(orchestrator, booking):
    with pytest.raises(GatewayUnavailable):
        orchestrator.create_intent('10.00', 'AED', 'bitcoin', booking.id)
    # Square is known but has no credentials in the test config
    with pytest.raises(GatewayUnavailable):
        orchestrator.create_intent('10.00', 'AED', 'square', booking.id)


def test_create_intent_missing_booking(orchestrator, fake_gateway, booking):
    with pytest.raises(NotFoundError):
        orchestrator.create_intent('10.00', 'AED', 'stripe', 999)
    assert fake_gateway.created == []


def test_create_intent_for_cancelled_booking(orchestrator, fake_gateway, booking, db):
    booking.status = BookingStatus.CANCELLED
    db.session.commit()
    with pytest.raises(ConflictError):
        orchestrator.create_intent('10.00', 'AED', 'stripe', booking.id)


def test_gateway_error_leaves_no_intent(orchestrator, fake_gateway, booking, db):
    fake_gateway.error = GatewayError('Stripe', 'failed to create payment intent')
    with pytest.raises(GatewayError) as exc_info:
        orchestrator.create_intent('10.00', 'AED', 'stripe', booking.id)

    assert exc_info.value.status_code == 502
    assert db.session.query(PaymentIntent).count() == 0
    assert db.session.query(PaymentEvent).count() == 0


def test_timeout_passed_to_adapter(orchestrator, fake_gateway, booking):
    orchestrator.create_intent('10.00', 'AED', 'stripe', booking.id, timeout=2.5)
    assert fake_gateway.created[0]['timeout'] == 2.5


# ==================== confirmIntent ====================

def test_create_then_complete_confirms_booking(orchestrator, fake_gateway, booking, dispatcher, db):
    intent, _ = orchestrator.create_intent(Decimal('100.00'), 'AED', 'stripe', 42, {})
    assert intent.status == IntentStatus.PENDING

    orchestrator.confirm_intent(intent.id, 'completed')

    booking = db.session.get(Booking, 42)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_status == PaymentStatus.PAID
    assert booking.confirmed_at is not None

    intent = db.session.get(PaymentIntent, intent.id)
    assert intent.status == IntentStatus.COMPLETED
    assert intent.completed_at is not None
    assert intent.receipt_url.startswith('/receipts/')
    assert dispatcher.templates() == ['payment_confirmation']


def test_receipt_file_written_on_completion(orchestrator, make_intent, dispatcher, app):
    intent = make_intent()
    orchestrator.confirm_intent(intent.id, IntentStatus.COMPLETED)

    filename = intent.receipt_url.rsplit('/', 1)[-1]
    assert os.path.exists(os.path.join(app.config['RECEIPTS_DIR'], filename))


def test_confirm_is_idempotent(orchestrator, make_intent, dispatcher, db):
    intent = make_intent()

    orchestrator.confirm_intent(intent.id, 'completed')
    first_confirmed_at = db.session.get(Booking, 42).confirmed_at
    orchestrator.confirm_intent(intent.id, 'completed')

    assert dispatcher.templates() == ['payment_confirmation']
    assert _events(db, intent.id) == [IntentStatus.PENDING, IntentStatus.COMPLETED]
    assert db.session.get(Booking, 42).confirmed_at == first_confirmed_at


def test_processing_then_completed(orchestrator, make_intent, dispatcher, db):
    intent = make_intent()
    orchestrator.confirm_intent(intent.id, 'processing')
    assert db.session.get(Booking, 42).status == BookingStatus.PENDING
    assert dispatcher.sent == []

    orchestrator.confirm_intent(intent.id, 'completed')
    assert _events(db, intent.id) == [IntentStatus.PENDING, IntentStatus.PROCESSING, IntentStatus.COMPLETED]
    assert db.session.get(Booking, 42).status == BookingStatus.CONFIRMED


@pytest.mark.parametrize('terminal,requested', [
    (IntentStatus.COMPLETED, IntentStatus.PENDING),
    (IntentStatus.COMPLETED, IntentStatus.PROCESSING),
    (IntentStatus.COMPLETED, IntentStatus.FAILED),
    (IntentStatus.REFUNDED, IntentStatus.PENDING),
    (IntentStatus.REFUNDED, IntentStatus.PROCESSING),
    (IntentStatus.REFUNDED, IntentStatus.COMPLETED),
    (IntentStatus.REFUNDED, IntentStatus.FAILED),
    (IntentStatus.FAILED, IntentStatus.COMPLETED),
    (IntentStatus.FAILED, IntentStatus.PROCESSING),
    (IntentStatus.PROCESSING, IntentStatus.PENDING),
])
def test_illegal_transitions_rejected(orchestrator, make_intent, dispatcher, db, terminal, requested):
    intent = make_intent(status=terminal)

    with pytest.raises(IllegalTransition) as exc_info:
        orchestrator.confirm_intent(intent.id, requested)

    assert exc_info.value.status_code == 409
    assert db.session.get(PaymentIntent, intent.id).status == terminal
    assert dispatcher.sent == []


def test_failed_sends_failure_notice_without_booking_change(orchestrator, make_intent, dispatcher, db):
    intent = make_intent()
    orchestrator.confirm_intent(intent.id, 'failed')

    booking = db.session.get(Booking, 42)
    assert booking.status == BookingStatus.PENDING
    assert booking.payment_status == PaymentStatus.PENDING
    assert db.session.get(PaymentIntent, intent.id).error_message == 'Payment failed'
    assert dispatcher.templates() == ['payment_failure']


def test_refund_marks_payment_refunded_only(orchestrator, make_intent, dispatcher, db):
    intent = make_intent()
    orchestrator.confirm_intent(intent.id, 'completed')
    orchestrator.confirm_intent(intent.id, 'refunded')

    booking = db.session.get(Booking, 42)
    assert booking.payment_status == PaymentStatus.REFUNDED
    assert booking.status == BookingStatus.CONFIRMED
    assert dispatcher.templates() == ['payment_confirmation', 'refund']


def test_refund_can_cancel_booking_and_release_slot(orchestrator, make_intent, dispatcher, db, helicopter, booking):
    slot = AvailabilitySlot(resource_id=helicopter.id, date=booking.date, time='10:00',
                            max_capacity=6, current_bookings=2)
    db.session.add(slot)
    db.session.commit()
    orchestrator.settings.refund_cancels_booking = True

    intent = make_intent(status=IntentStatus.COMPLETED)
    orchestrator.confirm_intent(intent.id, 'refunded')

    booking = db.session.get(Booking, 42)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.payment_status == PaymentStatus.REFUNDED
    assert db.session.get(AvailabilitySlot, slot.id).current_bookings == 0
    assert dispatcher.templates() == ['refund', 'booking_cancellation']
    log = db.session.query(AuditLog).filter_by(action='booking_cancelled').one()
    assert log.entity_id == '42'
    assert 'refund' in log.description


def test_completion_does_not_reopen_cancelled_booking(orchestrator, make_intent, dispatcher, db, booking):
    intent = make_intent(status=IntentStatus.PROCESSING)
    booking.status = BookingStatus.CANCELLED
    db.session.commit()

    orchestrator.confirm_intent(intent.id, 'completed')

    booking = db.session.get(Booking, 42)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.payment_status == PaymentStatus.PAID
    assert db.session.get(PaymentIntent, intent.id).status == IntentStatus.COMPLETED


def test_unknown_intent_and_status(orchestrator, make_intent):
    with pytest.raises(NotFoundError):
        orchestrator.confirm_intent('pi_missing', 'completed')

    intent = make_intent()
    with pytest.raises(ValidationError):
        orchestrator.confirm_intent(intent.id, 'settled')


def test_verified_confirmation_uses_gateway_status(orchestrator, fake_gateway, make_intent, dispatcher, db):
    intent = make_intent(intent_id='stripe_test_9')
    fake_gateway.confirm_status = IntentStatus.PROCESSING

    result = orchestrator.confirm_intent(intent.id, 'completed', verify=True)

    assert result.status == IntentStatus.PROCESSING
    assert db.session.get(Booking, 42).status == BookingStatus.PENDING
    assert dispatcher.sent == []


def test_notification_failure_keeps_committed_state(orchestrator, make_intent, dispatcher, db):
    intent = make_intent()
    dispatcher.error = NotificationError('Failed to send notification e-mail')

    with pytest.raises(NotificationError):
        orchestrator.confirm_intent(intent.id, 'completed')

    assert db.session.get(PaymentIntent, intent.id).status == IntentStatus.COMPLETED
    assert db.session.get(Booking, 42).status == BookingStatus.CONFIRMED


def test_stale_swap_is_retried_against_fresh_status(orchestrator, make_intent, dispatcher, db):
    """A concurrent completion between read and swap turns the second call into a duplicate"""
    intent = make_intent()
    original = orchestrator.intents.compare_and_set_status
    calls = []

    def racing_swap(intent_id, expected, new, **fields):
        if not calls:
            calls.append(1)
            original(intent_id, expected, new, **fields)
            orchestrator.intents.record_event(intent_id, new, 'webhook')
            db.session.commit()
            return False
        return original(intent_id, expected, new, **fields)

    orchestrator.intents.compare_and_set_status = racing_swap
    result = orchestrator.confirm_intent(intent.id, 'completed')

    assert result.status == IntentStatus.COMPLETED
    assert _events(db, intent.id) == [IntentStatus.PENDING, IntentStatus.COMPLETED]
    assert dispatcher.sent == []


# ==================== receipts & gateways ====================

def test_receipt_requires_completed_payment(orchestrator, make_intent):
    intent = make_intent()
    with pytest.raises(ValidationError):
        orchestrator.generate_receipt(intent.id)


def test_list_gateways_public_fields(orchestrator):
    gateways = orchestrator.list_gateways()

    assert [g['id'] for g in gateways] == ['stripe', 'paypal']
    stripe_info = gateways[0]
    assert stripe_info['publicKey'] == 'pk_test_123'
    assert 'secretKey' not in stripe_info
    assert stripe_info['supportedCurrencies'] == ['AED', 'USD', 'EUR', 'GBP']


def test_test_gateway_pings_adapter(orchestrator, fake_gateway):
    assert orchestrator.test_gateway('stripe')['connected'] is True

    fake_gateway.error = GatewayError('Stripe', 'authentication with payment provider failed')
    with pytest.raises(GatewayError):
        orchestrator.test_gateway('stripe')


# ==================== refunds ====================

def test_refund_intent_refunds_through_gateway_once(orchestrator, fake_gateway, make_intent, dispatcher, db):
    intent = make_intent(status=IntentStatus.COMPLETED)

    refunded = orchestrator.refund_intent(intent.id, reason='Weather cancellation')
    again = orchestrator.refund_intent(intent.id)

    assert refunded.status == IntentStatus.REFUNDED
    assert again.status == IntentStatus.REFUNDED
    assert len(fake_gateway.refunds) == 1
    assert fake_gateway.refunds[0]['provider_id'] == intent.id
    assert fake_gateway.refunds[0]['amount'] == Decimal('100.00')
    assert fake_gateway.refunds[0]['reason'] == 'Weather cancellation'
    assert _events(db, intent.id) == [IntentStatus.COMPLETED, IntentStatus.REFUNDED]
    assert db.session.get(Booking, 42).payment_status == PaymentStatus.REFUNDED
    assert dispatcher.templates() == ['refund']


def test_refund_intent_requires_completed_payment(orchestrator, fake_gateway, make_intent):
    intent = make_intent()

    with pytest.raises(IllegalTransition):
        orchestrator.refund_intent(intent.id)

    assert fake_gateway.refunds == []


def test_refund_gateway_error_keeps_payment_completed(orchestrator, fake_gateway, make_intent, dispatcher, db):
    intent = make_intent(status=IntentStatus.COMPLETED)
    fake_gateway.error = GatewayError('Stripe', 'refund was not accepted')

    with pytest.raises(GatewayError):
        orchestrator.refund_intent(intent.id)

    assert db.session.get(PaymentIntent, intent.id).status == IntentStatus.COMPLETED
    assert dispatcher.sent == []


def test_list_intents_filters(orchestrator, make_intent):
    make_intent('pi_1', status=IntentStatus.COMPLETED)
    make_intent('pi_2', gateway_id='paypal')

    assert {i.id for i in orchestrator.list_intents()} == {'pi_1', 'pi_2'}
    assert [i.id for i in orchestrator.list_intents('completed')] == ['pi_1']
    assert [i.id for i in orchestrator.list_intents(gateway_id='paypal')] == ['pi_2']
    with pytest.raises(ValidationError):
        orchestrator.list_intents('settled')
