"""
Payment Service
Creates gateway intents and drives them through their status lifecycle
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from charter.errors import (CharterError, ConflictError, GatewayUnavailable, IllegalTransition,
                            InternalError, NotFoundError, NotificationError, ValidationError)
from charter.extensions import db
from charter.models import PaymentIntent
from charter.models.enums import BookingStatus, IntentStatus
from charter.repositories import BookingRepository, PaymentIntentRepository
from charter.services.availability import AvailabilityService
from charter.services.booking import announce_cancellation
from charter.services.receipts import ReceiptService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    IntentStatus.PENDING: {IntentStatus.PROCESSING, IntentStatus.COMPLETED, IntentStatus.FAILED},
    IntentStatus.PROCESSING: {IntentStatus.COMPLETED, IntentStatus.FAILED},
    IntentStatus.COMPLETED: {IntentStatus.REFUNDED},
    IntentStatus.FAILED: set(),
    IntentStatus.REFUNDED: set(),
}

CURRENCY_PATTERN = re.compile(r'^[A-Za-z]{3}$')

# Attempts at a status swap before giving up on a contended intent
MAX_TRANSITION_ATTEMPTS = 3


@dataclass
class PaymentSettings:
    min_amount: Decimal = Decimal('0.01')
    max_amount: Decimal = Decimal('1000000')
    supported_currencies: List[str] = field(default_factory=lambda: ['AED', 'USD', 'EUR', 'GBP'])
    verify_confirmations: bool = True
    refund_cancels_booking: bool = False

    @classmethod
    def from_config(cls, config: Mapping) -> 'PaymentSettings':
        return cls(
            min_amount=Decimal(str(config.get('PAYMENT_MIN_AMOUNT', '0.01'))),
            max_amount=Decimal(str(config.get('PAYMENT_MAX_AMOUNT', '1000000'))),
            supported_currencies=[c.upper() for c in config.get('SUPPORTED_CURRENCIES') or []],
            verify_confirmations=bool(config.get('PAYMENT_VERIFY_CONFIRMATIONS', True)),
            refund_cancels_booking=bool(config.get('REFUND_CANCELS_BOOKING', False)),
        )


@dataclass
class TransitionResult:
    intent: PaymentIntent
    changed: bool
    booking_cancelled: bool = False


class PaymentOrchestrator:
    """
    Payment intent lifecycle.

    Every status change is a compare-and-swap on the intent row plus an
    insert into payment_events, committed together with the booking update.
    Notifications and receipts run only after that commit, and only for the
    request that actually moved the status, so redelivered webhooks are no-ops.
    """

    def __init__(self, session, registry, gateways: Dict, intents: PaymentIntentRepository,
                 bookings: BookingRepository, dispatcher=None, receipts=None,
                 availability=None, settings: Optional[PaymentSettings] = None):
        self.session = session
        self.registry = registry
        self.gateways = gateways
        self.intents = intents
        self.bookings = bookings
        self.dispatcher = dispatcher
        self.receipts = receipts
        self.availability = availability
        self.settings = settings or PaymentSettings()

    # ==================== GATEWAYS ====================

    def list_gateways(self) -> List[Dict]:
        return [g.to_public_dict() for g in self.registry.list_enabled()]

    def _adapter(self, gateway_id: str):
        config = self.registry.get(gateway_id)
        if config is None:
            raise GatewayUnavailable(f"Unknown payment gateway '{gateway_id}'")
        if not config.is_enabled:
            raise GatewayUnavailable(f"{config.name} is not available")
        adapter = self.gateways.get(config.id)
        if adapter is None:
            raise GatewayUnavailable(f"{config.name} is not available")
        return config, adapter

    def test_gateway(self, gateway_id: str, timeout: Optional[float] = None) -> Dict:
        """Check that the provider accepts our credentials"""
        config, adapter = self._adapter(gateway_id)
        adapter.ping(timeout=timeout)
        logger.info(f"Connectivity check passed for gateway {config.id}")
        return {'id': config.id, 'name': config.name, 'connected': True, 'testMode': config.test_mode}

    # ==================== VALIDATION ====================

    def _validate_amount(self, amount) -> Decimal:
        if amount is None or isinstance(amount, bool):
            raise ValidationError('Amount is required')
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValidationError('Amount must be a number')
        if not value.is_finite():
            raise ValidationError('Amount must be a number')
        if value <= 0:
            raise ValidationError('Amount must be greater than zero')
        if value.as_tuple().exponent < -2:
            raise ValidationError('Amount cannot have more than two decimal places')
        if value < self.settings.min_amount:
            raise ValidationError(f"Amount must be at least {self.settings.min_amount}")
        if value > self.settings.max_amount:
            raise ValidationError(f"Amount cannot exceed {self.settings.max_amount}")
        return value

    def _validate_currency(self, currency) -> str:
        if not isinstance(currency, str) or not CURRENCY_PATTERN.match(currency):
            raise ValidationError('Currency must be a 3-letter code')
        currency = currency.upper()
        if self.settings.supported_currencies and currency not in self.settings.supported_currencies:
            raise ValidationError(f"Currency {currency} is not supported")
        return currency

    @staticmethod
    def _parse_status(status) -> IntentStatus:
        if isinstance(status, IntentStatus):
            return status
        try:
            return IntentStatus(str(status).lower())
        except ValueError:
            raise ValidationError(f"Invalid payment status '{status}'")

    # ==================== INTENTS ====================

    def create_intent(self, amount, currency, gateway_id, booking_id, metadata=None,
                      timeout: Optional[float] = None) -> Tuple[PaymentIntent, str]:
        """
        Open a charge with the gateway and persist it as a pending intent.

        Returns the intent and the client secret the frontend SDK needs.
        Nothing is stored when the provider call fails.
        """
        amount = self._validate_amount(amount)
        currency = self._validate_currency(currency)
        if metadata is not None and not isinstance(metadata, dict):
            raise ValidationError('Metadata must be an object')

        config, adapter = self._adapter(gateway_id)
        if config.supported_currencies and currency not in config.supported_currencies:
            raise ValidationError(f"{config.name} does not accept {currency}")

        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError('Booking not found')
        if booking.status == BookingStatus.CANCELLED:
            raise ConflictError('Booking has been cancelled')

        charge = adapter.create(amount, currency, booking.id, metadata=metadata, timeout=timeout)

        intent = PaymentIntent(
            id=charge.provider_id,
            booking_id=booking.id,
            gateway_id=config.id,
            amount=amount,
            currency=currency,
            status=IntentStatus.PENDING,
            payment_metadata=metadata or {},
        )
        self.intents.add(intent)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.error(f"Gateway {config.id} returned an already-recorded id {charge.provider_id}")
            raise ConflictError('Payment already exists')

        logger.info(f"Created {config.id} payment {intent.id} for booking {booking.id}: {currency} {amount}")
        return intent, charge.client_secret

    def get_intent(self, intent_id: str) -> PaymentIntent:
        intent = self.intents.get(intent_id)
        if intent is None:
            raise NotFoundError('Payment not found')
        return intent

    def list_for_booking(self, booking_id: int) -> List[PaymentIntent]:
        if self.bookings.get(booking_id) is None:
            raise NotFoundError('Booking not found')
        return self.intents.list_for_booking(booking_id)

    def confirm_intent(self, intent_id: str, status, token: Optional[str] = None,
                       verify: Optional[bool] = None, source: str = 'api',
                       timeout: Optional[float] = None) -> PaymentIntent:
        """
        Apply a reported status to an intent.

        With verification on, the gateway's own view of the charge replaces
        the client-reported status. Repeating a status the intent already has
        is a no-op. Side-effect failures are raised after the status change is
        committed; the change itself is not rolled back.
        """
        requested = self._parse_status(status)
        intent = self.get_intent(intent_id)

        payment_method = None
        error_message = None
        verify = self.settings.verify_confirmations if verify is None else verify
        if verify:
            _, adapter = self._adapter(intent.gateway_id)
            confirmation = adapter.confirm(intent.id, token=token, timeout=timeout)
            if confirmation.status != requested:
                logger.info(
                    f"Gateway reports {confirmation.status.value} for payment {intent.id} "
                    f"(client reported {requested.value})"
                )
            requested = confirmation.status
            payment_method = confirmation.payment_method
            error_message = confirmation.error_message

        result = self.transition(intent.id, requested, source=source,
                                 payment_method=payment_method, error_message=error_message)
        if result.changed:
            self._run_side_effects(result, timeout=timeout)
        return result.intent

    def refund_intent(self, intent_id: str, reason: Optional[str] = None, actor_id: Optional[str] = None,
                      timeout: Optional[float] = None) -> PaymentIntent:
        """
        Refund a completed payment in full through its gateway.

        A payment that is already refunded is returned unchanged without
        contacting the provider again.
        """
        intent = self.get_intent(intent_id)
        if intent.status == IntentStatus.REFUNDED:
            logger.info(f"Payment {intent.id} already refunded")
            return intent
        if IntentStatus.REFUNDED not in ALLOWED_TRANSITIONS[intent.status]:
            raise IllegalTransition(intent.id, intent.status.value, IntentStatus.REFUNDED.value)

        _, adapter = self._adapter(intent.gateway_id)
        refund_id = adapter.refund(intent.id, intent.amount, intent.currency, reason=reason, timeout=timeout)
        logger.info(f"Gateway {intent.gateway_id} refunded payment {intent.id} as {refund_id}")

        result = self.transition(intent.id, IntentStatus.REFUNDED, source='api')
        if result.changed:
            self._run_side_effects(result, timeout=timeout, actor_id=actor_id)
        return result.intent

    def list_intents(self, status=None, gateway_id: Optional[str] = None) -> List[PaymentIntent]:
        return self.intents.list(self._parse_status(status) if status else None, gateway_id)

    def transition(self, intent_id: str, requested: IntentStatus, source: str = 'api',
                   payment_method: Optional[str] = None,
                   error_message: Optional[str] = None) -> TransitionResult:
        """Move an intent to ``requested`` and sync its booking in one commit"""
        for _ in range(MAX_TRANSITION_ATTEMPTS):
            intent = self.get_intent(intent_id)
            current = intent.status

            if requested == current:
                logger.info(f"Duplicate {requested.value} for payment {intent_id} ignored ({source})")
                return TransitionResult(intent=intent, changed=False)

            if requested not in ALLOWED_TRANSITIONS[current]:
                logger.warning(
                    f"Rejected payment {intent_id} transition {current.value} -> {requested.value} ({source})"
                )
                raise IllegalTransition(intent_id, current.value, requested.value)

            fields = {}
            if requested == IntentStatus.COMPLETED:
                fields['completed_at'] = datetime.now(timezone.utc)
            if payment_method:
                fields['payment_method'] = payment_method[:50]
            if requested == IntentStatus.FAILED:
                fields['error_message'] = error_message or 'Payment failed'

            if not self.intents.compare_and_set_status(intent_id, current, requested, **fields):
                # Another request moved the intent; re-read and decide again
                self.session.rollback()
                continue

            self.intents.record_event(intent_id, requested, source)
            result = TransitionResult(intent=intent, changed=True)
            self._sync_booking(intent, requested, result)

            try:
                self.session.commit()
            except IntegrityError:
                # Same status recorded by a concurrent request
                self.session.rollback()
                logger.info(f"Duplicate {requested.value} for payment {intent_id} ignored ({source})")
                return TransitionResult(intent=self.get_intent(intent_id), changed=False)

            logger.info(f"Payment {intent_id}: {current.value} -> {requested.value} ({source})")
            return result

        raise ConflictError('Payment status is being updated by another request, please retry')

    def _sync_booking(self, intent: PaymentIntent, status: IntentStatus, result: TransitionResult):
        booking_id = intent.booking_id
        if status == IntentStatus.COMPLETED:
            if not self.bookings.mark_paid(booking_id):
                logger.warning(f"Payment {intent.id} completed for cancelled booking {booking_id}; booking left cancelled")
        elif status == IntentStatus.REFUNDED:
            self.bookings.mark_refunded(booking_id)
            if self.settings.refund_cancels_booking:
                result.booking_cancelled = self.bookings.mark_cancelled(booking_id)
                if result.booking_cancelled and self.availability is not None:
                    booking = self.bookings.get(booking_id)
                    self.availability.release_slot(booking.resource_id, booking.date, booking.start_time,
                                                   booking.party_size, commit=False)

    def _run_side_effects(self, result: TransitionResult, timeout: Optional[float] = None,
                          actor_id: Optional[str] = None):
        intent = self.get_intent(result.intent.id)
        first_error = None

        if intent.status == IntentStatus.COMPLETED and self.receipts is not None:
            try:
                self.generate_receipt(intent.id)
            except (CharterError, OSError) as e:
                logger.error(f"Receipt generation failed for payment {intent.id}: {e}")
                first_error = e if isinstance(e, CharterError) else InternalError('Failed to generate receipt')

        if self.dispatcher is not None:
            send = {
                IntentStatus.COMPLETED: self.dispatcher.payment_confirmation,
                IntentStatus.FAILED: self.dispatcher.payment_failure,
                IntentStatus.REFUNDED: self.dispatcher.refund,
            }.get(intent.status)
            if send is not None:
                try:
                    send(intent, timeout=timeout)
                except NotificationError as e:
                    logger.error(f"Notification for payment {intent.id} failed: {e.message}")
                    first_error = first_error or e

        if result.booking_cancelled:
            try:
                description = f"Booking #{intent.booking_id} cancelled after refund of payment {intent.id}"
                announce_cancellation(intent.booking, self.dispatcher, actor_id=actor_id,
                                      description=description, timeout=timeout)
            except NotificationError as e:
                logger.error(f"Cancellation notice for booking {intent.booking_id} failed: {e.message}")
                first_error = first_error or e

        if first_error is not None:
            raise first_error

    # ==================== RECEIPTS ====================

    def generate_receipt(self, intent_id: str) -> str:
        intent = self.get_intent(intent_id)
        if intent.status not in (IntentStatus.COMPLETED, IntentStatus.REFUNDED):
            raise ValidationError('Receipts are only available for completed payments')
        if self.receipts is None:
            raise InternalError('Receipt generation is not configured')

        intent.receipt_url = self.receipts.generate(intent)
        self.session.commit()
        return intent.receipt_url

    # ==================== WEBHOOKS ====================

    def handle_webhook(self, gateway_id: str, payload: bytes, headers: Mapping[str, str],
                       timeout: Optional[float] = None) -> Dict:
        """
        Verify a provider callback and apply it.

        Signature problems raise ValidationError. Anything else the provider
        could not fix by redelivering is logged and acknowledged.
        """
        config, adapter = self._adapter(gateway_id)
        event = adapter.parse_webhook(payload, headers, timeout=timeout)
        if event is None:
            return {'received': True}

        intent = self.intents.get(event.intent_id)
        if intent is None:
            logger.warning(f"{config.id} webhook {event.event_type} for unknown payment {event.intent_id}")
            return {'received': True}
        if intent.gateway_id != config.id:
            logger.warning(f"{config.id} webhook for payment {intent.id} owned by {intent.gateway_id} ignored")
            return {'received': True}

        try:
            result = self.transition(intent.id, event.status, source='webhook',
                                     payment_method=event.payment_method,
                                     error_message=event.error_message)
        except ConflictError as e:
            logger.warning(f"{config.id} webhook {event.event_type} not applied: {e.message}")
            return {'received': True}

        if result.changed:
            try:
                self._run_side_effects(result, timeout=timeout)
            except CharterError as e:
                logger.error(f"Side effects for {config.id} webhook {event.event_type} failed: {e.message}")
        return {'received': True, 'status': result.intent.status.value, 'duplicate': not result.changed}


def get_payment_orchestrator() -> PaymentOrchestrator:
    """Orchestrator wired to the current app's registry, adapters and session"""
    app = current_app
    session = db.session
    return PaymentOrchestrator(
        session=session,
        registry=app.extensions['gateway_registry'],
        gateways=app.extensions['payment_gateways'],
        intents=PaymentIntentRepository(session),
        bookings=BookingRepository(session),
        dispatcher=app.extensions.get('notification_dispatcher'),
        receipts=ReceiptService(app.config['RECEIPTS_DIR']),
        availability=AvailabilityService.from_config(session, app.config),
        settings=PaymentSettings.from_config(app.config),
    )
