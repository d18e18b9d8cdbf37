"""
Stripe adapter
Creates PaymentIntents and reads their status through the Stripe SDK
"""

import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional

import stripe

from charter.errors import GatewayError, GatewayTimeout, ValidationError
from charter.models.enums import IntentStatus
from .base import (GatewayCharge, GatewayConfirmation, PaymentGateway, WebhookEvent,
                   to_minor_units)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    'requires_payment_method': IntentStatus.PENDING,
    'requires_confirmation': IntentStatus.PENDING,
    'requires_action': IntentStatus.PENDING,
    'processing': IntentStatus.PROCESSING,
    'requires_capture': IntentStatus.PROCESSING,
    'succeeded': IntentStatus.COMPLETED,
    'canceled': IntentStatus.FAILED,
}

WEBHOOK_EVENTS = {
    'payment_intent.processing': IntentStatus.PROCESSING,
    'payment_intent.succeeded': IntentStatus.COMPLETED,
    'payment_intent.payment_failed': IntentStatus.FAILED,
    'payment_intent.canceled': IntentStatus.FAILED,
    'charge.refunded': IntentStatus.REFUNDED,
}


def _field(obj, key):
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _fully_refunded(charge) -> bool:
    if _field(charge, 'refunded'):
        return True
    amount = _field(charge, 'amount')
    refunded = _field(charge, 'amount_refunded')
    return amount is not None and refunded is not None and refunded >= amount


class StripeGateway(PaymentGateway):
    provider_name = 'Stripe'

    def _client(self, timeout: Optional[float]) -> stripe.StripeClient:
        return stripe.StripeClient(
            self.config.secret_key,
            http_client=stripe.RequestsClient(timeout=self._timeout(timeout)),
        )

    def _call(self, action: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except stripe.APIConnectionError as e:
            logger.error(f"Stripe connection error while trying to {action}: {e.user_message or type(e).__name__}")
            raise GatewayTimeout(self.provider_name, "payment provider did not respond")
        except stripe.StripeError as e:
            logger.error(f"Stripe error while trying to {action}: {e.code or type(e).__name__}")
            message = e.user_message if isinstance(e, stripe.CardError) and e.user_message else f"failed to {action}"
            raise GatewayError(self.provider_name, message)

    def create(self, amount: Decimal, currency: str, booking_id: int,
               metadata: Optional[Dict] = None, timeout: Optional[float] = None) -> GatewayCharge:
        params = {
            'amount': to_minor_units(amount, currency),
            'currency': currency.lower(),
            'automatic_payment_methods': {'enabled': True},
            'metadata': {'bookingId': str(booking_id), **{k: str(v) for k, v in (metadata or {}).items()}},
        }
        client = self._client(timeout)
        intent = self._call('create payment intent', client.payment_intents.create, params=params)

        logger.info(f"Created Stripe payment intent: {intent.id}")
        return GatewayCharge(
            provider_id=intent.id,
            client_secret=intent.client_secret,
            status=STATUS_MAP.get(intent.status, IntentStatus.PENDING),
        )

    def confirm(self, provider_id: str, token: Optional[str] = None,
                timeout: Optional[float] = None) -> GatewayConfirmation:
        # Stripe.js confirms client-side; the server only reads the outcome
        client = self._client(timeout)
        intent = self._call('retrieve payment intent', client.payment_intents.retrieve, provider_id)

        status = STATUS_MAP.get(_field(intent, 'status'), IntentStatus.PENDING)
        error = _field(intent, 'last_payment_error')
        method_types = _field(intent, 'payment_method_types') or []
        return GatewayConfirmation(
            status=status,
            payment_method=method_types[0] if method_types else None,
            error_message=_field(error, 'message') if error else None,
        )

    def refund(self, provider_id: str, amount: Decimal, currency: str, reason: Optional[str] = None,
               timeout: Optional[float] = None) -> str:
        params = {'payment_intent': provider_id}
        if reason:
            params['metadata'] = {'reason': reason[:500]}
        client = self._client(timeout)
        refund = self._call('refund payment', client.refunds.create, params=params)

        if _field(refund, 'status') in ('failed', 'canceled'):
            raise GatewayError(self.provider_name, "refund was not accepted")
        logger.info(f"Created Stripe refund {_field(refund, 'id')} for payment intent {provider_id}")
        return _field(refund, 'id')

    def ping(self, timeout: Optional[float] = None) -> None:
        client = self._client(timeout)
        self._call('list payment intents', client.payment_intents.list, params={'limit': 1})

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str],
                      timeout: Optional[float] = None) -> Optional[WebhookEvent]:
        signature = headers.get('Stripe-Signature')
        if not signature:
            raise ValidationError('Missing signature')
        if not self.config.webhook_secret:
            raise GatewayError(self.provider_name, "webhook signing secret is not configured")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.config.webhook_secret)
        except ValueError:
            raise ValidationError('Invalid payload')
        except stripe.SignatureVerificationError:
            logger.warning("Stripe webhook signature verification failed")
            raise ValidationError('Invalid signature')

        event_type = event['type']
        status = WEBHOOK_EVENTS.get(event_type)
        if status is None:
            logger.info(f"Ignoring Stripe event {event_type}")
            return None

        obj = event['data']['object']
        if event_type == 'charge.refunded':
            intent_id = _field(obj, 'payment_intent')
            if not _fully_refunded(obj):
                # Partial refunds keep the payment completed
                logger.info(
                    f"Ignoring partial refund of {_field(obj, 'amount_refunded')}/{_field(obj, 'amount')} "
                    f"for payment intent {intent_id}"
                )
                return None
        else:
            intent_id = _field(obj, 'id')
        if not intent_id:
            logger.warning(f"Stripe event {event_type} carries no payment intent id")
            return None

        method_types = _field(obj, 'payment_method_types') or []
        error = _field(obj, 'last_payment_error')
        return WebhookEvent(
            event_type=event_type,
            intent_id=intent_id,
            status=status,
            payment_method=method_types[0] if method_types else None,
            error_message=_field(error, 'message') if error else None,
        )
