"""
PayPal adapter
Orders v2 API with an OAuth2 client-credentials token
"""

import json
import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Mapping, Optional

from charter.errors import GatewayError, ValidationError
from charter.models.enums import IntentStatus
from .base import (GatewayCharge, GatewayConfirmation, HttpGateway, WebhookEvent,
                   to_decimal_string)

logger = logging.getLogger(__name__)

ORDER_STATUS_MAP = {
    'CREATED': IntentStatus.PENDING,
    'SAVED': IntentStatus.PENDING,
    'PAYER_ACTION_REQUIRED': IntentStatus.PENDING,
    'APPROVED': IntentStatus.PROCESSING,
    'COMPLETED': IntentStatus.COMPLETED,
    'VOIDED': IntentStatus.FAILED,
}

CAPTURE_STATUS_MAP = {
    'COMPLETED': IntentStatus.COMPLETED,
    'PENDING': IntentStatus.PROCESSING,
    'DECLINED': IntentStatus.FAILED,
    'FAILED': IntentStatus.FAILED,
}

WEBHOOK_EVENTS = {
    'CHECKOUT.ORDER.APPROVED': IntentStatus.PROCESSING,
    'PAYMENT.CAPTURE.PENDING': IntentStatus.PROCESSING,
    'PAYMENT.CAPTURE.COMPLETED': IntentStatus.COMPLETED,
    'PAYMENT.CAPTURE.DENIED': IntentStatus.FAILED,
    'PAYMENT.CAPTURE.REFUNDED': IntentStatus.REFUNDED,
    'REFUND.COMPLETED': IntentStatus.REFUNDED,
}

TRANSMISSION_HEADERS = {
    'auth_algo': 'PAYPAL-AUTH-ALGO',
    'cert_url': 'PAYPAL-CERT-URL',
    'transmission_id': 'PAYPAL-TRANSMISSION-ID',
    'transmission_sig': 'PAYPAL-TRANSMISSION-SIG',
    'transmission_time': 'PAYPAL-TRANSMISSION-TIME',
}


class PayPalGateway(HttpGateway):
    provider_name = 'PayPal'
    live_base_url = 'https://api-m.paypal.com'
    sandbox_base_url = 'https://api-m.sandbox.paypal.com'

    def __init__(self, config, session=None):
        super().__init__(config, session)
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None

    def _authenticate(self, timeout: float) -> None:
        data = self._request(
            'POST', '/v1/oauth2/token', timeout=timeout,
            headers={'Content-Type': 'application/x-www-form-urlencoded'},
            auth=(self.config.api_key, self.config.secret_key),
            data={'grant_type': 'client_credentials'},
        )
        token = data.get('access_token')
        if not token:
            raise GatewayError(self.provider_name, "authentication with payment provider failed")
        self._access_token = token
        self._token_expiry = datetime.now() + timedelta(seconds=int(data.get('expires_in', 3600)))

    def _headers(self, timeout: float) -> Dict[str, str]:
        if (self._access_token is None or self._token_expiry is None
                or datetime.now() >= self._token_expiry - timedelta(seconds=60)):
            self._authenticate(timeout)
        return {
            'Authorization': f"Bearer {self._access_token}",
            'Content-Type': 'application/json',
        }

    def create(self, amount: Decimal, currency: str, booking_id: int,
               metadata: Optional[Dict] = None, timeout: Optional[float] = None) -> GatewayCharge:
        timeout = self._timeout(timeout)
        headers = self._headers(timeout)
        headers['PayPal-Request-Id'] = str(uuid.uuid4())
        order = self._request('POST', '/v2/checkout/orders', timeout=timeout, headers=headers, json={
            'intent': 'CAPTURE',
            'purchase_units': [{
                'reference_id': str(booking_id),
                'custom_id': str(booking_id),
                'amount': {
                    'currency_code': currency.upper(),
                    'value': to_decimal_string(amount),
                },
            }],
        })
        order_id = order.get('id')
        if not order_id:
            raise GatewayError(self.provider_name, "order was not created")

        logger.info(f"Created PayPal order: {order_id}")
        # The JS SDK approves the order by id, so the id doubles as client secret
        return GatewayCharge(
            provider_id=order_id,
            client_secret=order_id,
            status=ORDER_STATUS_MAP.get(order.get('status'), IntentStatus.PENDING),
        )

    def confirm(self, provider_id: str, token: Optional[str] = None,
                timeout: Optional[float] = None) -> GatewayConfirmation:
        timeout = self._timeout(timeout)
        order = self._request('GET', f'/v2/checkout/orders/{provider_id}', timeout=timeout)
        status = order.get('status')
        if status != 'APPROVED':
            return GatewayConfirmation(status=ORDER_STATUS_MAP.get(status, IntentStatus.PENDING),
                                       payment_method='paypal')

        headers = self._headers(timeout)
        headers['PayPal-Request-Id'] = f"capture-{provider_id}"
        captured = self._request('POST', f'/v2/checkout/orders/{provider_id}/capture',
                                 timeout=timeout, headers=headers, json={})
        capture_status = self._capture(captured).get('status') or captured.get('status')
        result = CAPTURE_STATUS_MAP.get(capture_status) or ORDER_STATUS_MAP.get(capture_status, IntentStatus.PROCESSING)
        logger.info(f"Captured PayPal order {provider_id}: {capture_status}")
        return GatewayConfirmation(status=result, payment_method='paypal')

    @staticmethod
    def _capture(order: Dict) -> Dict:
        for unit in order.get('purchase_units', []):
            for capture in unit.get('payments', {}).get('captures', []):
                return capture
        return {}

    def refund(self, provider_id: str, amount: Decimal, currency: str, reason: Optional[str] = None,
               timeout: Optional[float] = None) -> str:
        timeout = self._timeout(timeout)
        order = self._request('GET', f'/v2/checkout/orders/{provider_id}', timeout=timeout)
        capture_id = self._capture(order).get('id')
        if not capture_id:
            raise GatewayError(self.provider_name, "order has no capture to refund")

        headers = self._headers(timeout)
        headers['PayPal-Request-Id'] = f"refund-{provider_id}"
        body = {'note_to_payer': reason[:255]} if reason else {}
        refund = self._request('POST', f'/v2/payments/captures/{capture_id}/refund',
                               timeout=timeout, headers=headers, json=body)
        if not refund.get('id') or refund.get('status') in ('CANCELLED', 'FAILED'):
            raise GatewayError(self.provider_name, "refund was not accepted")

        logger.info(f"Refunded PayPal capture {capture_id} for order {provider_id}: {refund['id']}")
        return refund['id']

    def ping(self, timeout: Optional[float] = None) -> None:
        self._authenticate(self._timeout(timeout))

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str],
                      timeout: Optional[float] = None) -> Optional[WebhookEvent]:
        try:
            event = json.loads(payload or b'{}')
        except ValueError:
            raise ValidationError('Invalid payload')

        transmission = {}
        for field_name, header in TRANSMISSION_HEADERS.items():
            value = headers.get(header)
            if not value:
                raise ValidationError('Missing signature')
            transmission[field_name] = value
        if not self.config.webhook_secret:
            raise GatewayError(self.provider_name, "webhook id is not configured")

        verification = self._request(
            'POST', '/v1/notifications/verify-webhook-signature', timeout=timeout,
            json={**transmission, 'webhook_id': self.config.webhook_secret, 'webhook_event': event},
        )
        if verification.get('verification_status') != 'SUCCESS':
            logger.warning("PayPal webhook signature verification failed")
            raise ValidationError('Invalid signature')

        event_type = event.get('event_type')
        status = WEBHOOK_EVENTS.get(event_type)
        if status is None:
            logger.info(f"Ignoring PayPal event {event_type}")
            return None

        resource = event.get('resource') or {}
        related = (resource.get('supplementary_data') or {}).get('related_ids') or {}
        order_id = related.get('order_id') or resource.get('id')
        if not order_id:
            return None

        reason = (resource.get('status_details') or {}).get('reason')
        return WebhookEvent(
            event_type=event_type,
            intent_id=order_id,
            status=status,
            payment_method='paypal',
            error_message=reason if status == IntentStatus.FAILED else None,
        )
