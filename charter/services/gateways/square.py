"""
Square adapter
An order is opened at checkout; the Web Payments SDK card nonce pays it on confirm
"""

import logging
import uuid
from decimal import Decimal
from typing import Dict, Optional

from charter.errors import GatewayError
from charter.models.enums import IntentStatus
from .base import GatewayCharge, GatewayConfirmation, HttpGateway, to_minor_units

logger = logging.getLogger(__name__)

SQUARE_VERSION = '2024-01-18'

ORDER_STATE_MAP = {
    'OPEN': IntentStatus.PENDING,
    'DRAFT': IntentStatus.PENDING,
    'COMPLETED': IntentStatus.COMPLETED,
    'CANCELED': IntentStatus.FAILED,
}

PAYMENT_STATUS_MAP = {
    'APPROVED': IntentStatus.PROCESSING,
    'PENDING': IntentStatus.PROCESSING,
    'COMPLETED': IntentStatus.COMPLETED,
    'CANCELED': IntentStatus.FAILED,
    'FAILED': IntentStatus.FAILED,
}


class SquareGateway(HttpGateway):
    provider_name = 'Square'
    live_base_url = 'https://connect.squareup.com'
    sandbox_base_url = 'https://connect.squareupsandbox.com'

    @property
    def location_id(self):
        return self.config.options.get('location_id')

    def _headers(self, timeout: float) -> Dict[str, str]:
        return {
            'Authorization': f"Bearer {self.config.secret_key}",
            'Content-Type': 'application/json',
            'Square-Version': SQUARE_VERSION,
        }

    def create(self, amount: Decimal, currency: str, booking_id: int,
               metadata: Optional[Dict] = None, timeout: Optional[float] = None) -> GatewayCharge:
        if not self.location_id:
            raise GatewayError(self.provider_name, "location is not configured")

        data = self._request('POST', '/v2/orders', timeout=timeout, json={
            'idempotency_key': str(uuid.uuid4()),
            'order': {
                'location_id': self.location_id,
                'reference_id': str(booking_id),
                'line_items': [{
                    'name': f"Booking #{booking_id}",
                    'quantity': '1',
                    'base_price_money': {
                        'amount': to_minor_units(amount, currency),
                        'currency': currency.upper(),
                    },
                }],
            },
        })
        order = data.get('order') or {}
        if not order.get('id'):
            raise GatewayError(self.provider_name, "order was not created")

        logger.info(f"Created Square order: {order['id']}")
        return GatewayCharge(provider_id=order['id'], client_secret=order['id'])

    def confirm(self, provider_id: str, token: Optional[str] = None,
                timeout: Optional[float] = None) -> GatewayConfirmation:
        order = (self._request('GET', f'/v2/orders/{provider_id}', timeout=timeout).get('order') or {})
        state = order.get('state')
        if token is None or state != 'OPEN':
            return GatewayConfirmation(status=ORDER_STATE_MAP.get(state, IntentStatus.PENDING),
                                       payment_method='card')

        total = order.get('net_amount_due_money') or order.get('total_money') or {}
        data = self._request('POST', '/v2/payments', timeout=timeout, json={
            'source_id': token,
            # One payment per order, so a retried confirm cannot charge twice
            'idempotency_key': f"pay-{provider_id}"[:45],
            'amount_money': total,
            'order_id': provider_id,
            'location_id': self.location_id,
            'reference_id': order.get('reference_id'),
        })
        payment = data.get('payment') or {}
        status = payment.get('status')
        logger.info(f"Square payment for order {provider_id}: {status}")
        card = payment.get('card_details') or {}
        return GatewayConfirmation(
            status=PAYMENT_STATUS_MAP.get(status, IntentStatus.PROCESSING),
            payment_method=(card.get('card') or {}).get('card_brand') or 'card',
        )

    def refund(self, provider_id: str, amount: Decimal, currency: str, reason: Optional[str] = None,
               timeout: Optional[float] = None) -> str:
        order = (self._request('GET', f'/v2/orders/{provider_id}', timeout=timeout).get('order') or {})
        tenders = order.get('tenders') or []
        payment_id = (tenders[0].get('payment_id') or tenders[0].get('id')) if tenders else None
        if not payment_id:
            raise GatewayError(self.provider_name, "order has no payment to refund")

        body = {
            'idempotency_key': f"refund-{provider_id}"[:45],
            'payment_id': payment_id,
            'amount_money': {'amount': to_minor_units(amount, currency), 'currency': currency.upper()},
        }
        if reason:
            body['reason'] = reason[:192]
        refund = self._request('POST', '/v2/refunds', timeout=timeout, json=body).get('refund') or {}
        if not refund.get('id') or refund.get('status') in ('REJECTED', 'FAILED'):
            raise GatewayError(self.provider_name, "refund was not accepted")

        logger.info(f"Square refund {refund['id']} for order {provider_id}: {refund.get('status')}")
        return refund['id']

    def ping(self, timeout: Optional[float] = None) -> None:
        self._request('GET', '/v2/locations', timeout=timeout)

    def _error_summary(self, data: Dict) -> str:
        errors = data.get('errors') or []
        return ', '.join(error.get('code', '') for error in errors)[:200]
