"""
Tap Payments adapter
Charges are created server-side and completed on Tap's hosted page
"""

import logging
from decimal import Decimal
from typing import Dict, Optional

from charter.errors import GatewayError
from charter.models.enums import IntentStatus
from .base import GatewayCharge, GatewayConfirmation, HttpGateway, to_decimal_string

logger = logging.getLogger(__name__)

CHARGE_STATUS_MAP = {
    'INITIATED': IntentStatus.PENDING,
    'IN_PROGRESS': IntentStatus.PROCESSING,
    'AUTHORIZED': IntentStatus.PROCESSING,
    'CAPTURED': IntentStatus.COMPLETED,
    'FAILED': IntentStatus.FAILED,
    'DECLINED': IntentStatus.FAILED,
    'RESTRICTED': IntentStatus.FAILED,
    'CANCELLED': IntentStatus.FAILED,
    'ABANDONED': IntentStatus.FAILED,
    'VOID': IntentStatus.FAILED,
    'TIMEDOUT': IntentStatus.FAILED,
}


class TapGateway(HttpGateway):
    provider_name = 'Tap'
    # Tap separates test and live traffic by key, not by host
    live_base_url = 'https://api.tap.company'
    sandbox_base_url = 'https://api.tap.company'

    def _headers(self, timeout: float) -> Dict[str, str]:
        return {
            'Authorization': f"Bearer {self.config.secret_key}",
            'Content-Type': 'application/json',
        }

    def create(self, amount: Decimal, currency: str, booking_id: int,
               metadata: Optional[Dict] = None, timeout: Optional[float] = None) -> GatewayCharge:
        body = {
            'amount': float(to_decimal_string(amount)),
            'currency': currency.upper(),
            'reference': {'transaction': str(booking_id), 'order': str(booking_id)},
            'description': f"Booking #{booking_id}",
            'metadata': {k: str(v) for k, v in (metadata or {}).items()},
            'source': {'id': 'src_all'},
        }
        redirect_url = self.config.options.get('redirect_url')
        if redirect_url:
            body['redirect'] = {'url': redirect_url}

        charge = self._request('POST', '/v2/charges', timeout=timeout, json=body)
        if not charge.get('id'):
            raise GatewayError(self.provider_name, "charge was not created")

        logger.info(f"Created Tap charge: {charge['id']}")
        return GatewayCharge(
            provider_id=charge['id'],
            client_secret=charge['id'],
            status=CHARGE_STATUS_MAP.get(charge.get('status'), IntentStatus.PENDING),
        )

    def confirm(self, provider_id: str, token: Optional[str] = None,
                timeout: Optional[float] = None) -> GatewayConfirmation:
        charge = self._request('GET', f'/v2/charges/{provider_id}', timeout=timeout)
        response = charge.get('response') or {}
        status = CHARGE_STATUS_MAP.get(charge.get('status'), IntentStatus.PENDING)
        return GatewayConfirmation(
            status=status,
            payment_method=(charge.get('source') or {}).get('payment_method'),
            error_message=response.get('message') if status == IntentStatus.FAILED else None,
        )

    def refund(self, provider_id: str, amount: Decimal, currency: str, reason: Optional[str] = None,
               timeout: Optional[float] = None) -> str:
        refund = self._request('POST', '/v2/refunds', timeout=timeout, json={
            'charge_id': provider_id,
            'amount': float(to_decimal_string(amount)),
            'currency': currency.upper(),
            'reason': reason or 'requested_by_customer',
        })
        if not refund.get('id') or refund.get('status') in ('FAILED', 'CANCELLED'):
            raise GatewayError(self.provider_name, "refund was not accepted")

        logger.info(f"Tap refund {refund['id']} for charge {provider_id}: {refund.get('status')}")
        return refund['id']

    def ping(self, timeout: Optional[float] = None) -> None:
        self._request('POST', '/v2/charges/list', timeout=timeout, json={'limit': 1})

    def _error_summary(self, data: Dict) -> str:
        errors = data.get('errors') or []
        return ', '.join(str(error.get('code', '')) for error in errors)[:200]
