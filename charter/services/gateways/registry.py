"""
Gateway Registry
Static, config-driven list of payment gateways and whether each is usable
"""

import logging
from typing import Dict, List, Mapping, Optional

from .base import GatewayConfig

logger = logging.getLogger(__name__)

GATEWAY_NAMES = {
    'stripe': 'Credit Card (Stripe)',
    'paypal': 'PayPal',
    'square': 'Square',
    'tap': 'Tap Payments',
}


class GatewayRegistry:
    """Pure lookup over gateway configuration; holds no connections"""

    def __init__(self, gateways: List[GatewayConfig]):
        self._gateways: Dict[str, GatewayConfig] = {g.id: g for g in gateways}

    @classmethod
    def from_config(cls, config: Mapping) -> 'GatewayRegistry':
        """
        Build the registry from a Flask config mapping

        A gateway is enabled only when listed in PAYMENT_GATEWAYS and its
        server-side credential is configured.
        """
        listed = {g.lower() for g in config.get('PAYMENT_GATEWAYS') or []}
        test_mode = bool(config.get('PAYMENT_TEST_MODE', True))
        timeout = float(config.get('GATEWAY_TIMEOUT', 15))
        currencies = [c.upper() for c in config.get('SUPPORTED_CURRENCIES') or []]

        credentials = {
            'stripe': dict(
                api_key=config.get('STRIPE_PUBLISHABLE_KEY') or '',
                secret_key=config.get('STRIPE_SECRET_KEY') or '',
                webhook_secret=config.get('STRIPE_WEBHOOK_SECRET') or '',
            ),
            'paypal': dict(
                api_key=config.get('PAYPAL_CLIENT_ID') or '',
                secret_key=config.get('PAYPAL_SECRET') or '',
                webhook_secret=config.get('PAYPAL_WEBHOOK_ID') or '',
            ),
            'square': dict(
                api_key=config.get('SQUARE_APPLICATION_ID') or '',
                secret_key=config.get('SQUARE_ACCESS_TOKEN') or '',
                options={'location_id': config.get('SQUARE_LOCATION_ID')},
            ),
            'tap': dict(
                api_key=config.get('TAP_PUBLIC_KEY') or '',
                secret_key=config.get('TAP_SECRET_KEY') or '',
                options={'redirect_url': f"{(config.get('FRONTEND_URL') or '').rstrip('/')}/payment/complete"},
            ),
        }

        gateways = []
        for gateway_id, name in GATEWAY_NAMES.items():
            creds = credentials[gateway_id]
            enabled = gateway_id in listed and bool(creds['secret_key'])
            if gateway_id in listed and not enabled:
                logger.warning(f"Payment gateway '{gateway_id}' is listed but has no credentials; disabling")
            gateways.append(GatewayConfig(
                id=gateway_id,
                name=name,
                is_enabled=enabled,
                test_mode=test_mode,
                timeout=timeout,
                supported_currencies=list(currencies),
                **creds
            ))
        return cls(gateways)

    def list_enabled(self) -> List[GatewayConfig]:
        return [g for g in self._gateways.values() if g.is_enabled]

    def get(self, gateway_id: Optional[str]) -> Optional[GatewayConfig]:
        if not gateway_id:
            return None
        return self._gateways.get(str(gateway_id).lower())
