from typing import Dict

from .base import (GatewayCharge, GatewayConfig, GatewayConfirmation, PaymentGateway,
                   WebhookEvent)
from .paypal import PayPalGateway
from .registry import GatewayRegistry
from .square import SquareGateway
from .stripe_gateway import StripeGateway
from .tap import TapGateway

ADAPTERS = {
    'stripe': StripeGateway,
    'paypal': PayPalGateway,
    'square': SquareGateway,
    'tap': TapGateway,
}


def build_gateways(registry: GatewayRegistry) -> Dict[str, PaymentGateway]:
    """Lookup table of adapters for every enabled gateway"""
    return {
        config.id: ADAPTERS[config.id](config)
        for config in registry.list_enabled()
        if config.id in ADAPTERS
    }


__all__ = [
    'ADAPTERS', 'GatewayCharge', 'GatewayConfig', 'GatewayConfirmation', 'GatewayRegistry',
    'PaymentGateway', 'PayPalGateway', 'SquareGateway', 'StripeGateway', 'TapGateway',
    'WebhookEvent', 'build_gateways',
]
