from charter.services.gateways import (GatewayRegistry, PayPalGateway, StripeGateway,
                                       build_gateways)


def _config(**overrides):
    config = {
        'PAYMENT_GATEWAYS': ['stripe', 'paypal', 'square', 'tap'],
        'PAYMENT_TEST_MODE': True,
        'GATEWAY_TIMEOUT': 7,
        'SUPPORTED_CURRENCIES': ['aed', 'usd'],
        'FRONTEND_URL': 'https://example.com/',
        'STRIPE_SECRET_KEY': 'sk_test',
        'STRIPE_PUBLISHABLE_KEY': 'pk_test',
        'PAYPAL_CLIENT_ID': 'client',
        'PAYPAL_SECRET': 'secret',
    }
    config.update(overrides)
    return config


def test_enabled_requires_listing_and_credentials():
    registry = GatewayRegistry.from_config(_config())

    assert [g.id for g in registry.list_enabled()] == ['stripe', 'paypal']
    assert registry.get('square').is_enabled is False
    assert registry.get('tap').is_enabled is False


def test_unlisted_gateway_is_disabled_even_with_credentials():
    registry = GatewayRegistry.from_config(_config(PAYMENT_GATEWAYS=['paypal']))
    assert [g.id for g in registry.list_enabled()] == ['paypal']


def test_get_is_case_insensitive_and_returns_none_for_unknown():
    registry = GatewayRegistry.from_config(_config())

    assert registry.get('STRIPE').id == 'stripe'
    assert registry.get('venmo') is None
    assert registry.get(None) is None


def test_config_values_are_normalized():
    registry = GatewayRegistry.from_config(_config(TAP_SECRET_KEY='sk_tap'))

    stripe_config = registry.get('stripe')
    assert stripe_config.timeout == 7
    assert stripe_config.supported_currencies == ['AED', 'USD']
    assert registry.get('tap').options['redirect_url'] == 'https://example.com/payment/complete'


def test_no_gateways_configured_yields_empty_list():
    registry = GatewayRegistry.from_config({'PAYMENT_GATEWAYS': []})
    assert registry.list_enabled() == []
    assert build_gateways(registry) == {}


def test_build_gateways_creates_one_adapter_per_enabled_gateway():
    adapters = build_gateways(GatewayRegistry.from_config(_config()))

    assert set(adapters) == {'stripe', 'paypal'}
    assert isinstance(adapters['stripe'], StripeGateway)
    assert isinstance(adapters['paypal'], PayPalGateway)
