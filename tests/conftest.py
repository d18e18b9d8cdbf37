import hashlib
import hmac
import json
import time
from datetime import date, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from charter import create_app
from charter.errors import ValidationError
from charter.extensions import db as _db
from charter.models import Booking, PaymentEvent, PaymentIntent, Resource, User
from charter.models.enums import BookingStatus, IntentStatus, ResourceType, UserRole
from charter.services.gateways import (GatewayCharge, GatewayConfirmation, PaymentGateway,
                                       WebhookEvent)
from charter.services.notification import NotificationDispatcher
from charter.services.payment import get_payment_orchestrator
from config import Config

STRIPE_WEBHOOK_SECRET = 'whsec_test_secret'


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'test-jwt-secret'
    FRONTEND_URL = 'http://localhost:3000'
    LOG_LEVEL = 'DEBUG'

    PAYMENT_GATEWAYS = ['stripe', 'paypal']
    PAYMENT_TEST_MODE = True
    SUPPORTED_CURRENCIES = ['AED', 'USD', 'EUR', 'GBP']
    PAYMENT_VERIFY_CONFIRMATIONS = False
    REFUND_CANCELS_BOOKING = False
    GATEWAY_TIMEOUT = 5

    STRIPE_SECRET_KEY = 'sk_test_123'
    STRIPE_PUBLISHABLE_KEY = 'pk_test_123'
    STRIPE_WEBHOOK_SECRET = STRIPE_WEBHOOK_SECRET
    PAYPAL_CLIENT_ID = 'paypal_client'
    PAYPAL_SECRET = 'paypal_secret'
    PAYPAL_WEBHOOK_ID = 'WH-TEST'
    SQUARE_ACCESS_TOKEN = None
    TAP_SECRET_KEY = None

    MAIL_SUPPRESS_SEND = True
    AVAILABILITY_OPEN_HOUR = 8
    AVAILABILITY_CLOSE_HOUR = 18


class FakeGateway(PaymentGateway):
    """In-memory adapter: issues sequential ids and answers confirms from ``confirm_status``"""

    provider_name = 'Fake'

    def __init__(self, config):
        super().__init__(config)
        self.created = []
        self.refunds = []
        self.confirm_status = IntentStatus.COMPLETED
        self.error = None

    def create(self, amount, currency, booking_id, metadata=None, timeout=None):
        if self.error is not None:
            raise self.error
        provider_id = f"{self.config.id}_test_{len(self.created) + 1}"
        self.created.append({'amount': amount, 'currency': currency, 'booking_id': booking_id,
                             'metadata': metadata, 'timeout': timeout})
        return GatewayCharge(provider_id=provider_id, client_secret=f"{provider_id}_secret")

    def confirm(self, provider_id, token=None, timeout=None):
        if self.error is not None:
            raise self.error
        return GatewayConfirmation(status=self.confirm_status, payment_method='card')

    def refund(self, provider_id, amount, currency, reason=None, timeout=None):
        if self.error is not None:
            raise self.error
        self.refunds.append({'provider_id': provider_id, 'amount': amount, 'reason': reason})
        return f"re_{provider_id}"

    def ping(self, timeout=None):
        if self.error is not None:
            raise self.error

    def parse_webhook(self, payload, headers, timeout=None):
        if headers.get('X-Test-Signature') != 'valid':
            raise ValidationError('Invalid signature')
        data = json.loads(payload)
        return WebhookEvent(event_type=data['type'], intent_id=data['id'], status=IntentStatus(data['status']))


class RecordingDispatcher(NotificationDispatcher):
    """Renders templates like the real dispatcher but records instead of sending"""

    def __init__(self):
        super().__init__(suppress_send=True, frontend_url='http://localhost:3000')
        self.sent = []
        self.error = None

    def send(self, to, subject, template, timeout=None, **context):
        if self.error is not None:
            raise self.error
        super().send(to, subject, template, timeout=timeout, **context)
        self.sent.append({'to': to, 'subject': subject, 'template': template})
        return True

    def templates(self):
        return [message['template'] for message in self.sent]


def stripe_signature(payload, secret=STRIPE_WEBHOOK_SECRET, timestamp=None):
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode('utf-8')
    signature = hmac.new(secret.encode('utf-8'), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig)
    app.config['RECEIPTS_DIR'] = str(tmp_path / 'receipts')

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def dispatcher(app):
    recording = RecordingDispatcher()
    app.extensions['notification_dispatcher'] = recording
    return recording


@pytest.fixture
def fake_gateway(app):
    registry = app.extensions['gateway_registry']
    fake = FakeGateway(registry.get('stripe'))
    app.extensions['payment_gateways']['stripe'] = fake
    return fake


@pytest.fixture
def orchestrator(app, dispatcher):
    return get_payment_orchestrator()


def _make_user(db, email, role=UserRole.CUSTOMER):
    user = User(email=email, first_name='Test', last_name=role.value.title(), role=role)
    user.set_password('Password123')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def customer(db):
    return _make_user(db, 'customer@example.com')


@pytest.fixture
def other_customer(db):
    return _make_user(db, 'other@example.com')


@pytest.fixture
def admin(db):
    return _make_user(db, 'admin@example.com', role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(app):
    def headers_for(user):
        return {'Authorization': f"Bearer {create_access_token(identity=user.id)}"}
    return headers_for


@pytest.fixture
def helicopter(db):
    resource = Resource(name='Palm Helicopter Tour', type=ResourceType.HELICOPTER,
                        price_per_hour=Decimal('100.00'), capacity=6, currency='AED')
    db.session.add(resource)
    db.session.commit()
    return resource


@pytest.fixture
def yacht(db):
    resource = Resource(name='Sunset Yacht', type=ResourceType.YACHT, price_per_hour=Decimal('500.00'),
                        price_per_day=Decimal('3000.00'), capacity=12, currency='AED')
    db.session.add(resource)
    db.session.commit()
    return resource


@pytest.fixture
def booking_date():
    return date.today() + timedelta(days=30)


@pytest.fixture
def booking(db, customer, helicopter, booking_date):
    booking = Booking(id=42, resource_id=helicopter.id, user_id=customer.id, date=booking_date,
                      start_time='10:00', duration=1, party_size=2, total_price=Decimal('100.00'),
                      currency='AED', status=BookingStatus.PENDING, contact_email=customer.email)
    db.session.add(booking)
    db.session.commit()
    return booking


@pytest.fixture
def make_intent(db, booking):
    def _make(intent_id='pi_123', status=IntentStatus.PENDING, gateway_id='stripe'):
        intent = PaymentIntent(id=intent_id, booking_id=booking.id, gateway_id=gateway_id,
                               amount=Decimal('100.00'), currency='AED', status=status, payment_metadata={})
        db.session.add(intent)
        db.session.add(PaymentEvent(intent_id=intent_id, status=status, source='api'))
        db.session.commit()
        return intent
    return _make
