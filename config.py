import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_list(name, default):
    value = os.getenv(name, default)
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///charter.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY") or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", 3600))

    # Frontend URL for email links
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
    RECEIPTS_DIR = os.getenv("RECEIPTS_DIR") or os.path.join(os.path.abspath(os.path.dirname(__file__)), 'receipts')

    # Payments
    PAYMENT_GATEWAYS = _env_list("PAYMENT_GATEWAYS", "stripe,paypal,square,tap")
    PAYMENT_TEST_MODE = _env_bool("PAYMENT_TEST_MODE", True)
    SUPPORTED_CURRENCIES = _env_list("SUPPORTED_CURRENCIES", "AED,USD,EUR,GBP")
    DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "AED")
    PAYMENT_MIN_AMOUNT = os.getenv("PAYMENT_MIN_AMOUNT", "0.01")
    PAYMENT_MAX_AMOUNT = os.getenv("PAYMENT_MAX_AMOUNT", "1000000")
    GATEWAY_TIMEOUT = float(os.getenv("GATEWAY_TIMEOUT", 15))
    PAYMENT_VERIFY_CONFIRMATIONS = _env_bool("PAYMENT_VERIFY_CONFIRMATIONS", True)
    REFUND_CANCELS_BOOKING = _env_bool("REFUND_CANCELS_BOOKING", False)

    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

    PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID")
    PAYPAL_SECRET = os.getenv("PAYPAL_SECRET")
    PAYPAL_WEBHOOK_ID = os.getenv("PAYPAL_WEBHOOK_ID")

    SQUARE_ACCESS_TOKEN = os.getenv("SQUARE_ACCESS_TOKEN")
    SQUARE_APPLICATION_ID = os.getenv("SQUARE_APPLICATION_ID")
    SQUARE_LOCATION_ID = os.getenv("SQUARE_LOCATION_ID")

    TAP_SECRET_KEY = os.getenv("TAP_SECRET_KEY")
    TAP_PUBLIC_KEY = os.getenv("TAP_PUBLIC_KEY")

    # Mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "bookings@dubai-luxury.com")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)
    NOTIFICATION_TIMEOUT = float(os.getenv("NOTIFICATION_TIMEOUT", 10))

    # Availability
    AVAILABILITY_OPEN_HOUR = int(os.getenv("AVAILABILITY_OPEN_HOUR", 8))
    AVAILABILITY_CLOSE_HOUR = int(os.getenv("AVAILABILITY_CLOSE_HOUR", 18))
