"""
Common gateway contract.

Each provider adapter turns a generic create/confirm request into the
provider's API call and normalizes the answer into ``GatewayCharge`` /
``GatewayConfirmation``. Provider-specific failures never cross this boundary:
they surface as ``GatewayError`` or ``GatewayTimeout``.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from charter.errors import GatewayError, GatewayTimeout, GatewayUnavailable
from charter.models.enums import IntentStatus

logger = logging.getLogger(__name__)

# Currencies without a minor unit
ZERO_DECIMAL_CURRENCIES = {'JPY', 'KRW', 'VND', 'CLP', 'XOF', 'XAF'}


@dataclass
class GatewayConfig:
    """Static configuration for one payment gateway"""
    id: str
    name: str
    is_enabled: bool
    api_key: str = ''          # publishable / client-side key
    secret_key: str = ''       # server-side credential
    webhook_secret: str = ''
    test_mode: bool = True
    timeout: float = 15
    supported_currencies: List[str] = field(default_factory=list)
    options: Dict[str, Any] = field(default_factory=dict)

    def to_public_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'publicKey': self.api_key,
            'testMode': self.test_mode,
            'supportedCurrencies': self.supported_currencies,
        }


@dataclass
class GatewayCharge:
    provider_id: str
    client_secret: str
    status: IntentStatus = IntentStatus.PENDING


@dataclass
class GatewayConfirmation:
    status: IntentStatus
    payment_method: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class WebhookEvent:
    """A verified provider callback reduced to (intent id, new status)"""
    event_type: str
    intent_id: str
    status: IntentStatus
    payment_method: Optional[str] = None
    error_message: Optional[str] = None


def to_minor_units(amount: Decimal, currency: str) -> int:
    amount = Decimal(str(amount))
    if currency.upper() in ZERO_DECIMAL_CURRENCIES:
        return int(amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def to_decimal_string(amount: Decimal) -> str:
    return str(Decimal(str(amount)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


class PaymentGateway:
    """Capability every provider adapter implements"""

    provider_name = 'gateway'

    def __init__(self, config: GatewayConfig):
        self.config = config

    @property
    def id(self):
        return self.config.id

    def _timeout(self, timeout: Optional[float]) -> float:
        return timeout if timeout is not None else self.config.timeout

    def create(self, amount: Decimal, currency: str, booking_id: int,
               metadata: Optional[Dict] = None, timeout: Optional[float] = None) -> GatewayCharge:
        raise NotImplementedError

    def confirm(self, provider_id: str, token: Optional[str] = None,
                timeout: Optional[float] = None) -> GatewayConfirmation:
        raise NotImplementedError

    def refund(self, provider_id: str, amount: Decimal, currency: str, reason: Optional[str] = None,
               timeout: Optional[float] = None) -> str:
        """Refund the whole charge and return the provider's refund id"""
        raise NotImplementedError

    def ping(self, timeout: Optional[float] = None) -> None:
        """Raise GatewayError if the provider rejects our credentials"""
        raise NotImplementedError

    def parse_webhook(self, payload: bytes, headers: Mapping[str, str],
                      timeout: Optional[float] = None) -> Optional[WebhookEvent]:
        raise GatewayUnavailable(f"{self.config.name} does not deliver webhooks to this endpoint")


class HttpGateway(PaymentGateway):
    """Base for adapters that talk to a REST API through requests"""

    live_base_url = ''
    sandbox_base_url = ''

    def __init__(self, config: GatewayConfig, session: Optional[requests.Session] = None):
        super().__init__(config)
        self._session = session or self._create_session()

    @property
    def base_url(self):
        return self.sandbox_base_url if self.config.test_mode else self.live_base_url

    @staticmethod
    def _create_session() -> requests.Session:
        session = requests.Session()
        # Only idempotent reads are retried, charge creation must not be replayed
        retry_strategy = Retry(
            total=2,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return session

    def _headers(self, timeout: float) -> Dict[str, str]:
        return {'Content-Type': 'application/json'}

    def _request(self, method: str, path: str, timeout: Optional[float] = None,
                 headers: Optional[Dict[str, str]] = None, **kwargs) -> Dict[str, Any]:
        timeout = self._timeout(timeout)
        url = f"{self.base_url}{path}"
        request_headers = headers if headers is not None else self._headers(timeout)
        try:
            response = self._session.request(method, url, headers=request_headers,
                                             timeout=timeout, **kwargs)
        except requests.exceptions.Timeout:
            logger.error(f"{self.provider_name} request timed out after {timeout}s: {method} {path}")
            raise GatewayTimeout(self.provider_name, f"no response within {timeout} seconds")
        except requests.exceptions.RequestException as e:
            logger.error(f"{self.provider_name} request failed: {type(e).__name__}")
            raise GatewayError(self.provider_name, "could not reach payment provider")

        return self._handle_response(response, method, path)

    def _handle_response(self, response: requests.Response, method: str, path: str) -> Dict[str, Any]:
        try:
            data = response.json() if response.text else {}
        except ValueError:
            data = {}

        if response.status_code < 400:
            return data

        logger.error(
            f"{self.provider_name} returned {response.status_code} for {method} {path}: "
            f"{self._error_summary(data)}"
        )
        if response.status_code in (401, 403):
            raise GatewayError(self.provider_name, "authentication with payment provider failed")
        raise GatewayError(self.provider_name, f"request rejected with status {response.status_code}")

    def _error_summary(self, data: Dict[str, Any]) -> str:
        return str(data.get('message') or data.get('error') or '')[:200]
