# grabcoffee/services/paypal_client.py
import requests

from grabcoffee.services.lock_service import LockService
from grabcoffee.domain.pricing import to_display
from grabcoffee.utils.retry import http_retry
from grabcoffee.utils.settings import (
    PAYPAL_API_BASE,
    PAYPAL_CLIENT_ID,
    PAYPAL_CLIENT_SECRET,
    PAYPAL_RETURN_URL,
    PAYPAL_CANCEL_URL,
    STRIPE_CURRENCY,
)
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

TOKEN_CACHE_KEY = "paypal:access_token"


class PayPalError(RuntimeError):
    pass


class PayPalClient:
    """
    1. client credentials -> access token (cache w redis)
    2. utworzenie zamowienia CAPTURE
    3. zwrot linku approve dla kupujacego
    Samo pobranie srodkow (capture) nie jest tu obslugiwane.
    """

    def __init__(
        self,
        lock_service: LockService,
        client_id: str | None = None,
        client_secret: str | None = None,
        base_url: str | None = None,
        currency: str | None = None,
        timeout: int = 10,
    ):
        self.lock_service = lock_service
        self.client_id = client_id or PAYPAL_CLIENT_ID
        self.client_secret = client_secret or PAYPAL_CLIENT_SECRET
        self.base_url = (base_url or PAYPAL_API_BASE).rstrip("/")
        self.currency = (currency or STRIPE_CURRENCY).upper()
        self.timeout = timeout

    @http_retry()
    def _fetch_token(self) -> dict:
        url = f"{self.base_url}/v1/oauth2/token"
        logger.info(f"PayPalClient POST {url}")

        resp = requests.post(
            url,
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        if not resp.ok:
            raise PayPalError(f"PayPal token exchange failed: HTTP {resp.status_code}")
        return resp.json()

    def get_access_token(self) -> str:
        cached = self.lock_service.get_cached(TOKEN_CACHE_KEY)
        if cached:
            return cached

        payload = self._fetch_token()
        token = payload.get("access_token")
        if not token:
            raise PayPalError("PayPal token exchange returned no access_token")

        #token wygasa po expires_in, trzymamy go minute krocej
        ttl = max(int(payload.get("expires_in", 0)) - 60, 1)
        self.lock_service.set_cached(TOKEN_CACHE_KEY, token, ttl)
        return token

    def create_order(self, amount) -> str:
        token = self.get_access_token()
        url = f"{self.base_url}/v2/checkout/orders"
        logger.info(f"PayPalClient POST {url} amount={to_display(amount)} {self.currency}")

        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {"amount": {"currency_code": self.currency, "value": to_display(amount)}}
            ],
            "application_context": {
                "return_url": PAYPAL_RETURN_URL,
                "cancel_url": PAYPAL_CANCEL_URL,
            },
        }
        resp = requests.post(
            url,
            json=body,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.timeout,
        )
        if not resp.ok:
            raise PayPalError(f"PayPal order creation failed: HTTP {resp.status_code}")

        links = resp.json().get("links", [])
        approval = next((link["href"] for link in links if link.get("rel") == "approve"), None)
        if not approval:
            raise PayPalError("PayPal order has no approval link")
        return approval
