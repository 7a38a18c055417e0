# grabcoffee/client/payment_api.py
import requests

from grabcoffee.domain.pricing import to_display
from grabcoffee.utils.settings import PAYMENT_API_URL
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PaymentApiClient:
    """
    Klient backendu platnosci po stronie aplikacji.
    Bez automatycznego ponawiania - blad trafia do uzytkownika, ktory ponawia sam.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 15):
        self.base_url = (base_url or PAYMENT_API_URL).rstrip("/")
        self.timeout = timeout

    def _post(self, path: str, body: dict) -> dict:
        url = f"{self.base_url}{path}"
        logger.info(f"PaymentApiClient POST {url}")

        try:
            resp = requests.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise PaymentApiError(f"Network error: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if not resp.ok:
            message = data.get("error") if isinstance(data, dict) else None
            raise PaymentApiError(message or f"HTTP {resp.status_code}", resp.status_code)
        return data

    def create_payment_intent(self, payload: dict) -> dict:
        data = self._post("/api/payment/create-payment-intent", payload)
        if not data.get("clientSecret"):
            raise PaymentApiError("Payment service returned no client secret")
        return data

    def create_paypal_order(self, amount) -> str:
        data = self._post("/api/payment/create-paypal-order", {"amount": to_display(amount)})
        if not data.get("approvalUrl"):
            raise PaymentApiError("Payment service returned no approval URL")
        return data["approvalUrl"]
