# grabcoffee/services/stripe_client.py
import requests

from grabcoffee.utils.retry import http_retry
from grabcoffee.utils.settings import STRIPE_API_BASE, STRIPE_SECRET_KEY, STRIPE_CURRENCY
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)


class StripeError(RuntimeError):
    pass


class StripeClient:
    """Cienki klient REST API Stripe (form-encoded, basic auth kluczem sekretnym)."""

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        currency: str | None = None,
        timeout: int = 10,
    ):
        self.secret_key = secret_key or STRIPE_SECRET_KEY
        self.base_url = (base_url or STRIPE_API_BASE).rstrip("/")
        self.currency = currency or STRIPE_CURRENCY
        self.timeout = timeout

    def _raise_for_error(self, resp: requests.Response):
        if resp.ok:
            return
        try:
            message = resp.json().get("error", {}).get("message")
        except ValueError:
            message = None
        raise StripeError(message or f"Stripe HTTP {resp.status_code}")

    #retry jest bezpieczny bo kazdy POST idzie z Idempotency-Key
    @http_retry()
    def create_payment_intent(
        self,
        amount: int,
        idempotency_key: str,
        customer: str | None = None,
        payment_method: str | None = None,
        save_card: bool = False,
        metadata: dict | None = None,
    ) -> dict:
        data = {
            "amount": amount,
            "currency": self.currency,
            "automatic_payment_methods[enabled]": "true",
        }
        if customer:
            data["customer"] = customer
        if payment_method:
            data["payment_method"] = payment_method
        if save_card:
            data["setup_future_usage"] = "off_session"
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = str(value)

        url = f"{self.base_url}/v1/payment_intents"
        logger.info(f"StripeClient POST {url} amount={amount} {self.currency}")

        resp = requests.post(
            url,
            data=data,
            auth=(self.secret_key, ""),
            headers={"Idempotency-Key": idempotency_key},
            timeout=self.timeout,
        )
        self._raise_for_error(resp)
        return resp.json()

    @http_retry()
    def retrieve_payment_intent(self, intent_id: str) -> dict:
        url = f"{self.base_url}/v1/payment_intents/{intent_id}"
        logger.info(f"StripeClient GET {url}")

        resp = requests.get(url, auth=(self.secret_key, ""), timeout=self.timeout)
        self._raise_for_error(resp)
        return resp.json()
