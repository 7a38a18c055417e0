"""
Shared fixtures and test doubles for the grabcoffee test suite.
"""

import os

# baza w pamieci i broker w pamieci zanim settings sie zaladuja
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pytest

import grabcoffee.data.models  # noqa: F401
from grabcoffee.celery_worker import celery_app
from grabcoffee.client.cart_store import CartStore
from grabcoffee.client.payment_api import PaymentApiError
from grabcoffee.client.ports import AuthError, AuthSession, BrowserResult, CardDetails, SheetResult
from grabcoffee.data.client import DataClient
from grabcoffee.data.database import Base, SessionLocal, engine
from grabcoffee.domain.menu import build_cart_item
from grabcoffee.domain.schemas import CartItem
from grabcoffee.services.lock_service import LockService

celery_app.conf.task_always_eager = True


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(tables):
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def data(tables):
    client = DataClient(SessionLocal).start()
    yield client
    client.stop()


@pytest.fixture
def staff_session(tables):
    """Osobna sesja udajaca narzedzia obslugi kawiarni."""
    session = SessionLocal()
    yield session
    session.close()


# ============================================================================
# Items
# ============================================================================


def make_item(price: str, quantity: int = 1, drink_id: str = "1", name: str = "Iced Latte") -> CartItem:
    return CartItem(
        id=f"item-{drink_id}-{price}-{quantity}",
        drink_id=drink_id,
        name=name,
        price=Decimal(price),
        quantity=quantity,
        sugar=False,
        milk_type="milk",
    )


@pytest.fixture
def two_drinks() -> List[CartItem]:
    return [
        make_item("4.50", 2, drink_id="1", name="Iced Latte"),
        make_item("3.00", 1, drink_id="9", name="Espresso"),
    ]


@pytest.fixture
def cart() -> CartStore:
    store = CartStore()
    store.add_item(build_cart_item("1", quantity=2, sugar=True, milk_type="oat"))
    store.add_item(build_cart_item("9"))
    return store


# ============================================================================
# Redis / Stripe / notifications
# ============================================================================


class FakeRedis:
    """Minimal in-memory stand-in for the redis client API the lock service uses."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    def set(self, name, value, nx=False, ex=None):
        if nx and name in self.store:
            return None
        self.store[name] = value
        if ex is not None:
            self.ttls[name] = ex
        return True

    def get(self, name):
        return self.store.get(name)

    def eval(self, script, numkeys, key, owner):
        if self.store.get(key) == owner:
            del self.store[key]
            return 1
        return 0


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def lock_service(fake_redis) -> LockService:
    return LockService(client=fake_redis)


class FakeStripe:
    def __init__(self, error: Optional[Exception] = None, status: str = "requires_payment_method"):
        self.error = error
        self.status = status
        self.created: List[Dict[str, Any]] = []
        self.retrieved: List[str] = []

    def create_payment_intent(self, amount, idempotency_key, customer=None, payment_method=None,
                              save_card=False, metadata=None):
        if self.error:
            raise self.error
        intent_id = f"pi_{len(self.created) + 1}"
        self.created.append({
            "id": intent_id,
            "amount": amount,
            "idempotency_key": idempotency_key,
            "payment_method": payment_method,
            "save_card": save_card,
            "metadata": metadata,
        })
        return {"id": intent_id, "client_secret": f"{intent_id}_secret", "status": self.status}

    def retrieve_payment_intent(self, intent_id):
        if self.error:
            raise self.error
        self.retrieved.append(intent_id)
        return {"id": intent_id, "client_secret": f"{intent_id}_secret", "status": self.status}


@pytest.fixture
def fake_stripe() -> FakeStripe:
    return FakeStripe()


class FakeNotifications:
    def __init__(self):
        self.sent: List[Tuple[int, str, str]] = []

    def send_order_placed(self, order_id, customer_name, payment_method):
        self.sent.append((order_id, customer_name, payment_method))


@pytest.fixture
def notifications() -> FakeNotifications:
    return FakeNotifications()


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


# ============================================================================
# Client side ports
# ============================================================================


class FakeUI:
    def __init__(self, confirm_answer: bool = True):
        self.confirm_answer = confirm_answer
        self.alerts: List[Tuple[str, str]] = []
        self.confirms: List[str] = []
        self.navigations: List[Tuple[str, dict]] = []

    def alert(self, title, message=""):
        self.alerts.append((title, message))

    def confirm(self, title, message=""):
        self.confirms.append(title)
        return self.confirm_answer

    def navigate(self, screen, **params):
        self.navigations.append((screen, params))

    @property
    def alert_titles(self):
        return [title for title, _ in self.alerts]


class FakeSheet:
    def __init__(self, init_error: Optional[str] = None, result: Optional[SheetResult] = None):
        self.init_error = init_error
        self.result = result or SheetResult(
            status="success",
            card=CardDetails(processor_id="pm_123", brand="Visa", last4="4242"),
        )
        self.secrets: List[str] = []
        self.presented = 0

    def init(self, client_secret):
        self.secrets.append(client_secret)
        return self.init_error

    def present(self):
        self.presented += 1
        return self.result


class FakePaymentApi:
    def __init__(self, error: Optional[str] = None, order_id: int = 1, approval_url: str = "https://paypal.test/approve?token=EC-1"):
        self.error = error
        self.order_id = order_id
        self.approval_url = approval_url
        self.intent_payloads: List[dict] = []
        self.paypal_amounts: List[Decimal] = []

    def create_payment_intent(self, payload):
        self.intent_payloads.append(payload)
        if self.error:
            raise PaymentApiError(self.error, 500)
        return {"clientSecret": "pi_1_secret", "amount": "13.56", "orderId": self.order_id}

    def create_paypal_order(self, amount):
        self.paypal_amounts.append(amount)
        if self.error:
            raise PaymentApiError(self.error, 500)
        return self.approval_url


class FakeAuth:
    def __init__(self, session: Optional[AuthSession] = None, error: Optional[str] = None):
        self.session = session
        self.error = error
        self.sign_ups: List[Tuple[str, dict]] = []
        self.oauth_requests: List[Tuple[str, str, dict]] = []
        self.exchanged: List[str] = []

    def get_session(self):
        return self.session

    def sign_in_with_password(self, email, password):
        if self.error:
            raise AuthError(self.error)
        self.session = AuthSession(user_id="user-1", email=email)
        return self.session

    def sign_up(self, email, password, metadata):
        if self.error:
            raise AuthError(self.error)
        self.sign_ups.append((email, metadata))
        self.session = AuthSession(user_id="user-new", email=email, full_name=metadata.get("full_name"))
        return self.session

    def oauth_url(self, provider, redirect_to, query_params):
        self.oauth_requests.append((provider, redirect_to, query_params))
        return f"https://auth.test/authorize?provider={provider}"

    def exchange_code_for_session(self, callback_url):
        if self.error:
            raise AuthError(self.error)
        self.exchanged.append(callback_url)
        self.session = AuthSession(user_id="user-oauth", email="oauth@example.com", full_name="OAuth User")
        return self.session


class FakeBrowser:
    def __init__(self, auth_result: Optional[BrowserResult] = None):
        self.auth_result = auth_result or BrowserResult(type="cancel")
        self.opened: List[str] = []
        self.closed = 0

    def open_auth_session(self, url, redirect_url):
        self.opened.append(url)
        return self.auth_result

    def open(self, url):
        self.opened.append(url)

    def close(self):
        self.closed += 1


class FakeLocator:
    def __init__(self, position=None):
        self.position = position

    def current_position(self):
        return self.position


@pytest.fixture
def ui() -> FakeUI:
    return FakeUI()


@pytest.fixture
def sheet() -> FakeSheet:
    return FakeSheet()


@pytest.fixture
def payment_api() -> FakePaymentApi:
    return FakePaymentApi()


@pytest.fixture
def browser() -> FakeBrowser:
    return FakeBrowser()
