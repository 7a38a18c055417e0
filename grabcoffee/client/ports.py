# grabcoffee/client/ports.py
"""
Zewnetrzne zaleznosci aplikacji widziane tylko przez interfejs:
auth provider, arkusz platnosci Stripe, przegladarka (OAuth, PayPal),
UI (alerty, nawigacja) i geolokalizacja.
"""
from dataclasses import dataclass
from typing import Protocol


class AuthError(Exception):
    pass


@dataclass(frozen=True)
class AuthSession:
    user_id: str
    email: str | None = None
    full_name: str | None = None
    access_token: str | None = None


class AuthProvider(Protocol):
    def get_session(self) -> AuthSession | None: ...

    def sign_in_with_password(self, email: str, password: str) -> AuthSession: ...

    def sign_up(self, email: str, password: str, metadata: dict) -> AuthSession: ...

    def oauth_url(self, provider: str, redirect_to: str, query_params: dict) -> str | None: ...

    def exchange_code_for_session(self, callback_url: str) -> AuthSession | None: ...


@dataclass(frozen=True)
class BrowserResult:
    type: str  # success, cancel, dismiss, ...
    url: str | None = None


class Browser(Protocol):
    def open_auth_session(self, url: str, redirect_url: str) -> BrowserResult: ...

    def open(self, url: str) -> None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class CardDetails:
    processor_id: str
    brand: str | None = None
    last4: str | None = None


@dataclass(frozen=True)
class SheetResult:
    status: str  # success, cancel, failed
    error: str | None = None
    card: CardDetails | None = None


class PaymentSheet(Protocol):
    def init(self, client_secret: str) -> str | None:
        """Zwraca komunikat bledu albo None."""
        ...

    def present(self) -> SheetResult: ...


class UserInterface(Protocol):
    def alert(self, title: str, message: str = "") -> None: ...

    def confirm(self, title: str, message: str = "") -> bool: ...

    def navigate(self, screen: str, **params) -> None: ...


class Locator(Protocol):
    def current_position(self) -> tuple[float, float] | None: ...
