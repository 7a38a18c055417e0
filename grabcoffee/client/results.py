# grabcoffee/client/results.py
from dataclasses import dataclass
from decimal import Decimal

from grabcoffee.client.ports import AuthSession


#wyniki checkoutu

@dataclass(frozen=True)
class Started:
    totals: object


@dataclass(frozen=True)
class Advanced:
    state: str


@dataclass(frozen=True)
class Redirected:
    screen: str


@dataclass(frozen=True)
class Blocked:
    reason: str


@dataclass(frozen=True)
class ReadyToPay:
    order_id: int
    amount: str


@dataclass(frozen=True)
class AwaitingApproval:
    approval_url: str
    amount: Decimal


@dataclass(frozen=True)
class PayPalApproved:
    url: str


@dataclass(frozen=True)
class Submitted:
    order_id: int


@dataclass(frozen=True)
class Cancelled:
    reason: str = ""


@dataclass(frozen=True)
class Failed:
    reason: str


#wyniki logowania

@dataclass(frozen=True)
class AuthSuccess:
    session: AuthSession


@dataclass(frozen=True)
class AuthCancelled:
    pass


@dataclass(frozen=True)
class AuthFailed:
    reason: str
