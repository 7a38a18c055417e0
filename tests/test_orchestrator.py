"""
Checkout orchestration: empty cart, cash, card and PayPal paths.
"""

from decimal import Decimal

import pytest

from conftest import FakeAuth, FakeNotifications, FakePaymentApi, FakeRedis, FakeSheet, FakeUI
from grabcoffee.client.cart_store import CartStore
from grabcoffee.client.orchestrator import CheckoutOrchestrator, CheckoutState, InvalidTransition
from grabcoffee.client.ports import AuthSession, SheetResult
from grabcoffee.client.results import (
    AwaitingApproval,
    Blocked,
    Cancelled,
    Failed,
    PayPalApproved,
    ReadyToPay,
    Redirected,
    Started,
    Submitted,
)
from grabcoffee.data.models.contact import NoProfileContactModel
from grabcoffee.data.models.order import OrderModel
from grabcoffee.data.models.payment_method import PaymentMethodModel
from grabcoffee.domain.schemas import PaymentIntentIn
from grabcoffee.services.lock_service import LockService
from grabcoffee.services.payment_intent_service import PaymentIntentService
from grabcoffee.services.profile_service import ProfileService


@pytest.fixture
def signed_in(data):
    ProfileService(data.session).create_profile("user-1", "Ada Lovelace", "ada@example.com", "416-555-0100")
    return FakeAuth(AuthSession(user_id="user-1", email="ada@example.com"))


def make_checkout(cart, data, auth=None, ui=None, payment_api=None, sheet=None, browser=None):
    return CheckoutOrchestrator(
        cart=cart,
        data=data,
        payment_api=payment_api or FakePaymentApi(),
        auth=auth or FakeAuth(),
        ui=ui or FakeUI(),
        payment_sheet=sheet or FakeSheet(),
        browser=browser,
    )


def order_rows(data):
    return data.session.query(OrderModel).order_by(OrderModel.id).all()


# ============================================================================
# Entry
# ============================================================================

class TestBegin:

    def test_empty_cart_redirects_to_menu(self, data, ui, payment_api):
        checkout = make_checkout(CartStore(), data, ui=ui, payment_api=payment_api)

        result = checkout.begin()

        assert result == Redirected("Menu")
        assert ui.navigations == [("Menu", {})]
        assert checkout.state == CheckoutState.IDLE
        assert order_rows(data) == []
        assert payment_api.intent_payloads == []

    def test_totals_and_identity(self, cart, data, signed_in):
        checkout = make_checkout(cart, data, auth=signed_in)

        result = checkout.begin()

        assert isinstance(result, Started)
        assert result.totals.amount_in_cents == 1356
        assert checkout.state == CheckoutState.METHOD_SELECTION
        assert checkout.form.customer_name == "Ada Lovelace"
        assert not checkout.requires_contact

    def test_each_attempt_gets_new_token(self, cart, data):
        checkout = make_checkout(cart, data)
        checkout.begin()
        first = checkout.checkout_token
        checkout.begin()
        assert checkout.checkout_token != first


# ============================================================================
# Contact capture
# ============================================================================

class TestContactCapture:

    def test_anonymous_user_must_give_phone(self, cart, data, ui):
        checkout = make_checkout(cart, data, ui=ui)
        checkout.begin()

        checkout.select_method("pickup")
        assert checkout.state == CheckoutState.CONTACT_CAPTURE

        result = checkout.capture_contact("  ")
        assert isinstance(result, Blocked)
        assert checkout.state == CheckoutState.CONTACT_CAPTURE

        checkout.capture_contact("416-555-0199", "guest@example.com")
        assert checkout.state == CheckoutState.PAYMENT_METHOD_SELECTION

    def test_signed_in_user_skips_capture(self, cart, data, signed_in):
        checkout = make_checkout(cart, data, auth=signed_in)
        checkout.begin()

        checkout.select_method("delivery", "1 Front St W")

        assert checkout.state == CheckoutState.PAYMENT_METHOD_SELECTION

    def test_session_without_profile_needs_contact(self, cart, data):
        auth = FakeAuth(AuthSession(user_id="user-9"))
        checkout = make_checkout(cart, data, auth=auth)
        checkout.begin()

        checkout.select_method("pickup")

        assert checkout.state == CheckoutState.CONTACT_CAPTURE

    def test_payment_selection_before_contact_is_bounced(self, cart, data, ui, payment_api):
        checkout = make_checkout(cart, data, ui=ui, payment_api=payment_api)
        checkout.begin()
        checkout.update_form(customer_name="Ada")
        checkout.select_method("pickup")

        result = checkout.select_payment_method("card")

        assert isinstance(result, Blocked)
        assert checkout.state == CheckoutState.CONTACT_CAPTURE
        assert payment_api.intent_payloads == []

    def test_actions_out_of_order_rejected(self, cart, data):
        checkout = make_checkout(cart, data)
        checkout.begin()

        with pytest.raises(InvalidTransition):
            checkout.confirm_cash()


# ============================================================================
# Cash
# ============================================================================

def _anonymous_cash(cart, data, ui):
    checkout = make_checkout(cart, data, ui=ui)
    checkout.begin()
    checkout.update_form(customer_name="Ada")
    checkout.select_method("pickup")
    checkout.capture_contact("416-555-0199")
    checkout.select_payment_method("cash")
    return checkout


class TestCashFlow:

    def test_policy_must_be_accepted(self, cart, data, ui):
        checkout = _anonymous_cash(cart, data, ui)

        result = checkout.confirm_cash()

        assert isinstance(result, Blocked)
        assert "cash payment policy" in result.reason
        assert ui.alert_titles == [result.reason]
        assert order_rows(data) == []
        assert len(cart) == 2

    def test_submits_cash_rows(self, cart, data, ui):
        checkout = _anonymous_cash(cart, data, ui)
        checkout.accept_policy(True)

        result = checkout.confirm_cash()

        rows = order_rows(data)
        assert result == Submitted(rows[0].id)
        assert [r.payment_method for r in rows] == ["cash", "cash"]
        assert rows[0].delivered is False and rows[1].delivered is None
        assert rows[0].location == "pickup"
        assert rows[0].checkout_token == checkout.checkout_token
        assert cart.items == []
        assert checkout.state == CheckoutState.SUBMITTED
        assert "Order placed!" in ui.alert_titles
        assert ui.navigations[-1] == ("OrderStatus", {"order_id": rows[0].id})

    def test_anonymous_contact_saved(self, cart, data, ui):
        checkout = _anonymous_cash(cart, data, ui)
        checkout.accept_policy()
        result = checkout.confirm_cash()

        contact = data.session.query(NoProfileContactModel).one()
        assert contact.phone == "416-555-0199"
        assert contact.order_id == result.order_id
        assert contact.name == "Ada"

    def test_name_required(self, cart, data, ui):
        checkout = _anonymous_cash(cart, data, ui)
        checkout.update_form(customer_name=" ")
        checkout.accept_policy()

        result = checkout.confirm_cash()

        assert result == Blocked("Please enter your name.")
        assert order_rows(data) == []

    def test_delivery_needs_address(self, cart, data, signed_in, ui):
        checkout = make_checkout(cart, data, auth=signed_in, ui=ui)
        checkout.begin()
        checkout.select_method("delivery")
        checkout.select_payment_method("cash")
        checkout.accept_policy()

        result = checkout.confirm_cash()

        assert result == Blocked("Please enter your delivery address.")

    def test_second_confirm_not_allowed(self, cart, data, ui):
        checkout = _anonymous_cash(cart, data, ui)
        checkout.accept_policy()
        checkout.confirm_cash()

        with pytest.raises(InvalidTransition):
            checkout.confirm_cash()
        assert len(order_rows(data)) == 2


# ============================================================================
# Card
# ============================================================================

def _card_checkout(cart, data, auth, ui, payment_api=None, sheet=None):
    checkout = make_checkout(cart, data, auth=auth, ui=ui, payment_api=payment_api, sheet=sheet)
    checkout.begin()
    checkout.select_method("pickup")
    return checkout


class TestCardFlow:

    def test_intent_requested_with_cents_and_token(self, cart, data, signed_in, ui, payment_api, sheet):
        checkout = _card_checkout(cart, data, signed_in, ui, payment_api, sheet)

        result = checkout.select_payment_method("card")

        assert result == ReadyToPay(order_id=1, amount="13.56")
        assert checkout.card_ready
        assert sheet.secrets == ["pi_1_secret"]

        payload = payment_api.intent_payloads[0]
        assert payload["amountInCents"] == 1356
        assert payload["idempotencyKey"] == checkout.checkout_token
        assert payload["customerName"] == "Ada Lovelace"
        assert payload["address"] == "pickup"
        assert payload["userId"] == "user-1"
        assert len(payload["items"]) == 2

    def test_cancel_keeps_cart(self, cart, data, signed_in, ui):
        sheet = FakeSheet(result=SheetResult(status="cancel"))
        checkout = _card_checkout(cart, data, signed_in, ui, sheet=sheet)
        checkout.select_payment_method("card")

        result = checkout.confirm_card()

        assert isinstance(result, Cancelled)
        assert len(cart) == 2
        assert ("OrderStatus", {"order_id": 1}) not in ui.navigations
        assert checkout.state == CheckoutState.CARD_FLOW
        assert not checkout.loading

    def test_failure_alerts_and_allows_retry(self, cart, data, signed_in, ui):
        sheet = FakeSheet(result=SheetResult(status="failed", error="Your card was declined."))
        checkout = _card_checkout(cart, data, signed_in, ui, sheet=sheet)
        checkout.select_payment_method("card")

        assert checkout.confirm_card() == Failed("Your card was declined.")
        assert ("Payment failed", "Your card was declined.") in ui.alerts

        sheet.result = SheetResult(status="success")
        assert checkout.confirm_card() == Submitted(1)
        assert cart.items == []

    def test_success_keeps_card_when_accepted(self, cart, data, signed_in, ui, sheet):
        checkout = _card_checkout(cart, data, signed_in, ui, sheet=sheet)
        checkout.select_payment_method("card")

        result = checkout.confirm_card()

        assert result == Submitted(1)
        saved = data.session.query(PaymentMethodModel).one()
        assert saved.user_id == "user-1"
        assert saved.last4 == "4242"
        assert saved.processor_id == "pm_123"
        assert ui.navigations[-1] == ("OrderStatus", {"order_id": 1})

    def test_declining_save_removes_card(self, cart, data, signed_in, sheet):
        ui = FakeUI(confirm_answer=False)
        checkout = _card_checkout(cart, data, signed_in, ui, sheet=sheet)
        checkout.select_payment_method("card")

        assert checkout.confirm_card() == Submitted(1)
        assert ui.confirms == ["Save this card?"]
        assert data.session.query(PaymentMethodModel).count() == 0

    def test_saved_card_is_not_offered_again(self, cart, data, signed_in, ui, sheet):
        checkout = _card_checkout(cart, data, signed_in, ui, sheet=sheet)
        checkout.update_form(saved_payment_method_id="pm_saved")
        checkout.select_payment_method("card")

        checkout.confirm_card()

        assert ui.confirms == []

    def test_intent_error_is_surfaced(self, cart, data, signed_in, ui, sheet):
        payment_api = FakePaymentApi(error="No items provided.")
        checkout = _card_checkout(cart, data, signed_in, ui, payment_api=payment_api, sheet=sheet)

        result = checkout.select_payment_method("card")

        assert result == Failed("No items provided.")
        assert ("Payment error", "No items provided.") in ui.alerts
        assert not checkout.card_ready
        assert sheet.secrets == []
        assert checkout.state == CheckoutState.PAYMENT_METHOD_SELECTION

    def test_sheet_init_error(self, cart, data, signed_in, ui):
        sheet = FakeSheet(init_error="Invalid client secret")
        checkout = _card_checkout(cart, data, signed_in, ui, sheet=sheet)

        assert checkout.select_payment_method("card") == Failed("Invalid client secret")
        assert not checkout.card_ready

    def test_validation_blocks_before_network(self, cart, data, ui, payment_api):
        checkout = make_checkout(cart, data, ui=ui, payment_api=payment_api)
        checkout.begin()
        checkout.select_method("pickup")
        checkout.capture_contact("416-555-0199")

        result = checkout.select_payment_method("card")

        assert result == Blocked("Please enter your name.")
        assert payment_api.intent_payloads == []

    def test_in_flight_request_blocks_reentry(self, cart, data, signed_in, ui, payment_api):
        checkout = _card_checkout(cart, data, signed_in, ui, payment_api=payment_api)
        checkout.loading = True

        assert isinstance(checkout.select_payment_method("card"), Blocked)
        assert payment_api.intent_payloads == []


# ============================================================================
# PayPal
# ============================================================================

class TestPayPalFlow:

    def _start(self, cart, data, signed_in, ui, browser, payment_api=None):
        checkout = make_checkout(cart, data, auth=signed_in, ui=ui, browser=browser, payment_api=payment_api)
        checkout.begin()
        checkout.select_method("pickup")
        return checkout

    def test_opens_approval_url(self, cart, data, signed_in, ui, browser, payment_api):
        checkout = self._start(cart, data, signed_in, ui, browser, payment_api)

        result = checkout.select_payment_method("paypal")

        assert isinstance(result, AwaitingApproval)
        assert browser.opened == [payment_api.approval_url]
        assert payment_api.paypal_amounts[0] == Decimal("13.56")
        assert checkout.state == CheckoutState.PAYPAL_FLOW

    def test_success_marker_closes_browser(self, cart, data, signed_in, ui, browser):
        checkout = self._start(cart, data, signed_in, ui, browser)
        checkout.select_payment_method("paypal")

        assert checkout.handle_paypal_navigation("https://www.sandbox.paypal.com/checkoutnow") is None

        result = checkout.handle_paypal_navigation("https://grabcoffee.app/paypal-success?token=EC-1")

        assert isinstance(result, PayPalApproved)
        assert browser.closed == 1
        assert "Payment approved" in ui.alert_titles

    def test_cancel_marker_is_benign(self, cart, data, signed_in, ui, browser):
        checkout = self._start(cart, data, signed_in, ui, browser)
        checkout.select_payment_method("paypal")

        result = checkout.handle_paypal_navigation("https://grabcoffee.app/paypal-cancel?token=EC-1")

        assert isinstance(result, Cancelled)
        assert browser.closed == 1
        assert checkout.state == CheckoutState.PAYMENT_METHOD_SELECTION
        assert len(cart) == 2

    def test_order_creation_error(self, cart, data, signed_in, ui, browser):
        payment_api = FakePaymentApi(error="PayPal token exchange failed: HTTP 401")
        checkout = self._start(cart, data, signed_in, ui, browser, payment_api)

        result = checkout.select_payment_method("paypal")

        assert result == Failed("PayPal token exchange failed: HTTP 401")
        assert browser.opened == []


# ============================================================================
# Switching payment method
# ============================================================================

class InProcessPaymentApi:
    """Payment API answered by the real PaymentIntentService on the same session."""

    def __init__(self, db, stripe, lock_service, notifications):
        self.service = PaymentIntentService(db, stripe, lock_service, notifications)
        self.intent_payloads = []

    def create_payment_intent(self, payload):
        self.intent_payloads.append(payload)
        result = self.service.create_payment_intent(PaymentIntentIn(**payload))
        return {"clientSecret": result["client_secret"], "amount": result["amount"], "orderId": result["order_id"]}

    def create_paypal_order(self, amount):
        return "https://paypal.test/approve?token=EC-2"


@pytest.fixture
def in_process_api(data, fake_stripe, lock_service, notifications):
    return InProcessPaymentApi(data.session, fake_stripe, lock_service, notifications)


class TestPaymentMethodSwitch:

    def test_card_then_cash_inserts_cash_rows(self, cart, data, signed_in, ui, in_process_api):
        checkout = _card_checkout(cart, data, signed_in, ui, payment_api=in_process_api)
        card = checkout.select_payment_method("card")
        card_token = in_process_api.intent_payloads[0]["idempotencyKey"]

        checkout.select_payment_method("cash")
        checkout.accept_policy()
        result = checkout.confirm_cash()

        assert isinstance(result, Submitted)
        assert result.order_id != card.order_id
        assert checkout.checkout_token != card_token

        cash_rows = [r for r in order_rows(data) if r.payment_method == "cash"]
        assert len(cash_rows) == 2
        assert cash_rows[0].id == result.order_id
        assert all(r.payment_intent_id is None for r in cash_rows)
        assert ui.navigations[-1] == ("OrderStatus", {"order_id": result.order_id})

    def test_card_paypal_card_creates_new_intent(self, cart, data, signed_in, ui, browser, fake_stripe):
        api = InProcessPaymentApi(data.session, fake_stripe, LockService(client=FakeRedis()), FakeNotifications())
        checkout = make_checkout(cart, data, auth=signed_in, ui=ui, payment_api=api, browser=browser)
        checkout.begin()
        checkout.select_method("pickup")

        first = checkout.select_payment_method("card")
        checkout.select_payment_method("paypal")
        checkout.close_paypal()
        second = checkout.select_payment_method("card")

        keys = [c["idempotency_key"] for c in fake_stripe.created]
        assert len(keys) == 2
        assert keys[0] != keys[1]
        assert second.order_id != first.order_id

    def test_retrying_card_reuses_intent(self, cart, data, signed_in, ui, in_process_api, fake_stripe):
        checkout = _card_checkout(cart, data, signed_in, ui, payment_api=in_process_api)

        first = checkout.select_payment_method("card")
        second = checkout.select_payment_method("card")

        assert second.order_id == first.order_id
        assert len(fake_stripe.created) == 1

    def test_cash_ignores_card_rows_under_same_token(self, cart, data, ui):
        checkout = _anonymous_cash(cart, data, ui)
        data.session.add(OrderModel(
            name="Ada", drink_id="9", drink_name="Espresso", price=Decimal("3.00"), quantity=1,
            total_amount=Decimal("3.39"), method="pickup", payment_method="card",
            checkout_token=checkout.checkout_token, payment_intent_id="pi_stale",
        ))
        data.session.commit()
        checkout.accept_policy()

        result = checkout.confirm_cash()

        cash_rows = [r for r in order_rows(data) if r.payment_method == "cash"]
        assert [r.id for r in cash_rows][0] == result.order_id
        assert len(cash_rows) == 2
