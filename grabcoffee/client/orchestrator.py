# grabcoffee/client/orchestrator.py
"""
Checkout po stronie aplikacji.

IDLE -> METHOD_SELECTION -> [CONTACT_CAPTURE] -> PAYMENT_METHOD_SELECTION
     -> CARD_FLOW | CASH_FLOW | PAYPAL_FLOW -> SUBMITTED

Bledy walidacji blokuja akcje bez zadnego wywolania sieciowego.
Bledy sieci/procesora koncza sie alertem z komunikatem, bez ponawiania.
Anulowanie przez uzytkownika nie jest bledem.
"""
import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from grabcoffee.client.cart_store import CartStore
from grabcoffee.client.payment_api import PaymentApiClient, PaymentApiError
from grabcoffee.client.ports import AuthProvider, Browser, PaymentSheet, SheetResult, UserInterface
from grabcoffee.client.results import (
    Advanced,
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
from grabcoffee.data.client import DataClient
from grabcoffee.data.models.contact import NoProfileContactModel
from grabcoffee.domain.pricing import Totals, compute_totals, round_money
from grabcoffee.services.order_service import PICKUP_LOCATION, build_order_rows
from grabcoffee.services.payment_method_service import PaymentMethodService
from grabcoffee.utils.settings import TAX_RATE
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

PAYPAL_SUCCESS_MARKER = "paypal-success"
PAYPAL_CANCEL_MARKER = "paypal-cancel"

SHEET_SUCCESS = {"success", "completed", "succeeded"}
SHEET_CANCELLED = {"cancel", "canceled", "cancelled"}


class CheckoutState(str, Enum):
    IDLE = "idle"
    METHOD_SELECTION = "method_selection"
    CONTACT_CAPTURE = "contact_capture"
    PAYMENT_METHOD_SELECTION = "payment_method_selection"
    CARD_FLOW = "card_flow"
    CASH_FLOW = "cash_flow"
    PAYPAL_FLOW = "paypal_flow"
    SUBMITTED = "submitted"


#stany w ktorych mozna jeszcze zmieniac formularz
EDITABLE_STATES = {
    CheckoutState.METHOD_SELECTION,
    CheckoutState.CONTACT_CAPTURE,
    CheckoutState.PAYMENT_METHOD_SELECTION,
    CheckoutState.CARD_FLOW,
    CheckoutState.CASH_FLOW,
    CheckoutState.PAYPAL_FLOW,
}


class InvalidTransition(RuntimeError):
    pass


@dataclass
class CheckoutForm:
    customer_name: str = ""
    address: str = ""
    method: str | None = None  # pickup, delivery
    payment_method: str | None = None  # card, cash, paypal
    phone: str = ""
    email: str = ""
    policy_accepted: bool = False
    save_card: bool = False
    saved_payment_method_id: str | None = None
    order_time: str | None = None


class CheckoutOrchestrator:
    def __init__(
        self,
        cart: CartStore,
        data: DataClient,
        payment_api: PaymentApiClient,
        auth: AuthProvider,
        ui: UserInterface,
        payment_sheet: PaymentSheet | None = None,
        browser: Browser | None = None,
        tax_rate: Decimal = TAX_RATE,
    ):
        self.cart = cart
        self.data = data
        self.payment_api = payment_api
        self.auth = auth
        self.ui = ui
        self.payment_sheet = payment_sheet
        self.browser = browser
        self.tax_rate = tax_rate

        self.state = CheckoutState.IDLE
        self.form = CheckoutForm()
        self.totals: Totals | None = None
        self.session = None
        self.profile = None
        self.contact_captured = False
        self.loading = False
        self.card_ready = False
        self.order_id: int | None = None
        self.checkout_token: str | None = None

    # ------------------------------------------------------------------
    # wejscie i wybory uzytkownika
    # ------------------------------------------------------------------
    @property
    def requires_contact(self) -> bool:
        return self.session is None or self.profile is None

    def begin(self, tax=None, tip=None):
        if not self.cart.items:
            return self._redirect_empty_cart()

        self.totals = compute_totals(self.cart.items, tax=tax, tip=tip, tax_rate=self.tax_rate)
        #nowy klucz idempotencji na kazda probe checkoutu
        self.checkout_token = uuid.uuid4().hex
        self.session, self.profile = self._load_identity()

        if self.profile is not None:
            self.form.customer_name = self.form.customer_name or self.profile.full_name
            self.form.phone = self.form.phone or (self.profile.phone or "")
            self.form.email = self.form.email or self.profile.email

        self.state = CheckoutState.METHOD_SELECTION
        logger.info(f"Checkout {self.checkout_token} started, total {self.totals.display()['total']}")
        return Started(self.totals)

    def update_form(self, **fields) -> None:
        self._require(EDITABLE_STATES)
        for key, value in fields.items():
            if not hasattr(self.form, key):
                raise AttributeError(f"Unknown checkout field: {key}")
            setattr(self.form, key, value)

    def select_method(self, method: str, address: str | None = None):
        self._require(EDITABLE_STATES)

        if method not in ("pickup", "delivery"):
            return self._block("Please choose delivery or pickup.")

        self.form.method = method
        if address is not None:
            self.form.address = address

        if self.requires_contact and not self.contact_captured:
            self.state = CheckoutState.CONTACT_CAPTURE
        else:
            self.state = CheckoutState.PAYMENT_METHOD_SELECTION
        return Advanced(self.state.value)

    def capture_contact(self, phone: str, email: str | None = None):
        self._require({CheckoutState.CONTACT_CAPTURE})

        if not phone or not phone.strip():
            return self._block("Please enter a phone number so we can reach you about your order.")

        self.form.phone = phone.strip()
        self.form.email = (email or "").strip()
        self.contact_captured = True
        self.state = CheckoutState.PAYMENT_METHOD_SELECTION
        return Advanced(self.state.value)

    def select_payment_method(self, payment_method: str):
        self._require(EDITABLE_STATES - {CheckoutState.METHOD_SELECTION})

        if self.loading:
            return Blocked("Checkout is already in progress.")

        if self.requires_contact and not self.contact_captured:
            self.state = CheckoutState.CONTACT_CAPTURE
            return self._block("Please add your contact details first.")

        if payment_method != "card" and self.order_id is not None:
            self._abandon_card_intent()

        if payment_method == "card":
            return self._enter_card_flow()
        if payment_method == "cash":
            self.form.payment_method = "cash"
            self.card_ready = False
            self.state = CheckoutState.CASH_FLOW
            return Advanced(self.state.value)
        if payment_method == "paypal":
            return self._enter_paypal_flow()

        return self._block("Please choose a payment method.")

    def accept_policy(self, accepted: bool = True) -> None:
        self.form.policy_accepted = accepted

    # ------------------------------------------------------------------
    # karta
    # ------------------------------------------------------------------
    def _enter_card_flow(self):
        if not self.cart.items:
            return self._redirect_empty_cart()

        reason = self._validate_fields()
        if reason:
            return self._block(reason)

        self.form.payment_method = "card"
        self.card_ready = False
        self.loading = True
        try:
            response = self.payment_api.create_payment_intent(self._intent_payload())
        except PaymentApiError as e:
            logger.error(f"Payment intent error: {e.message}")
            self.ui.alert("Payment error", e.message)
            return Failed(e.message)
        finally:
            self.loading = False

        self.order_id = response.get("orderId")

        try:
            init_error = self.payment_sheet.init(response["clientSecret"])
        except Exception as e:
            logger.error(f"Payment sheet init error: {e}")
            init_error = str(e)

        if init_error:
            self.ui.alert("Payment error", init_error)
            return Failed(init_error)

        self.card_ready = True
        self.state = CheckoutState.CARD_FLOW
        return ReadyToPay(order_id=self.order_id, amount=response.get("amount", ""))

    def confirm_card(self):
        self._require({CheckoutState.CARD_FLOW})

        if not self.card_ready or self.loading:
            return Blocked("Payment is not ready yet.")

        self.loading = True
        try:
            result = self.payment_sheet.present()
        except Exception as e:
            logger.error(f"Payment sheet error: {e}")
            result = SheetResult(status="failed", error=str(e))
        finally:
            self.loading = False

        status = (result.status or "").lower()

        if status in SHEET_CANCELLED:
            logger.info(f"Card payment for checkout {self.checkout_token} cancelled by user")
            return Cancelled("Payment cancelled")

        if status not in SHEET_SUCCESS:
            message = result.error or "Your payment could not be completed. Please try again."
            logger.error(f"Card payment failed: {message}")
            self.ui.alert("Payment failed", message)
            return Failed(message)

        self._offer_to_keep_card(result)
        return self._finish(self.order_id)

    def _offer_to_keep_card(self, result: SheetResult) -> None:
        if self.session is None or self.form.saved_payment_method_id or result.card is None:
            return

        card = result.card
        service = PaymentMethodService(self.data.session)
        try:
            #SDK procesora zapisuje karte od razu, tu tylko odzwierciedlamy to w tabeli
            record = service.add_method(
                self.session.user_id,
                name=f"{card.brand or 'Card'} •••• {card.last4 or ''}".strip(),
                type="card",
                last4=card.last4,
                brand=card.brand,
                processor_id=card.processor_id,
            )
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Could not store payment method: {e}")
            return

        if self.ui.confirm("Save this card?", "Would you like to save this card for future orders?"):
            return

        try:
            service.delete_method(self.session.user_id, record.id)
        except (SQLAlchemyError, ValueError, PermissionError) as e:
            logger.error(f"Could not remove declined payment method {record.id}: {e}")

    # ------------------------------------------------------------------
    # gotowka
    # ------------------------------------------------------------------
    def confirm_cash(self):
        self._require({CheckoutState.CASH_FLOW})

        if not self.cart.items:
            return self._redirect_empty_cart()

        reason = self._validate_fields()
        if reason:
            return self._block(reason)

        if not self.form.policy_accepted:
            return self._block("Please accept the cash payment policy before placing your order.")

        if self.loading:
            return Blocked("Checkout is already in progress.")

        self.loading = True
        try:
            order_id = self._insert_cash_order()
        except SQLAlchemyError as e:
            logger.error(f"Order insert error: {e}")
            self.ui.alert("Could not place order", str(e))
            return Failed(str(e))
        finally:
            self.loading = False

        return self._finish(order_id)

    def _abandon_card_intent(self) -> None:
        #wiersze "pending" po intencie zostaja pod starym kluczem, sprzata je tasks.reconcile
        logger.info(f"Checkout {self.checkout_token} left card payment for order {self.order_id}")
        self.checkout_token = uuid.uuid4().hex
        self.order_id = None
        self.card_ready = False

    def _insert_cash_order(self) -> int:
        existing = [
            row for row in self.data.orders.get_by_checkout_token(self.checkout_token)
            if row.payment_method == "cash" and row.payment_intent_id is None
        ]
        if existing:
            logger.info(f"Checkout {self.checkout_token} already inserted as order {existing[0].id}")
            return existing[0].id

        rows = build_order_rows(
            self.cart.items,
            customer_name=self.form.customer_name.strip(),
            location=self._location(),
            method=self.form.method,
            payment_method="cash",
            tax=self.totals.tax,
            tip=self.totals.tip,
            user_id=self.session.user_id if self.session else None,
            order_time=self.form.order_time,
            checkout_token=self.checkout_token,
        )
        self.data.orders.insert_batch(rows)
        return rows[0].id

    # ------------------------------------------------------------------
    # PayPal - tylko akceptacja kupujacego, bez capture
    # ------------------------------------------------------------------
    def _enter_paypal_flow(self):
        if not self.cart.items:
            return self._redirect_empty_cart()

        self.form.payment_method = "paypal"
        self.card_ready = False
        self.loading = True
        try:
            approval_url = self.payment_api.create_paypal_order(self.totals.total)
        except PaymentApiError as e:
            logger.error(f"PayPal order error: {e.message}")
            self.ui.alert("PayPal error", e.message)
            return Failed(e.message)
        finally:
            self.loading = False

        self.browser.open(approval_url)
        self.state = CheckoutState.PAYPAL_FLOW
        return AwaitingApproval(approval_url=approval_url, amount=round_money(self.totals.total))

    def handle_paypal_navigation(self, url: str):
        """Zdarzenie nawigacji w osadzonej przegladarce. None = przegladaj dalej."""
        self._require({CheckoutState.PAYPAL_FLOW})

        if PAYPAL_SUCCESS_MARKER in url:
            self.browser.close()
            self.state = CheckoutState.SUBMITTED
            self.ui.alert("Payment approved", "Your PayPal payment was approved.")
            return PayPalApproved(url)

        if PAYPAL_CANCEL_MARKER in url:
            return self.close_paypal()

        return None

    def close_paypal(self):
        self._require({CheckoutState.PAYPAL_FLOW})
        self.browser.close()
        self.state = CheckoutState.PAYMENT_METHOD_SELECTION
        self.ui.alert("Payment cancelled", "You cancelled the PayPal payment.")
        return Cancelled("PayPal payment cancelled")

    # ------------------------------------------------------------------
    # pomocnicze
    # ------------------------------------------------------------------
    def _finish(self, order_id: int):
        if self.requires_contact:
            self._save_fallback_contact(order_id)

        self.cart.clear()
        self.order_id = order_id
        self.state = CheckoutState.SUBMITTED
        logger.info(f"Checkout {self.checkout_token} submitted as order {order_id}")

        self.ui.alert("Order placed!", "Thank you for your purchase.")
        self.ui.navigate("OrderStatus", order_id=order_id)
        return Submitted(order_id)

    def _save_fallback_contact(self, order_id: int) -> None:
        try:
            self.data.contacts.insert_contact(
                NoProfileContactModel(
                    name=self.form.customer_name.strip() or None,
                    address=self._location(),
                    phone=self.form.phone,
                    email=self.form.email or None,
                    order_id=order_id,
                )
            )
        except SQLAlchemyError as e:
            #zamowienie juz jest zapisane, brak kontaktu tylko logujemy
            logger.error(f"Could not save contact for order {order_id}: {e}")

    def _intent_payload(self) -> dict:
        return {
            "items": [
                {
                    "drink_id": i.drink_id,
                    "name": i.name,
                    "price": str(i.price),
                    "quantity": i.quantity,
                    "sugar": i.sugar,
                    "milkType": i.milk_type,
                }
                for i in self.cart.items
            ],
            "customerName": self.form.customer_name.strip(),
            "address": self._location(),
            "method": self.form.method,
            "tax": str(round_money(self.totals.tax)),
            "tip": str(round_money(self.totals.tip)),
            "amountInCents": self.totals.amount_in_cents,
            "paymentMethodId": self.form.saved_payment_method_id,
            "userId": self.session.user_id if self.session else None,
            "saveCard": self.form.save_card,
            "idempotencyKey": self.checkout_token,
        }

    def _location(self) -> str:
        if self.form.method == "delivery":
            return self.form.address.strip()
        return self.form.address.strip() or PICKUP_LOCATION

    def _validate_fields(self) -> str | None:
        if not self.form.customer_name.strip():
            return "Please enter your name."
        if self.form.method not in ("pickup", "delivery"):
            return "Please choose delivery or pickup."
        if self.form.method == "delivery" and not self.form.address.strip():
            return "Please enter your delivery address."
        if self.requires_contact and not self.form.phone.strip():
            return "Please enter a phone number so we can reach you about your order."
        return None

    def _load_identity(self):
        try:
            session = self.auth.get_session()
        except Exception as e:
            logger.error(f"Error checking session: {e}")
            return None, None

        if session is None:
            return None, None

        try:
            profile = self.data.profiles.get_profile(session.user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error loading profile for {session.user_id}: {e}")
            profile = None
        return session, profile

    def _redirect_empty_cart(self):
        logger.info("Checkout with empty cart, back to menu")
        self.state = CheckoutState.IDLE
        self.ui.navigate("Menu")
        return Redirected("Menu")

    def _block(self, reason: str):
        self.ui.alert(reason)
        return Blocked(reason)

    def _require(self, states) -> None:
        if self.state not in states:
            raise InvalidTransition(f"Action not allowed in state {self.state.value}")
