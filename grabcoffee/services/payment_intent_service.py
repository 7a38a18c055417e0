# grabcoffee/services/payment_intent_service.py
import uuid

import requests
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from grabcoffee.domain.pricing import subtotal, to_cents, to_decimal, to_display
from grabcoffee.domain.schemas import PaymentIntentIn
from grabcoffee.repos.order_repo import OrderRepo
from grabcoffee.services.lock_service import LockService
from grabcoffee.services.notification_service import NotificationService
from grabcoffee.services.order_service import build_order_rows
from grabcoffee.services.stripe_client import StripeClient, StripeError
from grabcoffee.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentIntentError(Exception):
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PaymentIntentService:
    """
    Use case: utworzenie PaymentIntent w Stripe + wiersze zamowienia "pending".

    Intent i wiersze nie sa atomowe wzgledem siebie - porzucona platnosc
    zostawia wiersze, sprzata je tasks.reconcile.
    Powtorzony idempotencyKey zwraca istniejace zamowienie zamiast nowego.
    """

    def __init__(
        self,
        db: Session,
        stripe_client: StripeClient,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.repo = OrderRepo(db)
        self.stripe_client = stripe_client
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    def create_payment_intent(self, payload: PaymentIntentIn) -> dict:
        if not payload.items:
            raise PaymentIntentError("No items provided.", status_code=400)

        token = payload.idempotency_key or uuid.uuid4().hex

        existing = self.repo.get_by_checkout_token(token)
        if existing:
            logger.info(f"Checkout {token} already has order {existing[0].id}, returning it")
            return self._replay(existing)

        owner = uuid.uuid4().hex
        if not self.lock_service.acquire_checkout_lock(token, owner, CHECKOUT_LOCK_TTL_SECONDS):
            raise PaymentIntentError("Checkout is already being processed.", status_code=409)

        try:
            #drugi request mogl skonczyc miedzy odczytem a lockiem
            existing = self.repo.get_by_checkout_token(token)
            if existing:
                return self._replay(existing)
            return self._create(payload, token)
        finally:
            self.lock_service.release_checkout_lock(token, owner)

    def _create(self, payload: PaymentIntentIn, token: str) -> dict:
        tax = to_decimal(payload.tax)
        tip = to_decimal(payload.tip)
        total = subtotal(payload.items) + tax + tip

        amount = payload.amount_in_cents if payload.amount_in_cents is not None else to_cents(total)
        logger.info(f"Creating PaymentIntent for {amount} ({payload.customer_name})")

        try:
            intent = self.stripe_client.create_payment_intent(
                amount=amount,
                idempotency_key=token,
                payment_method=payload.payment_method_id,
                save_card=payload.save_card,
                metadata={"customer_name": payload.customer_name, "checkout_token": token},
            )
        except (StripeError, requests.RequestException) as e:
            logger.error(f"Payment creation error: {e}")
            raise PaymentIntentError(str(e)) from e

        logger.info(f"PaymentIntent {intent.get('id')} created")

        rows = build_order_rows(
            payload.items,
            customer_name=payload.customer_name,
            location=payload.address,
            method=payload.method,
            payment_method=payload.payment_method,
            tax=tax,
            tip=tip,
            user_id=payload.user_id,
            checkout_token=token,
            payment_intent_id=intent.get("id"),
        )

        try:
            self.repo.insert_batch(rows)
        except SQLAlchemyError as e:
            logger.error(f"Order insert error: {e}")
            raise PaymentIntentError(str(e)) from e

        order_id = rows[0].id
        self.notification_service.send_order_placed(order_id, payload.customer_name, payload.payment_method)

        return {
            "client_secret": intent["client_secret"],
            "amount": to_display(total),
            "order_id": order_id,
        }

    def _replay(self, rows) -> dict:
        first = rows[0]
        if not first.payment_intent_id:
            #token zuzyty przez zamowienie gotowkowe
            raise PaymentIntentError("Checkout was already completed.", status_code=409)
        try:
            intent = self.stripe_client.retrieve_payment_intent(first.payment_intent_id)
        except (StripeError, requests.RequestException) as e:
            logger.error(f"Could not load PaymentIntent {first.payment_intent_id}: {e}")
            raise PaymentIntentError(str(e)) from e

        #ta sama formula co przy tworzeniu, nie suma zaokraglonych wierszy
        total = subtotal(rows) + to_decimal(first.tax) + to_decimal(first.tip)
        return {
            "client_secret": intent["client_secret"],
            "amount": to_display(total),
            "order_id": first.id,
        }
