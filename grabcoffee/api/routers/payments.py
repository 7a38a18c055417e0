# grabcoffee/api/routers/payments.py
import requests
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from grabcoffee.data.database import get_db
from grabcoffee.domain.schemas import (
    PaymentIntentIn,
    PaymentIntentOut,
    PayPalOrderIn,
    PayPalOrderOut,
)
from grabcoffee.services.lock_service import LockService
from grabcoffee.services.payment_intent_service import PaymentIntentService, PaymentIntentError
from grabcoffee.services.paypal_client import PayPalClient, PayPalError
from grabcoffee.services.stripe_client import StripeClient
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


def get_lock_service() -> LockService:
    return LockService()


def get_stripe_client() -> StripeClient:
    return StripeClient()


def get_paypal_client(lock_service: LockService = Depends(get_lock_service)) -> PayPalClient:
    return PayPalClient(lock_service=lock_service)


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/create-payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    payload: PaymentIntentIn,
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
    lock_service: LockService = Depends(get_lock_service),
):
    svc = PaymentIntentService(db, stripe_client=stripe_client, lock_service=lock_service)
    try:
        return svc.create_payment_intent(payload)
    except PaymentIntentError as e:
        return error_response(e.message, e.status_code)


@router.post("/create-paypal-order", response_model=PayPalOrderOut)
def create_paypal_order(
    payload: PayPalOrderIn,
    paypal_client: PayPalClient = Depends(get_paypal_client),
):
    try:
        return {"approval_url": paypal_client.create_order(payload.amount)}
    except (PayPalError, requests.RequestException) as e:
        logger.error(f"PayPal order error: {e}")
        return error_response(str(e), 500)
