# grabcoffee/services/order_service.py
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy.orm import Session

from grabcoffee.data.models.order import OrderModel
from grabcoffee.domain.pricing import prorate, round_money
from grabcoffee.repos.order_repo import OrderRepo
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

PICKUP_LOCATION = "pickup"


def build_order_rows(
    items: Iterable[Any],
    customer_name: str,
    location: str | None,
    method: str,
    payment_method: str,
    tax,
    tip,
    user_id: str | None = None,
    eta: int | None = None,
    order_time: str | None = None,
    checkout_token: str | None = None,
    payment_intent_id: str | None = None,
    created_at: datetime | None = None,
) -> list[OrderModel]:
    """
    Jeden wiersz na pozycje. Wszystkie wiersze dostaja to samo created_at,
    pola grupowe (tax, tip, eta, delivered, ready) tylko wiersz 0.
    """
    items = list(items)
    if not items:
        raise ValueError("Cannot build an order without items")

    created_at = created_at or datetime.now(timezone.utc)
    shares = prorate(items, tax, tip)

    rows = []
    for index, share in enumerate(shares):
        item = share.item
        first = index == 0
        rows.append(
            OrderModel(
                created_at=created_at,
                name=customer_name,
                user_id=user_id,
                drink_id=str(item.drink_id),
                drink_name=item.name,
                sugar=item.sugar,
                milk=item.milk_type,
                price=round_money(item.price),
                quantity=item.quantity,
                total_amount=round_money(share.total_amount),
                location=location or PICKUP_LOCATION,
                method=method,
                payment_method=payment_method,
                delivered=False if first else None,
                ready=False if first else None,
                tax=round_money(tax) if first else None,
                tip=round_money(tip) if first else None,
                eta=eta if first else None,
                order_time=order_time,
                checkout_token=checkout_token,
                payment_intent_id=payment_intent_id,
            )
        )
    return rows


class OrderService:
    """Odczyt zamowien: wiersz po id + wiersze siostrzane."""

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def get_order(self, order_id: int) -> dict:
        order = self.repo.get_order(order_id)

        if not order:
            raise ValueError("Order not found")

        rows = self.repo.get_siblings(order.created_at, order.name, order.user_id)
        #gdyby grupa sie nie odnalazla (np. inna precyzja czasu) pokaz chociaz ten wiersz
        if not rows:
            rows = [order]

        return {"id": order.id, "rows": rows}
