# grabcoffee/client/poller.py
"""
Sledzenie statusu zamowienia: odpytywanie co staly interwal.

Pola received_order / delivered / ready zmienia obsluga poza aplikacja,
kazdy odczyt traktujemy jako aktualny stan i nic do bazy nie zapisujemy.
"""
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from grabcoffee.client.ports import Locator
from grabcoffee.data.client import DataClient
from grabcoffee.data.models.order import OrderModel
from grabcoffee.domain.geo import distance_km, eta_minutes
from grabcoffee.utils.settings import (
    ASSUMED_SPEED_KMH,
    PICKUP_LATITUDE,
    PICKUP_LONGITUDE,
    POLL_INTERVAL_SECONDS,
)
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)


class OrderView(str, Enum):
    CONFIRMING = "confirming"
    PREPARING = "preparing"
    EN_ROUTE = "en route"
    RATING = "rating"
    THANKED = "thanked"


def group_row(rows: list[OrderModel]) -> OrderModel | None:
    """Wiersz niosacy pola grupowe (delivered/ready nie sa null)."""
    for row in rows:
        if row.delivered is not None or row.ready is not None:
            return row
    return rows[0] if rows else None


def derive_view(row: OrderModel | None, confirmed_received: bool = False, rated: bool = False) -> OrderView:
    if rated:
        return OrderView.THANKED
    if confirmed_received:
        return OrderView.RATING
    if row is None or not row.received_order:
        return OrderView.CONFIRMING
    if row.delivered:
        return OrderView.EN_ROUTE
    return OrderView.PREPARING


@dataclass
class PollResult:
    view: OrderView
    rows: list[OrderModel] = field(default_factory=list)
    eta: int | None = None
    error: str | None = None


class OrderStatusPoller:
    def __init__(
        self,
        data: DataClient,
        order_id: int,
        locator: Locator | None = None,
        on_ready: Callable[[int], None] | None = None,
        interval: float = POLL_INTERVAL_SECONDS,
        pickup: tuple[float, float] = (PICKUP_LATITUDE, PICKUP_LONGITUDE),
        speed_kmh: float = ASSUMED_SPEED_KMH,
    ):
        self.data = data
        self.order_id = order_id
        self.locator = locator
        self.on_ready = on_ready
        self.interval = interval
        self.pickup = pickup
        self.speed_kmh = speed_kmh

        self.confirmed_received = False
        self.rated = False
        self.rating: int | None = None
        self.ready_notified = False
        self.last: PollResult | None = None

    @property
    def view(self) -> OrderView:
        if self.last is None:
            return derive_view(None, self.confirmed_received, self.rated)
        return self.last.view

    @property
    def finished(self) -> bool:
        return self.rated

    def poll_once(self) -> PollResult:
        #po dojsciu do stanu lokalnego kolejne odczyty juz nic nie zmieniaja
        if self.confirmed_received or self.rated:
            rows = self.last.rows if self.last else []
            self.last = PollResult(view=derive_view(None, self.confirmed_received, self.rated), rows=rows)
            return self.last

        try:
            order = self.data.orders.get_order(self.order_id)
            if order is None:
                logger.warning(f"Order {self.order_id} not found")
                self.last = PollResult(view=OrderView.CONFIRMING, error="Order not found")
                return self.last

            rows = self.data.orders.get_siblings(order.created_at, order.name, order.user_id) or [order]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching order {self.order_id}: {e}")
            self.data.session.rollback()
            self.last = PollResult(view=self.view, error="Could not load your order. Retrying...")
            return self.last

        head = group_row(rows)
        view = derive_view(head, self.confirmed_received, self.rated)

        if head.ready and not self.ready_notified:
            self.ready_notified = True
            logger.info(f"Order {self.order_id} is ready")
            if self.on_ready:
                self.on_ready(self.order_id)

        eta = self._eta() if view == OrderView.EN_ROUTE else None

        self.last = PollResult(view=view, rows=rows, eta=eta)
        return self.last

    def _eta(self) -> int | None:
        if self.locator is None:
            return None
        try:
            position = self.locator.current_position()
        except Exception as e:
            logger.warning(f"Location unavailable: {e}")
            return None
        if position is None:
            return None

        km = distance_km(position[0], position[1], self.pickup[0], self.pickup[1])
        return eta_minutes(km, self.speed_kmh)

    def confirm_received(self) -> OrderView:
        self.confirmed_received = True
        return self.view_after_local_change()

    def submit_rating(self, stars: int) -> OrderView:
        if not self.confirmed_received:
            raise RuntimeError("Order must be confirmed as received before rating")
        if stars < 1 or stars > 5:
            raise ValueError("Rating must be between 1 and 5 stars")
        self.rating = stars
        self.rated = True
        logger.info(f"Order {self.order_id} rated {stars}")
        return self.view_after_local_change()

    def view_after_local_change(self) -> OrderView:
        view = derive_view(None, self.confirmed_received, self.rated)
        rows = self.last.rows if self.last else []
        self.last = PollResult(view=view, rows=rows)
        return view

    def run(
        self,
        cancel: threading.Event | None = None,
        on_update: Callable[[PollResult], None] | None = None,
    ) -> PollResult | None:
        """Petla odpytywania do anulowania albo stanu koncowego."""
        cancel = cancel or threading.Event()
        logger.info(f"Polling order {self.order_id} every {self.interval}s")

        while not cancel.is_set():
            result = self.poll_once()
            if on_update:
                on_update(result)
            if self.finished:
                break
            if cancel.wait(self.interval):
                break

        logger.info(f"Stopped polling order {self.order_id}")
        return self.last
