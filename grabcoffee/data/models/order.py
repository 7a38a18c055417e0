from sqlalchemy import Column, Integer, String, DateTime, Numeric, Boolean, Index
from datetime import datetime, timezone

from grabcoffee.data.database import Base


class OrderModel(Base):
    """
    Jeden wiersz = jeden napoj z zamowienia.
    Wiersze jednego zamowienia maja wspolne created_at + name + user_id,
    pola grupowe (tax, tip, eta, delivered, ready) ma tylko pierwszy wiersz.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    name = Column(String, nullable=False)
    user_id = Column(String, nullable=True)

    drink_id = Column(String, nullable=False)
    drink_name = Column(String, nullable=False)
    sugar = Column(Boolean, nullable=True)
    milk = Column(String, nullable=True)  # milk, oat
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_amount = Column("totalAmount", Numeric(10, 2), nullable=False)

    location = Column(String, nullable=True)
    method = Column(String, nullable=False)  # pickup, delivery
    payment_method = Column("paymentMethod", String, nullable=False)  # card, cash, apple-pay

    #pola grupowe - tylko wiersz o indeksie 0
    delivered = Column(Boolean, nullable=True)
    ready = Column(Boolean, nullable=True)
    tax = Column(Numeric(10, 2), nullable=True)
    tip = Column(Numeric(10, 2), nullable=True)
    eta = Column(Integer, nullable=True)
    order_time = Column(String, nullable=True)

    #ustawiane przez obsluge, nigdy przez aplikacje
    received_order = Column(Boolean, nullable=True)

    checkout_token = Column(String, nullable=True, index=True)
    payment_intent_id = Column(String, nullable=True)

    __table_args__ = (Index("ix_orders_group", "created_at", "name", "user_id"),)
