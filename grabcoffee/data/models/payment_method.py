from sqlalchemy import Column, Integer, String, DateTime, Boolean
from datetime import datetime, timezone

from grabcoffee.data.database import Base


class PaymentMethodModel(Base):
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False, default="card")  # card, paypal, apple_pay
    name = Column(String, nullable=False)
    last4 = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    processor_id = Column(String, nullable=True)  # pm_... w Stripe
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
