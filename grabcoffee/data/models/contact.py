from sqlalchemy import Column, Integer, String, DateTime
from datetime import datetime, timezone

from grabcoffee.data.database import Base


class NoProfileContactModel(Base):
    """Kontakt do zamowien bez konta - tylko insert."""
    __tablename__ = "no_profile_contacts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=False)
    email = Column(String, nullable=True)
    order_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
