from sqlalchemy import Column, String, DateTime
from datetime import datetime, timezone

from grabcoffee.data.database import Base


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)  # id uzytkownika z auth
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
