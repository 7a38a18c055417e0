# grabcoffee/repos/order_repo.py
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import select, delete

from grabcoffee.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def insert_batch(self, rows: list[OrderModel]) -> list[OrderModel]:
        """Wszystkie wiersze zamowienia w jednej transakcji - albo wszystkie, albo zaden."""
        try:
            self.db.add_all(rows)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        for row in rows:
            self.db.refresh(row)
        return rows

    def get_order(self, order_id: int) -> OrderModel | None:
        #populate_existing - wiersz moze zmienic obsluga miedzy odczytami
        return self.db.get(OrderModel, order_id, populate_existing=True)

    def get_siblings(self, created_at: datetime, name: str, user_id: str | None) -> list[OrderModel]:
        stmt = select(OrderModel).where(
            OrderModel.created_at == created_at,
            OrderModel.name == name,
        )
        if user_id is None:
            stmt = stmt.where(OrderModel.user_id.is_(None))
        else:
            stmt = stmt.where(OrderModel.user_id == user_id)
        stmt = stmt.order_by(OrderModel.id).execution_options(populate_existing=True)
        return list(self.db.execute(stmt).scalars().all())

    def get_by_checkout_token(self, token: str) -> list[OrderModel]:
        stmt = select(OrderModel).where(OrderModel.checkout_token == token).order_by(OrderModel.id)
        return list(self.db.execute(stmt).scalars().all())

    def get_stale_pending(self, older_than: datetime) -> list[OrderModel]:
        #tylko wiersze wiodace (delivered nie jest null) z intentem ktorego nikt nie potwierdzil
        stmt = select(OrderModel).where(
            OrderModel.payment_intent_id.is_not(None),
            OrderModel.delivered.is_not(None),
            OrderModel.received_order.is_(None),
            OrderModel.created_at < older_than,
        )
        return list(self.db.execute(stmt).scalars().all())

    def delete_group(self, created_at: datetime, name: str, user_id: str | None) -> int:
        stmt = delete(OrderModel).where(
            OrderModel.created_at == created_at,
            OrderModel.name == name,
        )
        if user_id is None:
            stmt = stmt.where(OrderModel.user_id.is_(None))
        else:
            stmt = stmt.where(OrderModel.user_id == user_id)
        res = self.db.execute(stmt)
        self.db.commit()
        return res.rowcount
