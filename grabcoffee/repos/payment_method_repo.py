# grabcoffee/repos/payment_method_repo.py
from sqlalchemy.orm import Session
from sqlalchemy import select, update, delete

from grabcoffee.data.models.payment_method import PaymentMethodModel


class PaymentMethodRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> list[PaymentMethodModel]:
        stmt = (
            select(PaymentMethodModel)
            .where(PaymentMethodModel.user_id == user_id)
            .order_by(
                PaymentMethodModel.is_default.desc(),
                PaymentMethodModel.created_at.desc(),
                PaymentMethodModel.id.desc(),
            )
        )
        return list(self.db.execute(stmt).scalars().all())

    def get(self, payment_method_id: int) -> PaymentMethodModel | None:
        return self.db.get(PaymentMethodModel, payment_method_id)

    def insert(self, method: PaymentMethodModel) -> PaymentMethodModel:
        self.db.add(method)
        self.db.commit()
        self.db.refresh(method)
        return method

    def unset_defaults(self, user_id: str) -> None:
        self.db.execute(
            update(PaymentMethodModel)
            .where(PaymentMethodModel.user_id == user_id)
            .values(is_default=False)
        )

    def mark_default(self, payment_method_id: int) -> int:
        res = self.db.execute(
            update(PaymentMethodModel)
            .where(PaymentMethodModel.id == payment_method_id)
            .values(is_default=True)
        )
        return res.rowcount

    def delete(self, payment_method_id: int) -> int:
        res = self.db.execute(
            delete(PaymentMethodModel).where(PaymentMethodModel.id == payment_method_id)
        )
        self.db.commit()
        return res.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
