# grabcoffee/services/payment_method_service.py
from sqlalchemy.orm import Session

from grabcoffee.data.models.payment_method import PaymentMethodModel
from grabcoffee.repos.payment_method_repo import PaymentMethodRepo
from grabcoffee.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_METHOD_TYPES = {"card", "paypal", "apple_pay"}


class PaymentMethodService:
    """
    Zapisane metody platnosci uzytkownika.
    is_default jest wylaczne - przed ustawieniem domyslnej zdejmujemy flage z pozostalych.
    """

    def __init__(self, db: Session):
        self.repo = PaymentMethodRepo(db)

    def list_methods(self, user_id: str) -> list[PaymentMethodModel]:
        return self.repo.list_for_user(user_id)

    def add_method(
        self,
        user_id: str,
        name: str,
        type: str = "card",
        last4: str | None = None,
        brand: str | None = None,
        is_default: bool = False,
        processor_id: str | None = None,
    ) -> PaymentMethodModel:
        if not name or not name.strip():
            raise ValueError("Please enter a name for this payment method")

        if type not in PAYMENT_METHOD_TYPES:
            raise ValueError(f"Unsupported payment method type: {type}")

        try:
            if is_default:
                self.repo.unset_defaults(user_id)

            created = self.repo.insert(
                PaymentMethodModel(
                    user_id=user_id,
                    type=type,
                    name=name.strip(),
                    last4=last4,
                    brand=brand,
                    is_default=is_default,
                    processor_id=processor_id,
                )
            )
        except Exception as e:
            logger.error(f"Error adding payment method for {user_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Payment method {created.id} added for user {user_id}")
        return created

    def set_default(self, user_id: str, payment_method_id: int) -> PaymentMethodModel:
        method = self._owned(user_id, payment_method_id)

        try:
            self.repo.unset_defaults(user_id)
            self.repo.mark_default(method.id)
            self.repo.commit()
        except Exception as e:
            logger.error(f"Error setting default payment method {payment_method_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Payment method {payment_method_id} is now default for user {user_id}")
        return self.repo.get(payment_method_id)

    def delete_method(self, user_id: str, payment_method_id: int) -> None:
        method = self._owned(user_id, payment_method_id)

        try:
            self.repo.delete(method.id)
        except Exception as e:
            logger.error(f"Error deleting payment method {payment_method_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Payment method {payment_method_id} deleted for user {user_id}")

    def _owned(self, user_id: str, payment_method_id: int) -> PaymentMethodModel:
        method = self.repo.get(payment_method_id)

        if not method:
            raise ValueError("Payment method not found")

        if method.user_id != user_id:
            raise PermissionError("Payment method belongs to another user")

        return method
