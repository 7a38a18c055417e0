#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from grabcoffee.data.models.order import OrderModel
from grabcoffee.data.models.profile import ProfileModel
from grabcoffee.data.models.payment_method import PaymentMethodModel
from grabcoffee.data.models.contact import NoProfileContactModel

__all__ = ["OrderModel", "ProfileModel", "PaymentMethodModel", "NoProfileContactModel"]
