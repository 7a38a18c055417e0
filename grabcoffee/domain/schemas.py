# grabcoffee/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime


MilkType = Literal["milk", "oat"]
FulfilmentMethod = Literal["pickup", "delivery"]
RowPaymentMethod = Literal["card", "cash", "apple-pay"]


class CartItem(BaseModel):
    """Pozycja w koszyku: napoj + opcje + ilosc."""

    id: str
    drink_id: str
    name: str
    price: Decimal
    quantity: int = Field(..., ge=1)
    sugar: bool | None = None
    milk_type: MilkType | None = Field(default=None, alias="milkType")

    model_config = ConfigDict(populate_by_name=True)


class MenuItemOut(BaseModel):
    drink_id: str
    name: str
    price: Decimal
    description: str


class MenuOut(BaseModel):
    groups: dict[str, List[MenuItemOut]]
    tax_rate: Decimal
    tip_presets: List[int]


class PaymentIntentItem(BaseModel):
    """Pozycja w requestcie do create-payment-intent (format aplikacji)."""

    drink_id: str
    name: str
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    sugar: bool | None = None
    milk_type: MilkType | None = Field(default=None, alias="milkType")

    model_config = ConfigDict(populate_by_name=True)


class PaymentIntentIn(BaseModel):
    items: List[PaymentIntentItem] | None = None
    customer_name: str = Field("", alias="customerName")
    address: str | None = None
    method: FulfilmentMethod = "pickup"
    tax: Decimal = Decimal("0")
    tip: Decimal = Decimal("0")
    amount_in_cents: int | None = Field(default=None, alias="amountInCents", ge=0)
    payment_method_id: str | None = Field(default=None, alias="paymentMethodId")
    user_id: str | None = Field(default=None, alias="userId")
    save_card: bool = Field(default=False, alias="saveCard")
    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")
    payment_method: RowPaymentMethod = Field(default="card", alias="paymentMethod")

    model_config = ConfigDict(populate_by_name=True)


class PaymentIntentOut(BaseModel):
    client_secret: str = Field(..., serialization_alias="clientSecret")
    amount: str
    order_id: int = Field(..., serialization_alias="orderId")


class PayPalOrderIn(BaseModel):
    amount: Decimal = Field(..., gt=0)


class PayPalOrderOut(BaseModel):
    approval_url: str = Field(..., serialization_alias="approvalUrl")


class ErrorOut(BaseModel):
    error: str


class OrderRowOut(BaseModel):
    id: int
    created_at: datetime
    name: str
    user_id: str | None = None
    drink_id: str
    drink_name: str
    sugar: bool | None = None
    milk: str | None = None
    price: Decimal
    quantity: int
    total_amount: Decimal = Field(..., serialization_alias="totalAmount")
    location: str | None = None
    method: str
    payment_method: str = Field(..., serialization_alias="paymentMethod")
    delivered: bool | None = None
    ready: bool | None = None
    received_order: bool | None = None
    tax: Decimal | None = None
    tip: Decimal | None = None
    eta: int | None = None
    order_time: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Zamowienie = wiersz o podanym id + wiersze siostrzane."""

    id: int
    rows: List[OrderRowOut]
