# grabcoffee/domain/pricing.py
"""
Liczenie kwot zamowienia.

Wszystko na Decimal. Kwota dla procesora platnosci liczona jest raz:
round(round(total, 2) * 100), zaokraglanie half-up jak Math.round w aplikacji.
Suma zaokraglonych kwot per pozycja moze roznic sie o 1 cent od kwoty
obciazenia - to jest akceptowane.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Any

from grabcoffee.utils.settings import TAX_RATE

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0")
TIP_PRESETS = (5, 10, 15, 20)


def to_decimal(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_cents(total) -> int:
    cents = round_money(total) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_display(amount) -> str:
    return f"{round_money(amount):.2f}"


def item_subtotal(item: Any) -> Decimal:
    return to_decimal(item.price) * item.quantity


def subtotal(items: Iterable[Any]) -> Decimal:
    return sum((item_subtotal(i) for i in items), ZERO)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax: Decimal
    tip: Decimal
    total: Decimal
    amount_in_cents: int

    def display(self) -> dict:
        return {
            "subtotal": to_display(self.subtotal),
            "tax": to_display(self.tax),
            "tip": to_display(self.tip),
            "total": to_display(self.total),
        }


def compute_totals(
    items: Iterable[Any],
    tax=None,
    tip=None,
    tax_rate: Decimal = TAX_RATE,
    amount_in_cents: int | None = None,
) -> Totals:
    """
    tax=None (albo <= 0) -> podatek liczony z tax_rate od subtotalu.
    Zamowienie bez podatku wyraza sie przez tax_rate=0, nie przez tax=0.
    """
    sub = subtotal(items)

    provided_tax = to_decimal(tax)
    tax_value = provided_tax if provided_tax > 0 else sub * to_decimal(tax_rate)

    provided_tip = to_decimal(tip)
    tip_value = provided_tip if provided_tip > 0 else ZERO

    total = sub + tax_value + tip_value
    cents = amount_in_cents if amount_in_cents is not None else to_cents(total)

    return Totals(
        subtotal=sub,
        tax=tax_value,
        tip=tip_value,
        total=total,
        amount_in_cents=cents,
    )


@dataclass(frozen=True)
class ItemShare:
    item: Any
    subtotal: Decimal
    tax: Decimal
    tip: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.subtotal + self.tax + self.tip


def prorate(items: Iterable[Any], tax, tip) -> list[ItemShare]:
    """Rozklada podatek i napiwek na pozycje proporcjonalnie do ich udzialu w subtotalu."""
    items = list(items)
    sub = subtotal(items)
    tax = to_decimal(tax)
    tip = to_decimal(tip)

    shares = []
    for item in items:
        isub = item_subtotal(item)
        if sub == 0:
            ratio = ZERO
        else:
            ratio = isub / sub
        shares.append(ItemShare(item=item, subtotal=isub, tax=ratio * tax, tip=ratio * tip))
    return shares


def tip_for_choice(sub, choice=None, custom_amount=None) -> Decimal:
    """
    choice: jeden z TIP_PRESETS (procent), "custom" (kwota w dolarach) albo None.
    """
    sub = to_decimal(sub)
    if choice is None or choice == 0:
        return ZERO
    if choice == "custom":
        try:
            amount = to_decimal(custom_amount)
        except InvalidOperation:
            return ZERO
        return amount if amount > 0 else ZERO
    if choice not in TIP_PRESETS:
        raise ValueError(f"Unsupported tip option: {choice}")
    return sub * Decimal(choice) / Decimal(100)
