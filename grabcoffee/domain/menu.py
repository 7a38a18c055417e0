# grabcoffee/domain/menu.py
import uuid
from decimal import Decimal

from grabcoffee.domain.schemas import CartItem

COFFEE_MENU = [
    {"drink_id": "1", "name": "Iced Latte", "price": Decimal("4.50"), "description": "Smooth espresso with cold milk over ice"},
    {"drink_id": "2", "name": "Hot Latte", "price": Decimal("4.00"), "description": "Rich espresso with steamed milk and light foam"},
    {"drink_id": "3", "name": "Iced Matcha Latte", "price": Decimal("4.75"), "description": "Refreshing matcha with cold milk over ice"},
    {"drink_id": "4", "name": "Hot Matcha Latte", "price": Decimal("4.25"), "description": "Premium matcha powder with steamed milk"},
    {"drink_id": "5", "name": "Iced Americano", "price": Decimal("4.00"), "description": "Espresso shots with cold water over ice"},
    {"drink_id": "6", "name": "Hot Americano", "price": Decimal("3.50"), "description": "Bold espresso shots with hot water"},
    {"drink_id": "7", "name": "Iced Cappuccino", "price": Decimal("4.20"), "description": "Espresso with cold milk and cold foam over ice"},
    {"drink_id": "8", "name": "Hot Cappuccino", "price": Decimal("3.75"), "description": "Equal parts espresso, steamed milk, and foam"},
    {"drink_id": "9", "name": "Espresso", "price": Decimal("3.00"), "description": "Plain espresso"},
]

ESPRESSO_IDS = {"9"}
AMERICANO_IDS = {"5", "6"}
MILK_IDS = {"1", "2", "3", "4", "7", "8"}


def get_drink(drink_id: str) -> dict | None:
    return next((d for d in COFFEE_MENU if d["drink_id"] == drink_id), None)


def grouped_menu() -> dict[str, list[dict]]:
    def lower(d):
        return d["name"].lower()

    return {
        "Matcha Drinks": [d for d in COFFEE_MENU if "matcha" in lower(d)],
        "Iced Drinks": [d for d in COFFEE_MENU if lower(d).startswith("iced") and "matcha" not in lower(d)],
        "Hot Drinks": [
            d for d in COFFEE_MENU
            if (lower(d).startswith("hot") or lower(d) == "espresso") and "matcha" not in lower(d)
        ],
    }


def build_cart_item(
    drink_id: str,
    quantity: int = 1,
    sugar: bool | None = None,
    milk_type: str | None = None,
) -> CartItem:
    drink = get_drink(drink_id)
    if not drink:
        raise ValueError(f"Unknown drink {drink_id}")

    if quantity <= 0:
        raise ValueError("Quantity must be greater than 0")

    #opcje ktore nie dotycza napoju sa pomijane
    if drink_id in ESPRESSO_IDS:
        sugar, milk_type = None, None
    elif drink_id in AMERICANO_IDS:
        if sugar is None:
            raise ValueError(f"{drink['name']} requires a sugar choice")
        milk_type = None
    elif drink_id in MILK_IDS:
        if sugar is None or milk_type is None:
            raise ValueError(f"{drink['name']} requires sugar and milk choices")

    return CartItem(
        id=uuid.uuid4().hex,
        drink_id=drink_id,
        name=drink["name"],
        price=drink["price"],
        quantity=quantity,
        sugar=sugar,
        milk_type=milk_type,
    )
