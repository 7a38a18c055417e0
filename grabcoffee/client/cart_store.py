# grabcoffee/client/cart_store.py
import uuid

from grabcoffee.domain.schemas import CartItem


class CartStore:
    """
    Koszyk na czas jednej sesji zakupow, tylko w pamieci.
    Kolejnosc dodania zachowana, duplikaty nie sa laczone.
    """

    def __init__(self):
        self._items: list[CartItem] = []

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    def __len__(self):
        return len(self._items)

    def add_item(self, item: CartItem) -> CartItem:
        stored = item.model_copy(update={"id": uuid.uuid4().hex})
        self._items.append(stored)
        return stored

    def update_quantity(self, item_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove_item(item_id)
            return
        self._items = [
            i.model_copy(update={"quantity": quantity}) if i.id == item_id else i
            for i in self._items
        ]

    def remove_item(self, item_id: str) -> None:
        self._items = [i for i in self._items if i.id != item_id]

    def clear(self) -> None:
        self._items = []
