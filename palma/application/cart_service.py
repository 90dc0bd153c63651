"""Cart arithmetic. The cart itself lives in the client; these are pure helpers."""
from .schemas import CartItem

def calculate_total(cart: list[CartItem]) -> float:
    return sum((item.price or 0) * item.quantity for item in cart)

def count_items(cart: list[CartItem]) -> int:
    return sum(item.quantity for item in cart)

def add_item(cart: list[CartItem], new_item: CartItem) -> list[CartItem]:
    if any(item.id == new_item.id for item in cart):
        return [
            item.model_copy(update={"quantity": item.quantity + new_item.quantity})
            if item.id == new_item.id else item
            for item in cart
        ]
    return [*cart, new_item]

def update_quantity(cart: list[CartItem], item_id: str, delta: int) -> list[CartItem]:
    """Shift one line's quantity by ``delta``; lines that reach zero are dropped."""
    updated = [
        item.model_copy(update={"quantity": max(0, item.quantity + delta)})
        if item.id == item_id else item
        for item in cart
    ]
    return [item for item in updated if item.quantity > 0]
