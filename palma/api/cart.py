from fastapi import APIRouter
from palma.application import cart_service
from palma.application.schemas import CartAddRequest, CartItem, CartQuantityRequest, CartSummary

router = APIRouter(prefix="/cart", tags=["cart"])

@router.post("/summary", response_model=CartSummary)
def summarize(cart: list[CartItem]):
    return CartSummary(total=cart_service.calculate_total(cart), count=cart_service.count_items(cart))

@router.post("/add", response_model=list[CartItem])
def add_item(payload: CartAddRequest):
    return cart_service.add_item(payload.cart, payload.item)

@router.post("/quantity", response_model=list[CartItem])
def update_quantity(payload: CartQuantityRequest):
    return cart_service.update_quantity(payload.cart, payload.item_id, payload.delta)
