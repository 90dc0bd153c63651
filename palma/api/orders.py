from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from palma.application.schemas import (
    CancelShipmentRequest, CheckoutRequest, CheckoutResult, OrderItemRead, OrderRead,
    OrderStatusUpdate, PlaceOrderRequest, ORDER_NOT_FOUND,
)
from palma.domain.models import Order, Role, User
from palma.store import MarketStore
from .deps import get_current_user, get_store, require_role, unwrap

router = APIRouter(prefix="/orders", tags=["orders"])

def _visible_to(order: Order, user: User) -> bool:
    if user.role == Role.ADMIN.value:
        return True
    return user.id in (order.customer_id, order.merchant_id)

def _get_visible_order(order_id: str, user: User, store: MarketStore) -> Order:
    order = store.get_order(order_id)
    if not order or not _visible_to(order, user):
        raise HTTPException(status_code=404, detail=ORDER_NOT_FOUND)
    return order

@router.get("/", response_model=list[OrderRead])
def list_orders(customer_id: Optional[str] = None, merchant_id: Optional[str] = None,
                user: User = Depends(get_current_user), store: MarketStore = Depends(get_store)):
    """Customers see their purchases, merchants their sales, admins anything."""
    if user.role == Role.ADMIN.value:
        return store.get_orders(customer_id=customer_id, merchant_id=merchant_id)
    if user.role == Role.MERCHANT.value:
        return store.get_orders(merchant_id=user.id)
    return store.get_orders(customer_id=user.id)

@router.get("/items", response_model=list[OrderItemRead])
def list_order_items(order_id: Optional[str] = None, user: User = Depends(require_role(Role.ADMIN)),
                     store: MarketStore = Depends(get_store)):
    return store.get_order_items(order_id)

@router.post("/", response_model=OrderRead, status_code=201)
def place_order(payload: PlaceOrderRequest, user: User = Depends(require_role(Role.CUSTOMER)),
                store: MarketStore = Depends(get_store)):
    return unwrap(store.place_order(payload.product_id, user.id, payload.payment_method, payload.shipping))

@router.post("/checkout", response_model=CheckoutResult)
def checkout(payload: CheckoutRequest, user: User = Depends(require_role(Role.CUSTOMER)),
             store: MarketStore = Depends(get_store)):
    """Pay for the cart and place one order with one shipment per unit.

    Lines that fail are listed in the result; the request only fails as a
    whole when nothing was attempted (empty cart, payment refused).
    """
    result = store.checkout(user.id, payload.cart, payload.payment_method, payload.shipping,
                            referrer_id=payload.referrer_id)
    if not result.success and not result.lines:
        raise HTTPException(status_code=400, detail=result.error)
    return result

@router.post("/sync", response_model=list[OrderRead])
def sync_shipments(user: User = Depends(get_current_user), store: MarketStore = Depends(get_store)):
    return store.sync_shipment_statuses(user.id)

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: str, user: User = Depends(get_current_user), store: MarketStore = Depends(get_store)):
    return _get_visible_order(order_id, user, store)

@router.put("/{order_id}/status", response_model=OrderRead)
def update_order_status(order_id: str, payload: OrderStatusUpdate,
                        user: User = Depends(require_role(Role.MERCHANT)),
                        store: MarketStore = Depends(get_store)):
    _get_visible_order(order_id, user, store)
    return unwrap(store.update_order_status(order_id, payload.status))

@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(order_id: str, payload: CancelShipmentRequest,
                 user: User = Depends(require_role(Role.CUSTOMER)),
                 store: MarketStore = Depends(get_store)):
    _get_visible_order(order_id, user, store)
    return unwrap(store.cancel_order(order_id, payload.email, payload.password), status_code=502)
