from fastapi import APIRouter, Depends, HTTPException
from palma.application.schemas import MISSING_SHIPPING_ADDRESS, ORDER_ALREADY_FINAL, ORDER_NOT_FOUND
from palma.domain.models import Role, User
from palma.infrastructure.gateway import ShipmentGateway, ShipmentResponse, map_flashline_status
from palma.store import MarketStore
from .deps import get_current_user, get_gateway, get_store, require_role

router = APIRouter(prefix="/shipments", tags=["shipments"])

SHIPMENT_ERROR_STATUS = {
    ORDER_NOT_FOUND: 404,
    MISSING_SHIPPING_ADDRESS: 400,
    ORDER_ALREADY_FINAL: 409,
}

@router.get("/mode")
def gateway_mode(gateway: ShipmentGateway = Depends(get_gateway)):
    return {"mode": gateway.mode}

@router.post("/orders/{order_id}", response_model=ShipmentResponse, status_code=201)
def create_shipment_for_order(order_id: str, user: User = Depends(require_role(Role.MERCHANT)),
                              store: MarketStore = Depends(get_store)):
    order = store.get_order(order_id)
    if not order or (user.role != Role.ADMIN.value and order.merchant_id != user.id):
        raise HTTPException(status_code=404, detail=ORDER_NOT_FOUND)
    result = store.automate_shipment_creation(order_id, order.merchant_id)
    if not result.success:
        raise HTTPException(status_code=SHIPMENT_ERROR_STATUS.get(result.error, 502), detail=result.error)
    return result

@router.get("/{shipment_id}/status")
def shipment_status(shipment_id: str, lang: str = "ar", user: User = Depends(get_current_user),
                    gateway: ShipmentGateway = Depends(get_gateway)):
    status = gateway.get_shipment_status(shipment_id)
    return {
        "shipment_id": shipment_id,
        "status": status,
        "label": map_flashline_status(status) if lang == "ar" else (status or "PROCESSING"),
    }

@router.get("/{shipment_id}/labels")
def shipment_labels(shipment_id: str, user: User = Depends(get_current_user),
                    gateway: ShipmentGateway = Depends(get_gateway)):
    return {"shipment_id": shipment_id, "labels": gateway.get_shipment_labels(shipment_id)}
