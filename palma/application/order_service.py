import uuid
from typing import Optional
from shared.core import get_logger
from palma.domain.locations import resolve_location_name
from palma.domain.models import Order, OrderItem, OrderStatus, PaymentMethod, TERMINAL_ORDER_STATUSES
from palma.infrastructure.gateway import ShipmentGateway, ShipmentResponse
from palma.infrastructure.repositories import Repositories
from .notifications import EmailNotifier
from .product_service import ProductService
from .schemas import (
    ActionResponse, ShippingDetails, PRODUCT_NOT_FOUND, ORDER_NOT_FOUND,
    MISSING_SHIPPING_ADDRESS, ORDER_ALREADY_FINAL,
)
from .shipping import ShipmentCustomer, build_merchant_origin, prepare_shipment_payload

logger = get_logger(__name__)

CARRIER_READY = "READY_FOR_PICKUP"
CARRIER_TO_ORDER_STATUS = {
    "CANCELLED": OrderStatus.CANCELLED.value,
    "DELIVERED": OrderStatus.DELIVERED.value,
}

def new_order_id() -> str:
    return f"ORD-{uuid.uuid4().hex}"

class OrderService:
    """Order placement and the carrier-driven part of the order lifecycle.

    PENDING -> SHIPPED once a shipment exists, then DELIVERED or CANCELLED as
    reported by the carrier. DELIVERED and CANCELLED are final.
    """

    def __init__(self, repos: Repositories, gateway: ShipmentGateway,
                 products: ProductService, notifier: Optional[EmailNotifier] = None):
        self.repos = repos
        self.gateway = gateway
        self.products = products
        self.notifier = notifier or EmailNotifier()

    def list_orders(self, customer_id: Optional[str] = None, merchant_id: Optional[str] = None) -> list[Order]:
        if customer_id:
            return self.repos.orders.list_for_customer(customer_id)
        if merchant_id:
            return self.repos.orders.list_for_merchant(merchant_id)
        return self.repos.orders.list()

    def get(self, order_id: str) -> Optional[Order]:
        return self.repos.orders.get(order_id)

    def list_items(self, order_id: Optional[str] = None) -> list[OrderItem]:
        if order_id:
            return self.repos.order_items.list_for_order(order_id)
        return self.repos.order_items.list()

    def place_order(self, product_id: str, user_id: str, payment_method: PaymentMethod,
                    shipping: ShippingDetails, affiliate_broker_id: Optional[str] = None) -> ActionResponse:
        product = self.products.get_by_id(product_id)
        if not product:
            return ActionResponse.fail(PRODUCT_NOT_FOUND)

        price = product.price or 0
        order = Order(
            id=new_order_id(),
            customer_id=user_id,
            merchant_id=product.merchant_id,
            total_amount=price,
            status=OrderStatus.PENDING.value,
            payment_method=PaymentMethod(payment_method).value,
            shipping_name=shipping.full_name,
            shipping_phone=shipping.phone,
            shipping_address=shipping.address,
            city_id=shipping.city_id,
            city_name=resolve_location_name(shipping.city_id, "city") or None,
            village_id=shipping.village_id,
            village_name=resolve_location_name(shipping.village_id, "village") or None,
            region_id=shipping.region_id,
            affiliate_broker_id=affiliate_broker_id,
        )
        # Two independent writes: the order, then its single line item
        self.repos.orders.add(order)
        self.repos.order_items.add(OrderItem(
            id=f"ITM-{uuid.uuid4().hex}",
            order_id=order.id,
            product_id=product.id,
            product_name_snapshot=product.name,
            quantity=1,
            price=price,
        ))
        self.repos.orders.refresh(order)

        logger.info(
            f"Order {order.id} placed",
            extra={"extra_fields": {"order_id": order.id, "product_id": product.id,
                                    "customer_id": user_id, "total": price}},
        )
        return ActionResponse.ok(order)

    def delete(self, order_id: str) -> bool:
        return self.repos.orders.delete(order_id)

    def update_shipment_info(self, order_id: str, info: ShipmentResponse) -> Optional[Order]:
        order = self.get(order_id)
        if not order:
            return None
        if order.status in TERMINAL_ORDER_STATUSES:
            logger.warning(f"Ignoring shipment info for final order {order_id} ({order.status})")
            return order
        return self.repos.orders.update(
            order_id,
            shipment_id=info.shipment_id,
            tracking_number=info.tracking_number,
            barcode=info.barcode,
            barcode_image=info.barcode_image,
            expected_delivery_date=info.expected_delivery_date,
            shipment_cost=info.cost,
            status=OrderStatus.SHIPPED.value,
            delivery_status=CARRIER_READY,
        )

    def update_status(self, order_id: str, carrier_status: str) -> Optional[Order]:
        """Apply a carrier status; only CANCELLED and DELIVERED move the order status."""
        order = self.get(order_id)
        if not order:
            return None
        if order.status in TERMINAL_ORDER_STATUSES:
            logger.warning(f"Ignoring carrier status {carrier_status} for final order {order_id}")
            return order

        changes = {"delivery_status": carrier_status}
        if carrier_status in CARRIER_TO_ORDER_STATUS:
            changes["status"] = CARRIER_TO_ORDER_STATUS[carrier_status]
        logger.info(
            f"Order {order_id} carrier status {carrier_status}",
            extra={"extra_fields": {"order_id": order_id, "previous": order.delivery_status,
                                    "delivery_status": carrier_status}},
        )
        return self.repos.orders.update(order_id, **changes)

    def update_order_status(self, order_id: str, status: str) -> ActionResponse:
        try:
            status = OrderStatus(status).value
        except ValueError:
            return ActionResponse.fail(f"Unknown order status: {status}")
        order = self.get(order_id)
        if not order:
            return ActionResponse.fail(ORDER_NOT_FOUND)
        if order.status in TERMINAL_ORDER_STATUSES:
            return ActionResponse.fail(ORDER_ALREADY_FINAL)
        return ActionResponse.ok(self.repos.orders.update(order_id, status=status))

    def automate_shipment_creation(self, order_id: str, merchant_id: str) -> ShipmentResponse:
        """Create the carrier shipment for an already placed order (merchant action)."""
        order = self.get(order_id)
        if not order:
            return ShipmentResponse(success=False, error=ORDER_NOT_FOUND)
        if order.status in TERMINAL_ORDER_STATUSES:
            return ShipmentResponse(success=False, error=ORDER_ALREADY_FINAL)
        if not order.shipping_address or not order.shipping_phone:
            return ShipmentResponse(success=False, error=MISSING_SHIPPING_ADDRESS)

        merchant = self.repos.users.get(merchant_id)
        profile = self.repos.merchant_profiles.get_by_user_id(merchant_id)
        items = self.list_items(order_id)
        description = items[0].product_name_snapshot if len(items) == 1 else "Various Items"

        body = prepare_shipment_payload(
            order_id=order.id,
            product_name=description or "Various Items",
            price=order.total_amount or 0,
            customer=ShipmentCustomer(
                name=order.shipping_name or order.shipping_phone,
                phone=order.shipping_phone,
                address=order.shipping_address,
                city_id=order.city_id,
                village_id=order.village_id,
                region_id=order.region_id or 1,
                shipment_type="COD" if order.payment_method == PaymentMethod.COD.value else "REGULAR",
            ),
            merchant=build_merchant_origin(merchant, profile),
        )
        result = self.gateway.create_shipment(body)
        if not result.success:
            logger.warning(f"Shipment creation failed for order {order_id}: {result.error}")
            return result

        self.update_shipment_info(order_id, result)
        if merchant:
            self.notifier.send(
                merchant.email,
                f"Shipment Created for Order #{order_id}",
                f"Tracking: {result.tracking_number}",
            )
        return result

    def sync_shipment_statuses(self, customer_id: str) -> list[Order]:
        """Poll the carrier for every open shipment of a customer; returns the orders that changed."""
        changed = []
        for order in self.repos.orders.list_for_customer(customer_id):
            if not order.shipment_id or order.delivery_status in CARRIER_TO_ORDER_STATUS:
                continue
            status = self.gateway.get_shipment_status(order.shipment_id)
            if status and status != order.delivery_status:
                changed.append(self.update_status(order.id, status))
        return changed

    def cancel_order(self, order_id: str, email: str, password: str) -> ActionResponse:
        order = self.get(order_id)
        if not order:
            return ActionResponse.fail(ORDER_NOT_FOUND)
        if order.status in TERMINAL_ORDER_STATUSES:
            return ActionResponse.fail(ORDER_ALREADY_FINAL)

        if order.shipment_id:
            response = self.gateway.cancel_shipment(order.shipment_id, email, password)
            if not response.success:
                logger.warning(f"Carrier refused cancellation of {order.shipment_id}: {response.error}")
                return response
        return ActionResponse.ok(self.update_status(order_id, "CANCELLED"))
