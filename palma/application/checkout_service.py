"""Multi-item checkout.

Every unit in the cart becomes its own order with its own shipment. Lines are
independent: when the carrier refuses a shipment, the order created for it
is deleted again and the failure is reported for that line only.
"""
from typing import Optional
from shared.core import get_logger
from palma.domain.models import PaymentMethod
from .broker_service import BrokerService
from .cart_service import calculate_total
from .notifications import EmailNotifier, shipment_details_email
from .order_service import OrderService
from .schemas import (
    ActionResponse, CartItem, CheckoutLineResult, CheckoutResult, OrderRead,
    ShippingDetails, PAYMENT_FAILED,
)
from .shipping import ShipmentCustomer, build_merchant_origin, prepare_shipment_payload

logger = get_logger(__name__)

class PaymentProcessor:
    """Stand-in for the card processor; COD and card payments are accepted."""

    def process_digital_payment(self, method: PaymentMethod, amount: float) -> ActionResponse:
        if amount < 0:
            return ActionResponse.fail(PAYMENT_FAILED)
        logger.info("Payment accepted", extra={"extra_fields": {"method": PaymentMethod(method).value, "amount": amount}})
        return ActionResponse.ok({"method": PaymentMethod(method).value, "amount": amount})

class CheckoutService:
    def __init__(self, orders: OrderService, brokers: BrokerService,
                 payments: Optional[PaymentProcessor] = None,
                 notifier: Optional[EmailNotifier] = None):
        self.orders = orders
        self.brokers = brokers
        self.payments = payments or PaymentProcessor()
        self.notifier = notifier or orders.notifier

    def checkout(self, user_id: str, cart: list[CartItem], payment_method: PaymentMethod,
                 shipping: ShippingDetails, referrer_id: Optional[str] = None) -> CheckoutResult:
        if not cart:
            return CheckoutResult(success=False, error="Cart is empty")

        payment = self.payments.process_digital_payment(payment_method, calculate_total(cart))
        if not payment.success:
            logger.warning(f"Checkout aborted for {user_id}: {payment.error}")
            return CheckoutResult(success=False, error=payment.error or PAYMENT_FAILED)

        if referrer_id and not self.brokers.is_active_broker(referrer_id):
            logger.warning(f"Ignoring referral from {referrer_id}: not an approved broker")
            referrer_id = None

        lines = []
        for item in cart:
            for _ in range(item.quantity):
                lines.append(self._checkout_line(user_id, item, payment_method, shipping, referrer_id))

        failed = [line for line in lines if not line.success]
        return CheckoutResult(
            success=not failed,
            error=failed[0].error if failed else None,
            lines=lines,
        )

    def _checkout_line(self, user_id: str, item: CartItem, payment_method: PaymentMethod,
                       shipping: ShippingDetails, referrer_id: Optional[str]) -> CheckoutLineResult:
        placed = self.orders.place_order(item.id, user_id, payment_method, shipping,
                                         affiliate_broker_id=referrer_id)
        if not placed.success:
            return CheckoutLineResult(product_id=item.id, success=False, error=placed.error)
        order = placed.data

        merchant_id = item.merchant_id or order.merchant_id
        body = prepare_shipment_payload(
            order_id=order.id,
            product_name=item.name or order.items[0].product_name_snapshot,
            price=order.total_amount,
            customer=ShipmentCustomer(
                name=shipping.full_name,
                phone=shipping.phone,
                phone2=shipping.phone2,
                email=shipping.email,
                address=shipping.address,
                city_id=shipping.city_id,
                village_id=shipping.village_id,
                region_id=shipping.region_id,
                notes=shipping.notes,
                shipment_type=shipping.shipment_type,
            ),
            merchant=build_merchant_origin(
                self.orders.repos.users.get(merchant_id) if merchant_id else None,
                self.orders.repos.merchant_profiles.get_by_user_id(merchant_id) if merchant_id else None,
            ),
        )

        shipment = self.orders.gateway.create_shipment(body)
        if not shipment.success:
            # compensate: the order never reached the carrier
            self.orders.delete(order.id)
            logger.warning(
                f"Shipment failed for order {order.id}, order removed",
                extra={"extra_fields": {"order_id": order.id, "product_id": item.id, "error": shipment.error}},
            )
            return CheckoutLineResult(product_id=item.id, success=False, error=shipment.error)

        order = self.orders.update_shipment_info(order.id, shipment)
        subject, html = shipment_details_email(
            customer_name=shipping.full_name,
            order_id=order.id,
            shipment_id=shipment.shipment_id,
            barcode_image=shipment.barcode_image,
            cod=body.pkg.cod,
            delivery_date=shipment.expected_delivery_date,
            notes=f"Type: {shipping.shipment_type}",
        )
        self.notifier.send(shipping.email, subject, html)

        if referrer_id:
            self.brokers.record_commission(referrer_id, order.id, self.brokers.commission_for(order.total_amount))
            self.brokers.increment_share_sales(referrer_id, item.id)

        return CheckoutLineResult(product_id=item.id, success=True, order=OrderRead.model_validate(order))
