from conftest import BROKER_ID, CUSTOMER_ID
from palma.application.checkout_service import PaymentProcessor
from palma.application.schemas import ActionResponse, CartItem, PAYMENT_FAILED
from palma.domain.models import OrderStatus, PaymentMethod
from palma.infrastructure.gateway import MockShipmentGateway, ShipmentResponse
from palma.store import MarketStore

class RefusingGateway(MockShipmentGateway):
    """Carrier that refuses shipments for one invoice description."""

    def __init__(self, refused_description):
        self.refused_description = refused_description

    def create_shipment(self, body):
        if body.pkg.description == self.refused_description:
            return ShipmentResponse(success=False, error="Village not served")
        return super().create_shipment(body)

class DecliningProcessor(PaymentProcessor):
    def process_digital_payment(self, method, amount):
        return ActionResponse.fail(PAYMENT_FAILED)

def cart_item(pid, name, price, quantity=1):
    return CartItem(id=pid, name=name, price=price, quantity=quantity,
                    merchant_id="b0eebc99-9c0b-4ef8-bb6d-6bb9bd380b11")

class TestCheckout:
    def test_every_line_gets_order_and_shipment(self, seeded, store, repos, notifier, shipping):
        cart = [cart_item("p1", "Jacket", 250), cart_item("p2", "Shoes", 180)]
        result = store.checkout(CUSTOMER_ID, cart, PaymentMethod.COD, shipping)
        assert result.success
        assert [line.product_id for line in result.lines] == ["p1", "p2"]
        assert all(line.order.status == OrderStatus.SHIPPED.value for line in result.lines)
        assert all(line.order.shipment_id.startswith("FL-") for line in result.lines)
        assert repos.orders.count() == 2
        assert [m["to"] for m in notifier.sent] == ["customer@palma.com", "customer@palma.com"]

    def test_quantity_becomes_separate_orders(self, seeded, store, repos, shipping):
        result = store.checkout(CUSTOMER_ID, [cart_item("p2", "Shoes", 180, quantity=3)], PaymentMethod.COD, shipping)
        assert result.success
        assert len(result.lines) == 3
        assert repos.orders.count() == 3

    def test_failed_shipment_removes_its_order(self, seeded, repos, notifier, shipping):
        store = MarketStore(repos, RefusingGateway("Shoes"), notifier=notifier)
        cart = [cart_item("p1", "Jacket", 250), cart_item("p2", "Shoes", 180), cart_item("p3", "Bag", 320)]
        result = store.checkout(CUSTOMER_ID, cart, PaymentMethod.COD, shipping)

        assert not result.success
        assert result.error == "Village not served"
        assert [line.success for line in result.lines] == [True, False, True]
        assert result.lines[1].order is None
        remaining = repos.orders.list()
        assert len(remaining) == 2
        assert {o.items[0].product_id for o in remaining} == {"p1", "p3"}
        assert repos.order_items.count() == 2

    def test_unknown_product_line(self, seeded, store, shipping):
        result = store.checkout(CUSTOMER_ID, [cart_item("ghost", "Ghost", 5)], PaymentMethod.COD, shipping)
        assert not result.success
        assert result.lines[0].error == "Product not found"

    def test_declined_payment_places_nothing(self, seeded, repos, notifier, shipping):
        store = MarketStore(repos, MockShipmentGateway(), notifier=notifier, payments=DecliningProcessor())
        result = store.checkout(CUSTOMER_ID, [cart_item("p1", "Jacket", 250)], PaymentMethod.CREDIT_CARD, shipping)
        assert not result.success
        assert result.error == PAYMENT_FAILED
        assert result.lines == []
        assert repos.orders.count() == 0

    def test_empty_cart(self, store, shipping):
        result = store.checkout(CUSTOMER_ID, [], PaymentMethod.COD, shipping)
        assert not result.success
        assert result.error == "Cart is empty"

class TestReferralCommission:
    def test_commission_and_share_sales(self, seeded, store, shipping):
        share = store.upsert_shared_product(BROKER_ID, "p4")
        result = store.checkout(CUSTOMER_ID, [cart_item("p4", "Headphones", 450)], PaymentMethod.COD, shipping,
                                referrer_id=BROKER_ID)
        assert result.success
        order = result.lines[0].order
        assert order.affiliate_broker_id == BROKER_ID

        commissions = store.get_commissions(BROKER_ID)
        assert len(commissions) == 1
        assert commissions[0].amount == 9.0
        assert commissions[0].order_id == order.id
        assert commissions[0].status == "PENDING"
        assert store.get_shared_products(BROKER_ID)[0].sales == 1
        assert share.id == store.get_shared_products(BROKER_ID)[0].id

    def test_no_commission_for_failed_line(self, seeded, repos, notifier, shipping):
        store = MarketStore(repos, RefusingGateway("Headphones"), notifier=notifier)
        store.checkout(CUSTOMER_ID, [cart_item("p4", "Headphones", 450)], PaymentMethod.COD, shipping,
                       referrer_id=BROKER_ID)
        assert store.get_commissions(BROKER_ID) == []

    def test_referral_needs_an_approved_broker(self, seeded, store, shipping):
        for referrer in (CUSTOMER_ID, "nobody"):
            result = store.checkout(CUSTOMER_ID, [cart_item("p2", "Shoes", 180)], PaymentMethod.COD, shipping,
                                    referrer_id=referrer)
            assert result.success
            assert result.lines[0].order.affiliate_broker_id is None
        assert store.get_commissions() == []

    def test_pending_broker_earns_nothing(self, seeded, store, shipping):
        store.set_user_status(BROKER_ID, "PENDING")
        store.checkout(CUSTOMER_ID, [cart_item("p2", "Shoes", 180)], PaymentMethod.COD, shipping,
                       referrer_id=BROKER_ID)
        assert store.get_commissions(BROKER_ID) == []
