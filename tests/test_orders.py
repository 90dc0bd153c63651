from conftest import CUSTOMER_ID, MERCHANT_ID
from palma.application.schemas import ActionResponse, ORDER_ALREADY_FINAL, PRODUCT_NOT_FOUND
from palma.domain.models import OrderStatus, PaymentMethod
from palma.infrastructure.gateway import MockShipmentGateway, ShipmentResponse
from palma.store import MarketStore

class ScriptedGateway(MockShipmentGateway):
    """Mock carrier whose status answers are set by the test."""

    def __init__(self, statuses=None, cancel_ok=True):
        self.statuses = statuses or {}
        self.cancel_ok = cancel_ok
        self.cancelled = []

    def get_shipment_status(self, shipment_id):
        return self.statuses.get(shipment_id)

    def cancel_shipment(self, shipment_id, email, password):
        self.cancelled.append(shipment_id)
        if not self.cancel_ok:
            return ActionResponse.fail("Already picked up")
        return super().cancel_shipment(shipment_id, email, password)

def shipped(store, shipping, shipment_id="FL-TEST01"):
    order = store.place_order("p1", CUSTOMER_ID, PaymentMethod.COD, shipping).data
    return store.update_order_shipment(order.id, ShipmentResponse(
        success=True, shipment_id=shipment_id, tracking_number=shipment_id, barcode="PALMA-X",
        barcode_image="https://img/bc", expected_delivery_date="2024-06-01T00:00:00", cost=15,
    ))

class TestPlaceOrder:
    def test_order_for_known_product(self, seeded, store, repos, shipping):
        result = store.place_order("p1", CUSTOMER_ID, PaymentMethod.COD, shipping)
        assert result.success
        order = result.data
        assert order.id.startswith("ORD-")
        assert order.total_amount == 250
        assert order.status == OrderStatus.PENDING.value
        assert order.merchant_id == MERCHANT_ID
        assert order.city_name == "رام الله"
        assert order.village_name == "البيرة"
        assert len(order.items) == 1
        assert order.items[0].quantity == 1
        assert order.items[0].price == 250
        assert repos.orders.count() == 1
        assert repos.order_items.count() == 1

    def test_unknown_product_persists_nothing(self, seeded, store, repos, shipping):
        result = store.place_order("nonexistent-id", CUSTOMER_ID, PaymentMethod.COD, shipping)
        assert not result.success
        assert result.error == PRODUCT_NOT_FOUND
        assert repos.orders.count() == 0
        assert repos.order_items.count() == 0

    def test_order_ids_are_unique(self, seeded, store, shipping):
        ids = {store.place_order("p2", CUSTOMER_ID, PaymentMethod.COD, shipping).data.id for _ in range(5)}
        assert len(ids) == 5

class TestShipmentInfo:
    def test_shipment_info_marks_shipped(self, seeded, store, shipping):
        order = shipped(store, shipping)
        assert order.status == OrderStatus.SHIPPED.value
        assert order.delivery_status == "READY_FOR_PICKUP"
        assert order.shipment_id == "FL-TEST01"
        assert order.shipment_cost == 15

    def test_carrier_statuses(self, seeded, store, shipping):
        order = shipped(store, shipping)
        assert store.update_local_order_status(order.id, "IN_TRANSIT").status == OrderStatus.SHIPPED.value
        delivered = store.update_local_order_status(order.id, "DELIVERED")
        assert delivered.status == OrderStatus.DELIVERED.value
        assert delivered.delivery_status == "DELIVERED"

    def test_final_orders_never_move(self, seeded, store, shipping):
        order = shipped(store, shipping)
        store.update_local_order_status(order.id, "CANCELLED")
        after = store.update_local_order_status(order.id, "DELIVERED")
        assert after.status == OrderStatus.CANCELLED.value
        assert after.delivery_status == "CANCELLED"
        result = store.update_order_status(order.id, "COMPLETED")
        assert not result.success
        assert result.error == ORDER_ALREADY_FINAL

    def test_unknown_order(self, store):
        assert store.update_local_order_status("ORD-missing", "DELIVERED") is None

class TestAutomateShipment:
    def test_creates_shipment_and_notifies_merchant(self, seeded, store, notifier, shipping):
        order = store.place_order("p3", CUSTOMER_ID, PaymentMethod.COD, shipping).data
        result = store.automate_shipment_creation(order.id, MERCHANT_ID)
        assert result.success
        assert result.payload["pkg"]["cod"] == 320
        assert result.payload["originAddress"]["cityId"] == 1
        assert store.get_order(order.id).status == OrderStatus.SHIPPED.value
        assert notifier.sent[-1]["to"] == "merchant@store.com"

    def test_prepaid_order_ships_without_cod(self, seeded, store, shipping):
        order = store.place_order("p3", CUSTOMER_ID, PaymentMethod.CREDIT_CARD, shipping).data
        result = store.automate_shipment_creation(order.id, MERCHANT_ID)
        assert result.payload["pkg"]["cod"] == 0

    def test_missing_order(self, store):
        result = store.automate_shipment_creation("ORD-missing", MERCHANT_ID)
        assert not result.success

class TestSyncAndCancel:
    def test_sync_applies_changed_statuses(self, seeded, repos, store, shipping, notifier):
        gateway = ScriptedGateway({"FL-A": "DELIVERED", "FL-B": "READY_FOR_PICKUP"})
        scripted = MarketStore(repos, gateway, notifier=notifier)
        a = shipped(scripted, shipping, "FL-A")
        b = shipped(scripted, shipping, "FL-B")

        changed = scripted.sync_shipment_statuses(CUSTOMER_ID)
        assert [o.id for o in changed] == [a.id]
        assert scripted.get_order(a.id).status == OrderStatus.DELIVERED.value
        assert scripted.get_order(b.id).status == OrderStatus.SHIPPED.value
        assert scripted.sync_shipment_statuses(CUSTOMER_ID) == []

    def test_cancel_order(self, seeded, repos, notifier, shipping):
        gateway = ScriptedGateway()
        scripted = MarketStore(repos, gateway, notifier=notifier)
        order = shipped(scripted, shipping, "FL-C")
        result = scripted.cancel_order(order.id, "customer@palma.com", "password")
        assert result.success
        assert result.data.status == OrderStatus.CANCELLED.value
        assert gateway.cancelled == ["FL-C"]

    def test_carrier_refusal_keeps_order(self, seeded, repos, notifier, shipping):
        scripted = MarketStore(repos, ScriptedGateway(cancel_ok=False), notifier=notifier)
        order = shipped(scripted, shipping, "FL-D")
        result = scripted.cancel_order(order.id, "customer@palma.com", "password")
        assert not result.success
        assert scripted.get_order(order.id).status == OrderStatus.SHIPPED.value

    def test_delivered_order_cannot_be_cancelled(self, seeded, store, shipping):
        order = shipped(store, shipping)
        store.update_local_order_status(order.id, "DELIVERED")
        result = store.cancel_order(order.id, "customer@palma.com", "password")
        assert result.error == ORDER_ALREADY_FINAL
