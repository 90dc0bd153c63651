import json
import httpx
from palma.application.shipping import ShipmentCustomer, ShipmentMerchant, prepare_shipment_payload
from palma.core_settings import Settings
from palma.infrastructure.gateway import (
    FlashlineShipmentGateway, MockShipmentGateway, PROCESSING_LABEL, build_gateway, map_flashline_status,
)

def valid_body(order_id="ORD-1"):
    return prepare_shipment_payload(
        order_id, "Jacket", 250,
        ShipmentCustomer(name="Ahmed", phone="0599333333", address="Main St", city_id=1, village_id=102, region_id=1),
        ShipmentMerchant(name="Sami", business_name="Palma Fashion", phone="0599111111", address="Ramallah"),
    )

class TestStatusMapping:
    def test_missing_status_is_processing(self):
        assert map_flashline_status(None) == PROCESSING_LABEL
        assert map_flashline_status("") == PROCESSING_LABEL

    def test_known_statuses(self):
        assert map_flashline_status("DELIVERED") == "تم التسليم"
        assert map_flashline_status("IN_TRANSIT") == "قيد التوصيل"

    def test_unknown_status_passes_through(self):
        assert map_flashline_status("RETURNED_TO_SENDER") == "RETURNED_TO_SENDER"

class TestMockGateway:
    def test_round_trip(self):
        gateway = MockShipmentGateway()
        result = gateway.create_shipment(valid_body())
        assert result.success
        assert result.shipment_id.startswith("FL-")
        assert result.barcode == "PALMA-ORD-1"
        assert result.cost == 15
        assert gateway.get_shipment_status(result.shipment_id) == "IN_TRANSIT"

    def test_invalid_payload_rejected(self):
        body = valid_body()
        body.pkg.receiver_phone = "123"
        result = MockShipmentGateway().create_shipment(body)
        assert not result.success
        assert result.error == "Invalid receiver phone"

    def test_unknown_shipment_has_no_status(self):
        assert MockShipmentGateway().get_shipment_status("XYZ") is None

    def test_cancel_always_succeeds(self):
        response = MockShipmentGateway().cancel_shipment("FL-ABC123", "me@x.com", "pw")
        assert response.success
        assert response.data["message"] == "Simulated cancellation"

def make_flashline(handler):
    return FlashlineShipmentGateway(
        api_url="https://carrier.test/api", email="ops@palma.com", password="s3cret",
        company_id=7, transport=httpx.MockTransport(handler),
    )

class TestFlashlineGateway:
    def test_create_shipment_sends_credentials(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": 991, "barcode": "BC991", "cost": 20})

        result = make_flashline(handler).create_shipment(valid_body())
        assert seen["path"] == "/api/ship/request/by-email"
        assert seen["body"]["email"] == "ops@palma.com"
        assert seen["body"]["pkg"]["invoiceNumber"] == "ORD-1"
        assert result.success
        assert result.shipment_id == "991"
        assert result.tracking_number == "BC991"
        assert "password" not in result.payload

    def test_carrier_error_is_reported(self):
        handler = lambda request: httpx.Response(400, json={"message": "Village not served"})
        result = make_flashline(handler).create_shipment(valid_body())
        assert not result.success
        assert result.error == "Village not served"

    def test_transport_failure_does_not_raise(self):
        def handler(request):
            raise httpx.ConnectError("carrier down")

        result = make_flashline(handler).create_shipment(valid_body())
        assert not result.success
        assert "carrier down" in result.error

    def test_status_lookup(self):
        def handler(request):
            assert request.url.path == "/api/guests/7/packages/991"
            return httpx.Response(200, json={"status": "DELIVERED"})

        assert make_flashline(handler).get_shipment_status("991") == "DELIVERED"

    def test_status_lookup_with_unexpected_body(self):
        handler = lambda request: httpx.Response(200, json=[1])
        assert make_flashline(handler).get_shipment_status("991") is None

    def test_cancel_rejected(self):
        handler = lambda request: httpx.Response(403, json={"error": "Already picked up"})
        response = make_flashline(handler).cancel_shipment("991", "ops@palma.com", "s3cret")
        assert not response.success
        assert response.error == "Already picked up"

def test_build_gateway_follows_settings():
    assert isinstance(build_gateway(Settings(USE_MOCK_SHIPMENTS=True)), MockShipmentGateway)
    live = build_gateway(Settings(USE_MOCK_SHIPMENTS=False))
    assert isinstance(live, FlashlineShipmentGateway)
    assert live.mode == "live"
    assert build_gateway(Settings(USE_MOCK_SHIPMENTS=True)).mode == "mock"
