from palma.application.shipping import (
    ShipmentCustomer, ShipmentMerchant, build_merchant_origin, prepare_shipment_payload,
    validate_shipment_payload,
)
from palma.domain.models import MerchantProfile, User

def make_customer(**overrides):
    fields = dict(
        name="Ahmed Customer",
        phone="0599333333",
        address="Main Street 5",
        city_id=2,
        village_id=202,
        region_id=1,
        notes="Ring twice",
    )
    fields.update(overrides)
    return ShipmentCustomer(**fields)

MERCHANT = ShipmentMerchant(name="Sami", business_name="Palma Fashion", phone="0599111111", address="Ramallah")

class TestPrepareShipmentPayload:
    def test_cod_amount_and_reference(self):
        body = prepare_shipment_payload("ORD-1", "Jacket", 250, make_customer(), MERCHANT)
        assert body.pkg.cod == 250
        assert body.pkg.quantity == 1
        assert body.pkg.invoice_number == "ORD-1"
        assert body.pkg.notes == "Ring twice | Palma Ref: ORD-1"
        assert body.destination_address.village_id == 202
        assert body.origin_address.city_id == 1

    def test_prepaid_shipment_has_no_cod(self):
        body = prepare_shipment_payload("ORD-2", "Jacket", 250, make_customer(shipment_type="REGULAR"), MERCHANT)
        assert body.pkg.cod == 0
        assert body.pkg.shipment_type == "REGULAR"

    def test_notes_without_customer_notes(self):
        body = prepare_shipment_payload("ORD-3", "Bag", 10, make_customer(notes=None), MERCHANT)
        assert body.pkg.notes == " | Palma Ref: ORD-3"

    def test_wire_format_uses_camel_case(self):
        wire = prepare_shipment_payload("ORD-4", "Bag", 10, make_customer(), MERCHANT).to_wire()
        assert wire["pkgUnitType"] == "METRIC"
        assert wire["pkg"]["invoiceNumber"] == "ORD-4"
        assert wire["pkg"]["receiverPhone"] == "0599333333"
        assert wire["destinationAddress"]["addressLine1"] == "Main Street 5"
        assert "email" not in wire

class TestValidateShipmentPayload:
    def test_valid(self):
        body = prepare_shipment_payload("ORD-1", "Jacket", 250, make_customer(), MERCHANT)
        assert validate_shipment_payload(body).valid

    def test_short_phone(self):
        body = prepare_shipment_payload("ORD-1", "Jacket", 250, make_customer(phone="0599"), MERCHANT)
        result = validate_shipment_payload(body)
        assert not result.valid
        assert result.error == "Invalid receiver phone"

    def test_missing_village(self):
        body = prepare_shipment_payload("ORD-1", "Jacket", 250, make_customer(village_id=None), MERCHANT)
        assert validate_shipment_payload(body).error == "Incomplete address"

class TestMerchantOrigin:
    def test_defaults_without_profile(self):
        origin = build_merchant_origin(None, None)
        assert origin.name == "Palma Merchant"
        assert (origin.city_id, origin.village_id, origin.region_id) == (1, 101, 1)

    def test_profile_location_wins(self):
        merchant = User(id="m1", email="m@x.com", name="Sami")
        profile = MerchantProfile(id="mp", user_id="m1", business_name="Palma Fashion", phone="0599111111",
                                  city="Nablus", city_id=2, village_id=203, region_id=1)
        origin = build_merchant_origin(merchant, profile)
        assert origin.business_name == "Palma Fashion"
        assert origin.address == "Nablus"
        assert (origin.city_id, origin.village_id) == (2, 203)
