"""Carrier request payloads.

Pure functions that turn an order, its customer and its merchant into the
body the logistics carrier expects. Nothing here performs I/O.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Any, Optional
from palma.domain.models import MerchantProfile, User

# Merchant hub used when a merchant profile carries no location
DEFAULT_ORIGIN_CITY_ID = 1
DEFAULT_ORIGIN_VILLAGE_ID = 101
DEFAULT_ORIGIN_REGION_ID = 1
MIN_RECEIVER_PHONE_LENGTH = 9

class CarrierModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True

class ShipmentPackage(CarrierModel):
    cod: float
    notes: str
    invoice_number: str
    sender_name: str
    receiver_name: str
    business_sender_name: str
    sender_phone: str
    sender_phone2: Optional[str] = None
    receiver_phone: str
    receiver_phone2: Optional[str] = None
    quantity: int = 1
    description: str
    shipment_type: str
    service_type: str = "STANDARD"

class ShipmentAddress(CarrierModel):
    address_line1: str
    address_line2: str = ""
    city_id: Optional[int] = None
    village_id: Optional[int] = None
    region_id: Optional[int] = None

class ShipmentBody(CarrierModel):
    email: Optional[str] = None
    password: Optional[str] = None
    pkg_unit_type: str = "METRIC"
    pkg: ShipmentPackage
    destination_address: ShipmentAddress
    origin_address: ShipmentAddress

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

class ShipmentValidation(BaseModel):
    valid: bool
    error: Optional[str] = None

class ShipmentCustomer(BaseModel):
    name: str
    phone: str
    phone2: Optional[str] = None
    email: Optional[str] = None
    address: str
    city_id: Optional[int] = None
    village_id: Optional[int] = None
    region_id: Optional[int] = None
    notes: Optional[str] = None
    shipment_type: str = "COD"

class ShipmentMerchant(BaseModel):
    name: str
    business_name: str
    phone: str
    phone2: Optional[str] = None
    address: str
    city_id: int = DEFAULT_ORIGIN_CITY_ID
    village_id: int = DEFAULT_ORIGIN_VILLAGE_ID
    region_id: int = DEFAULT_ORIGIN_REGION_ID

def validate_shipment_payload(body: ShipmentBody) -> ShipmentValidation:
    if not body.pkg.receiver_phone or len(body.pkg.receiver_phone) < MIN_RECEIVER_PHONE_LENGTH:
        return ShipmentValidation(valid=False, error="Invalid receiver phone")
    if not body.destination_address.city_id or not body.destination_address.village_id:
        return ShipmentValidation(valid=False, error="Incomplete address")
    return ShipmentValidation(valid=True)

def prepare_shipment_payload(
    order_id: str,
    product_name: str,
    price: float,
    customer: ShipmentCustomer,
    merchant: ShipmentMerchant,
) -> ShipmentBody:
    """Build one single-package shipment for an order.

    The package quantity is always 1: every order carries exactly one line
    item and gets exactly one shipment.
    """
    return ShipmentBody(
        pkg=ShipmentPackage(
            cod=price if customer.shipment_type == "COD" else 0,
            notes=f"{customer.notes or ''} | Palma Ref: {order_id}",
            invoice_number=order_id,
            sender_name=merchant.name,
            receiver_name=customer.name,
            business_sender_name=merchant.business_name,
            sender_phone=merchant.phone,
            sender_phone2=merchant.phone2,
            receiver_phone=customer.phone,
            receiver_phone2=customer.phone2,
            quantity=1,
            description=product_name,
            shipment_type=customer.shipment_type,
            service_type="STANDARD",
        ),
        destination_address=ShipmentAddress(
            address_line1=customer.address,
            city_id=customer.city_id,
            village_id=customer.village_id,
            region_id=customer.region_id,
        ),
        origin_address=ShipmentAddress(
            address_line1=merchant.address,
            city_id=merchant.city_id,
            village_id=merchant.village_id,
            region_id=merchant.region_id,
        ),
    )

def build_merchant_origin(merchant: Optional[User], profile: Optional[MerchantProfile]) -> ShipmentMerchant:
    """Sender block for a merchant, falling back to the hub defaults."""
    name = merchant.name if merchant else "Palma Merchant"
    if not profile:
        return ShipmentMerchant(
            name=name,
            business_name=(merchant.company_name if merchant else None) or name,
            phone=(merchant.phone if merchant else None) or "0590000000",
            address=(merchant.city if merchant else None) or "Ramallah",
        )
    return ShipmentMerchant(
        name=name,
        business_name=profile.business_name or "Palma Store",
        phone=profile.phone or "0590000000",
        address=profile.business_address or profile.city or "Merchant Hub",
        city_id=profile.city_id or DEFAULT_ORIGIN_CITY_ID,
        village_id=profile.village_id or DEFAULT_ORIGIN_VILLAGE_ID,
        region_id=profile.region_id or DEFAULT_ORIGIN_REGION_ID,
    )
