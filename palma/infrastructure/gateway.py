"""Logistics carrier gateway.

The carrier is reached through a ``ShipmentGateway`` picked once when the
application starts (``build_gateway``): the mock gateway for demo and test
environments, or the HTTP gateway talking to the FlashLine/Logestechs API.
Neither implementation raises; failures come back as ``success=False``.
"""
import random
import string
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Optional
import httpx
from pydantic import BaseModel
from shared.core import get_logger
from palma.application.schemas import ActionResponse
from palma.application.shipping import ShipmentBody, validate_shipment_payload
from palma.core_settings import Settings

logger = get_logger(__name__)

MOCK_SHIPMENT_PREFIX = "FL-"
MOCK_DELIVERY_DAYS = 3
MOCK_SHIPMENT_COST = 15

PROCESSING_LABEL = "قيد المعالجة"
STATUS_LABELS = {
    "READY_FOR_PICKUP": "جاهز للاستلام",
    "IN_TRANSIT": "قيد التوصيل",
    "CANCELLED": "ملغاة",
    "DELIVERED": "تم التسليم",
}

class ShipmentResponse(BaseModel):
    success: bool
    shipment_id: Optional[str] = None
    tracking_number: Optional[str] = None
    barcode: Optional[str] = None
    barcode_image: Optional[str] = None
    expected_delivery_date: Optional[str] = None
    cost: Optional[float] = None
    status: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None
    payload: Optional[dict[str, Any]] = None

def map_flashline_status(status: Optional[str]) -> str:
    """Display label for a carrier status; unknown statuses pass through."""
    if not status:
        return PROCESSING_LABEL
    return STATUS_LABELS.get(status, status)

def barcode_image_url(text: str) -> str:
    return f"https://bwipjs-api.metafloor.com/?bcid=code128&text={text}&scale=2&rotate=N&includetext"

class ShipmentGateway(ABC):
    mode: str

    @abstractmethod
    def create_shipment(self, body: ShipmentBody) -> ShipmentResponse:
        ...

    @abstractmethod
    def get_shipment_status(self, shipment_id: str) -> Optional[str]:
        ...

    @abstractmethod
    def cancel_shipment(self, shipment_id: str, email: str, password: str) -> ActionResponse:
        ...

    def get_shipment_labels(self, shipment_id: str) -> list[str]:
        return [f"https://placehold.co/400x600?text=Label+{shipment_id}"]

class MockShipmentGateway(ShipmentGateway):
    """Simulated carrier: every valid shipment is accepted."""

    mode = "mock"

    def _new_shipment_id(self) -> str:
        suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
        return f"{MOCK_SHIPMENT_PREFIX}{suffix}"

    def create_shipment(self, body: ShipmentBody) -> ShipmentResponse:
        validation = validate_shipment_payload(body)
        if not validation.valid:
            return ShipmentResponse(success=False, error=validation.error)

        shipment_id = self._new_shipment_id()
        return ShipmentResponse(
            success=True,
            shipment_id=shipment_id,
            tracking_number=shipment_id,
            barcode=f"PALMA-{body.pkg.invoice_number}",
            barcode_image=barcode_image_url(shipment_id),
            expected_delivery_date=(datetime.utcnow() + timedelta(days=MOCK_DELIVERY_DAYS)).isoformat(),
            cost=MOCK_SHIPMENT_COST,
            status="READY_FOR_PICKUP",
            payload=body.to_wire(),
        )

    def get_shipment_status(self, shipment_id: str) -> Optional[str]:
        if shipment_id and shipment_id.startswith(MOCK_SHIPMENT_PREFIX):
            return "IN_TRANSIT"
        return None

    def cancel_shipment(self, shipment_id: str, email: str, password: str) -> ActionResponse:
        return ActionResponse.ok({"message": "Simulated cancellation", "id": shipment_id})

class FlashlineShipmentGateway(ShipmentGateway):
    """HTTP client for the FlashLine (Logestechs) carrier API."""

    mode = "live"

    def __init__(self, api_url: str, email: str, password: str, company_id: int,
                 timeout: float = 5.0, transport: Optional[httpx.BaseTransport] = None):
        self.api_url = api_url.rstrip("/")
        self.email = email
        self.password = password
        self.company_id = company_id
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.api_url, timeout=self.timeout, transport=self.transport)

    def create_shipment(self, body: ShipmentBody) -> ShipmentResponse:
        validation = validate_shipment_payload(body)
        if not validation.valid:
            return ShipmentResponse(success=False, error=validation.error)

        payload = body.model_copy(update={"email": self.email, "password": self.password}).to_wire()
        try:
            with self._client() as client:
                response = client.post("/ship/request/by-email", json=payload)
            data = response.json()
            if not isinstance(data, dict):
                data = {}
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Carrier shipment request failed: {e}")
            return ShipmentResponse(success=False, error=str(e))

        if response.status_code >= 400:
            error = data.get("error") or data.get("message") or f"Carrier returned {response.status_code}"
            logger.warning(
                "Carrier rejected shipment",
                extra={"extra_fields": {"status_code": response.status_code, "error": error}},
            )
            return ShipmentResponse(success=False, error=error)

        shipment_id = str(data.get("id") or data.get("shipmentId") or "")
        if not shipment_id:
            return ShipmentResponse(success=False, error="Carrier response missing shipment id")
        barcode = data.get("barcode") or shipment_id
        return ShipmentResponse(
            success=True,
            shipment_id=shipment_id,
            tracking_number=barcode,
            barcode=barcode,
            barcode_image=data.get("barcodeImage") or barcode_image_url(barcode),
            expected_delivery_date=data.get("expectedDeliveryDate"),
            cost=data.get("cost"),
            status=data.get("status") or "READY_FOR_PICKUP",
            payload=body.to_wire(),
        )

    def get_shipment_status(self, shipment_id: str) -> Optional[str]:
        try:
            with self._client() as client:
                response = client.get(f"/guests/{self.company_id}/packages/{shipment_id}")
            if response.status_code == 200:
                data = response.json()
                status = data.get("status") if isinstance(data, dict) else None
                return str(status) if status else None
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Carrier status lookup failed for {shipment_id}: {e}")
        return None

    def cancel_shipment(self, shipment_id: str, email: str, password: str) -> ActionResponse:
        try:
            with self._client() as client:
                response = client.post(
                    f"/ship/{shipment_id}/cancel",
                    json={"email": email, "password": password},
                )
            data = response.json()
            if not isinstance(data, dict):
                data = {}
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Carrier cancellation failed for {shipment_id}: {e}")
            return ActionResponse.fail(str(e))
        if response.status_code >= 400:
            return ActionResponse.fail(data.get("error") or data.get("message") or "Cancellation rejected")
        return ActionResponse.ok(data)

    def get_shipment_labels(self, shipment_id: str) -> list[str]:
        return [f"{self.api_url}/guests/{self.company_id}/packages/{shipment_id}/pdf"]

def build_gateway(settings: Settings) -> ShipmentGateway:
    if settings.USE_MOCK_SHIPMENTS:
        return MockShipmentGateway()
    return FlashlineShipmentGateway(
        api_url=settings.FLASHLINE_API_URL,
        email=settings.FLASHLINE_EMAIL,
        password=settings.FLASHLINE_PASSWORD,
        company_id=settings.FLASHLINE_COMPANY_ID,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
