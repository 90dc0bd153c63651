"""Hosted product table (PostgREST over HTTP) and its row adapter.

Remote rows carry legacy duplicates (``title``/``name``, ``price``/``price_ils``,
``status``/``is_active``, ``image_url``/``images``). ``map_remote_product`` and
``to_remote_payload`` are the only places that know about them.
"""
from datetime import datetime
from typing import Any, Optional
import httpx
from palma.application.schemas import ProductData
from palma.core_settings import Settings

class RemoteCatalogError(Exception):
    pass

def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed
        except ValueError:
            pass
    return datetime.utcnow()

def map_remote_product(row: dict[str, Any]) -> ProductData:
    images = row.get("images") or []
    price = row.get("price") or row.get("price_ils") or 0
    return ProductData(
        id=str(row["id"]),
        merchant_id=row.get("merchant_id"),
        name=row.get("title") or row.get("name") or "",
        description=row.get("description") or "",
        price=float(price),
        stock=int(row.get("stock") or 0),
        category=row.get("category") or "other",
        image_url=row.get("image_url") or (images[0] if images else None),
        images=images,
        rating=float(row.get("rating") or 0),
        review_count=int(row.get("review_count") or 0),
        is_active=row.get("status") == "active" or bool(row.get("is_active")),
        is_bestseller=bool(row.get("is_bestseller")),
        sku=row.get("sku"),
        created_at=_parse_timestamp(row.get("created_at")),
    )

def to_remote_payload(changes: dict[str, Any]) -> dict[str, Any]:
    """Translate canonical product fields into the remote table's columns."""
    payload: dict[str, Any] = {}
    for key in ("merchant_id", "description", "stock", "category", "is_bestseller", "sku"):
        if changes.get(key) is not None:
            payload[key] = changes[key]
    if changes.get("name"):
        payload["title"] = changes["name"]
        payload["name"] = changes["name"]
    if changes.get("price") is not None:
        payload["price"] = changes["price"]
        payload["price_ils"] = changes["price"]
    if changes.get("is_active") is not None:
        payload["status"] = "active" if changes["is_active"] else "inactive"
        payload["is_active"] = changes["is_active"]
    if changes.get("images"):
        payload["images"] = changes["images"]
        payload["image_url"] = changes["images"][0]
    elif changes.get("image_url"):
        payload["image_url"] = changes["image_url"]
    return payload

class RemoteCatalog:
    def __init__(self, base_url: str, api_key: str, timeout: float = 5.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Prefer": "return=representation",
        }
        return httpx.Client(
            base_url=f"{self.base_url}/rest/v1",
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json() if response.content else None
        except (httpx.HTTPError, ValueError) as e:
            raise RemoteCatalogError(str(e)) from e

    def fetch_active(self) -> list[dict[str, Any]]:
        return self._request("GET", "/products", params={
            "select": "*",
            "or": "(status.eq.active,is_active.eq.true)",
            "order": "created_at.desc",
        }) or []

    def fetch_by_id(self, product_id: str) -> Optional[dict[str, Any]]:
        rows = self._request("GET", "/products", params={"select": "*", "id": f"eq.{product_id}"}) or []
        return rows[0] if rows else None

    def fetch_by_merchant(self, merchant_id: str) -> list[dict[str, Any]]:
        return self._request("GET", "/products", params={
            "select": "*",
            "merchant_id": f"eq.{merchant_id}",
            "order": "created_at.desc",
        }) or []

    def insert(self, payload: dict[str, Any]) -> dict[str, Any]:
        rows = self._request("POST", "/products", json=payload)
        if not rows:
            raise RemoteCatalogError("Insert returned no row")
        return rows[0]

    def update(self, product_id: str, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
        rows = self._request("PATCH", "/products", params={"id": f"eq.{product_id}"}, json=payload)
        return rows[0] if rows else None

    def delete(self, product_id: str) -> None:
        self._request("DELETE", "/products", params={"id": f"eq.{product_id}"})

def build_remote_catalog(settings: Settings) -> Optional[RemoteCatalog]:
    if not settings.remote_catalog_configured:
        return None
    return RemoteCatalog(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY, settings.HTTP_TIMEOUT_SECONDS)
