import re
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from shared.core import get_logger
from palma.domain.models import Product
from palma.infrastructure.remote_catalog import (
    RemoteCatalog, RemoteCatalogError, map_remote_product, to_remote_payload,
)
from palma.infrastructure.repositories import Repositories
from .schemas import ActionResponse, ProductData, ProductFilter, ProductUpdate, PRODUCT_NOT_FOUND

logger = get_logger(__name__)

SORTS = {
    "price_asc": (lambda p: p.price or 0, False),
    "price_desc": (lambda p: p.price or 0, True),
    "newest": (lambda p: p.created_at or datetime.min, True),
    "rating_desc": (lambda p: p.rating or 0, True),
}

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.I)

def is_uuid(value: Optional[str]) -> bool:
    return bool(value and _UUID_RE.match(value))

def _to_model(data: ProductData) -> Product:
    return Product(**data.model_dump())

class ProductService:
    """Product catalog backed by a local cache table.

    When a remote catalog is configured, reads refresh the cache from it and
    writes go to it first; ``filter`` and ``get_by_id`` only ever look at the
    local cache.
    """

    def __init__(self, repos: Repositories, remote: Optional[RemoteCatalog] = None):
        self.repos = repos
        self.remote = remote

    def get_all(self) -> list[Product]:
        if not self.remote:
            return self.repos.products.list()
        try:
            rows = self.remote.fetch_active()
            products = [_to_model(map_remote_product(row)) for row in rows]
        except (RemoteCatalogError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Remote catalog fetch failed, serving cached products: {e}")
            return self.repos.products.list()

        # The remote table is authoritative: local-only rows are discarded
        try:
            self.repos.products.replace_all(products)
        except SQLAlchemyError as e:
            logger.error(f"Product cache refresh failed, serving cached products: {e}")
            return self.repos.products.list()
        logger.info("Product cache refreshed", extra={"extra_fields": {"count": len(products)}})
        return products

    def get_by_id(self, product_id: str) -> Optional[Product]:
        return self.repos.products.get(product_id)

    def fetch_by_id(self, product_id: str) -> Optional[Product]:
        local = self.repos.products.get(product_id)
        if local:
            return local
        if self.remote:
            try:
                row = self.remote.fetch_by_id(product_id)
            except RemoteCatalogError as e:
                logger.warning(f"Remote product lookup failed for {product_id}: {e}")
                return None
            if row:
                try:
                    return _to_model(map_remote_product(row))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Remote product {product_id} could not be read: {e}")
        return None

    def get_by_merchant_id(self, merchant_id: str) -> list[Product]:
        if self.remote and is_uuid(merchant_id):
            try:
                rows = self.remote.fetch_by_merchant(merchant_id)
            except RemoteCatalogError as e:
                logger.error(f"Remote merchant products fetch failed for {merchant_id}: {e}")
                return []
            return [_to_model(map_remote_product(row)) for row in rows]
        return self.repos.products.list_by_merchant(merchant_id)

    def add(self, merchant_id: str, data: ProductData) -> ActionResponse:
        images = data.images or ([data.image_url] if data.image_url else [])
        fields = data.model_dump(exclude={"id", "merchant_id", "images", "image_url", "created_at"})
        fields.update(
            merchant_id=merchant_id,
            images=images,
            image_url=images[0] if images else None,
        )

        if self.remote and is_uuid(merchant_id):
            try:
                row = self.remote.insert(to_remote_payload(fields))
            except RemoteCatalogError as e:
                logger.error(f"Remote product insert failed: {e}")
                return ActionResponse.fail(str(e))
            product = self.repos.products.add(_to_model(map_remote_product(row)))
        else:
            product = self.repos.products.add(Product(
                id=str(uuid.uuid4()),
                created_at=datetime.utcnow(),
                **fields,
            ))
        logger.info("Product created", extra={"extra_fields": {"product_id": product.id, "merchant_id": merchant_id}})
        return ActionResponse.ok(product)

    def update(self, product_id: str, data: ProductUpdate) -> ActionResponse:
        changes = data.model_dump(exclude_none=True)
        if "images" in changes and changes["images"]:
            changes["image_url"] = changes["images"][0]

        if self.remote:
            try:
                row = self.remote.update(product_id, {
                    **to_remote_payload(changes),
                    "updated_at": datetime.utcnow().isoformat(),
                })
            except RemoteCatalogError as e:
                logger.error(f"Remote product update failed for {product_id}: {e}")
                return ActionResponse.fail(str(e))
            if not row:
                return ActionResponse.fail(PRODUCT_NOT_FOUND)
            changes = map_remote_product(row).model_dump(exclude={"id"})
            if not self.repos.products.get(product_id):
                return ActionResponse.ok(self.repos.products.add(Product(id=product_id, **changes)))

        changes["updated_at"] = datetime.utcnow()
        product = self.repos.products.update(product_id, **changes)
        if not product:
            return ActionResponse.fail(PRODUCT_NOT_FOUND)
        return ActionResponse.ok(product)

    def delete(self, product_id: str) -> ActionResponse:
        if self.remote:
            try:
                self.remote.delete(product_id)
            except RemoteCatalogError as e:
                logger.error(f"Remote product delete failed for {product_id}: {e}")
                return ActionResponse.fail(str(e))
        self.repos.products.delete(product_id)
        return ActionResponse.ok()

    def filter(self, criteria: ProductFilter) -> list[Product]:
        result = [p for p in self.repos.products.list() if p.is_active is not False]

        if criteria.merchant_id and criteria.merchant_id != "all":
            result = [p for p in result if p.merchant_id == criteria.merchant_id]
        if criteria.category_id and criteria.category_id != "all":
            result = [p for p in result if p.category == criteria.category_id]
        if criteria.search_term:
            term = criteria.search_term.lower()
            result = [
                p for p in result
                if term in (p.name or "").lower() or term in (p.description or "").lower()
            ]
        if criteria.min_price is not None:
            result = [p for p in result if (p.price or 0) >= criteria.min_price]
        if criteria.max_price is not None:
            result = [p for p in result if (p.price or 0) <= criteria.max_price]
        if criteria.min_rating is not None:
            result = [p for p in result if (p.rating or 0) >= criteria.min_rating]

        if criteria.sort_by in SORTS:
            key, reverse = SORTS[criteria.sort_by]
            result = sorted(result, key=key, reverse=reverse)
        return result

    def get_categories(self) -> list[str]:
        return sorted({p.category for p in self.repos.products.list() if p.category})

    def get_rating(self, product_id: str) -> dict:
        product = self.get_by_id(product_id)
        return {
            "average": (product.rating or 0) if product else 0,
            "count": (product.review_count or 0) if product else 0,
        }
