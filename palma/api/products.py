from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from palma.application.schemas import (
    ProductData, ProductFilter, ProductRead, ProductUpdate, RatingRead, ReviewCreate,
    ReviewRead, PRODUCT_NOT_FOUND,
)
from palma.domain.models import Product, Role, User
from palma.store import MarketStore
from .deps import get_store, require_role, unwrap

router = APIRouter(prefix="/products", tags=["products"])

def _read(product: Product, store: MarketStore) -> ProductRead:
    return ProductRead.model_validate(product).model_copy(
        update={"merchant_name": store.get_merchant_name(product.merchant_id)}
    )

def _owned_product(product_id: str, user: User, store: MarketStore) -> Product:
    product = store.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail=PRODUCT_NOT_FOUND)
    if user.role != Role.ADMIN.value and product.merchant_id != user.id:
        raise HTTPException(status_code=403, detail="Not your product")
    return product

@router.get("/", response_model=list[ProductRead])
def list_products(
    search_term: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    sort_by: Optional[str] = Query(None, pattern="^(price_asc|price_desc|newest|rating_desc)$"),
    merchant_id: Optional[str] = None,
    category_id: Optional[str] = None,
    refresh: bool = False,
    store: MarketStore = Depends(get_store),
):
    if refresh:
        store.get_products()
    criteria = ProductFilter(
        search_term=search_term,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        sort_by=sort_by,
        merchant_id=merchant_id,
        category_id=category_id,
    )
    return [_read(p, store) for p in store.get_filtered_products(criteria)]

@router.get("/categories", response_model=list[str])
def list_categories(store: MarketStore = Depends(get_store)):
    return store.get_all_unique_categories()

@router.get("/merchant/{merchant_id}", response_model=list[ProductRead])
def list_merchant_products(merchant_id: str, store: MarketStore = Depends(get_store)):
    return [_read(p, store) for p in store.fetch_merchant_products(merchant_id)]

@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: str, store: MarketStore = Depends(get_store)):
    product = store.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail=PRODUCT_NOT_FOUND)
    return _read(product, store)

@router.get("/{product_id}/rating", response_model=RatingRead)
def get_rating(product_id: str, store: MarketStore = Depends(get_store)):
    return store.get_product_rating(product_id)

@router.get("/{product_id}/reviews", response_model=list[ReviewRead])
def list_reviews(product_id: str, store: MarketStore = Depends(get_store)):
    return store.get_reviews_for_product(product_id)

@router.post("/{product_id}/reviews", status_code=201)
def add_review(product_id: str, payload: ReviewCreate, user: User = Depends(require_role(Role.CUSTOMER)),
               store: MarketStore = Depends(get_store)):
    if not store.get_product(product_id):
        raise HTTPException(status_code=404, detail=PRODUCT_NOT_FOUND)
    if not store.add_review(user.id, product_id, payload.rating, payload.comment):
        raise HTTPException(status_code=409, detail="Product already reviewed")
    return store.get_product_rating(product_id)

@router.post("/", response_model=ProductRead, status_code=201)
def create_product(payload: ProductData, user: User = Depends(require_role(Role.MERCHANT)),
                   store: MarketStore = Depends(get_store)):
    merchant_id = payload.merchant_id if user.role == Role.ADMIN.value and payload.merchant_id else user.id
    return _read(unwrap(store.add_product(merchant_id, payload)), store)

@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: str, payload: ProductUpdate, user: User = Depends(require_role(Role.MERCHANT)),
                   store: MarketStore = Depends(get_store)):
    _owned_product(product_id, user, store)
    return _read(unwrap(store.update_product(product_id, payload)), store)

@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: str, user: User = Depends(require_role(Role.MERCHANT)),
                   store: MarketStore = Depends(get_store)):
    _owned_product(product_id, user, store)
    unwrap(store.delete_product(product_id), status_code=502)
    return None
