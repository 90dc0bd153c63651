from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar
from palma.domain.models import PaymentMethod

DataT = TypeVar("DataT")

# Stable failure messages returned in ActionResponse.error
PRODUCT_NOT_FOUND = "Product not found"
ORDER_NOT_FOUND = "Order not found"
USER_NOT_FOUND = "User not found"
MISSING_SHIPPING_ADDRESS = "Missing shipping address"
ORDER_ALREADY_FINAL = "Order is already delivered or cancelled"
ALREADY_REGISTERED = "User already registered"
INVALID_CREDENTIALS = "Invalid login credentials"
ACCOUNT_REJECTED = "Account has been rejected."
ACCOUNT_PENDING = "Account pending review"
PAYMENT_FAILED = "Payment failed"

class ActionResponse(BaseModel, Generic[DataT]):
    success: bool
    error: Optional[str] = None
    data: Optional[DataT] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResponse":
        return cls(success=False, error=error)

class ShippingDetails(BaseModel):
    full_name: str
    phone: str
    phone2: Optional[str] = None
    email: Optional[str] = None
    address: str
    city_id: Optional[int] = None
    village_id: Optional[int] = None
    region_id: Optional[int] = None
    notes: Optional[str] = None
    shipment_type: str = "COD"

class PlaceOrderRequest(BaseModel):
    product_id: str
    payment_method: PaymentMethod = PaymentMethod.COD
    shipping: ShippingDetails

class OrderItemRead(BaseModel):
    id: str
    order_id: str
    product_id: str
    product_name_snapshot: Optional[str] = None
    quantity: int
    price: float
    class Config:
        from_attributes = True

class OrderRead(BaseModel):
    id: str
    customer_id: str
    merchant_id: Optional[str] = None
    total_amount: float
    status: str
    payment_method: str
    shipping_name: Optional[str] = None
    shipping_phone: Optional[str] = None
    shipping_address: Optional[str] = None
    city_id: Optional[int] = None
    city_name: Optional[str] = None
    village_id: Optional[int] = None
    village_name: Optional[str] = None
    region_id: Optional[int] = None
    shipment_id: Optional[str] = None
    tracking_number: Optional[str] = None
    barcode: Optional[str] = None
    barcode_image: Optional[str] = None
    expected_delivery_date: Optional[str] = None
    shipment_cost: Optional[float] = None
    delivery_status: Optional[str] = None
    affiliate_broker_id: Optional[str] = None
    created_at: datetime
    items: list[OrderItemRead] = []
    class Config:
        from_attributes = True

class OrderStatusUpdate(BaseModel):
    status: str

class CancelShipmentRequest(BaseModel):
    email: str
    password: str

class ProductData(BaseModel):
    """Canonical product shape; legacy field names are resolved before this point."""
    id: Optional[str] = None
    merchant_id: Optional[str] = None
    name: str
    description: str = ""
    price: float = 0
    stock: int = 0
    category: str = "other"
    image_url: Optional[str] = None
    images: list[str] = []
    rating: float = 0
    review_count: int = 0
    is_active: bool = True
    is_bestseller: bool = False
    sku: Optional[str] = None
    created_at: Optional[datetime] = None

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[int] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    images: Optional[list[str]] = None
    is_active: Optional[bool] = None
    is_bestseller: Optional[bool] = None
    sku: Optional[str] = None

class ProductRead(ProductData):
    id: str
    merchant_name: Optional[str] = None
    updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class ProductFilter(BaseModel):
    search_term: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    sort_by: Optional[str] = None
    merchant_id: Optional[str] = None
    category_id: Optional[str] = None

class CartItem(BaseModel):
    id: str
    name: Optional[str] = None
    price: float = 0
    quantity: int = Field(default=1, ge=1)
    merchant_id: Optional[str] = None
    category: Optional[str] = None

class CartSummary(BaseModel):
    total: float
    count: int

class CartAddRequest(BaseModel):
    cart: list[CartItem] = []
    item: CartItem

class CartQuantityRequest(BaseModel):
    cart: list[CartItem]
    item_id: str
    delta: int

class CheckoutRequest(BaseModel):
    cart: list[CartItem]
    payment_method: PaymentMethod = PaymentMethod.COD
    shipping: ShippingDetails
    referrer_id: Optional[str] = None

class CheckoutLineResult(BaseModel):
    product_id: str
    success: bool
    order: Optional[OrderRead] = None
    error: Optional[str] = None

class CheckoutResult(BaseModel):
    success: bool
    error: Optional[str] = None
    lines: list[CheckoutLineResult] = []

class UserCreate(BaseModel):
    email: str
    name: str
    phone: Optional[str] = None
    role: str = "CUSTOMER"
    password: str
    city: Optional[str] = None
    city_id: Optional[int] = None
    village_id: Optional[int] = None
    region_id: Optional[int] = None
    company_name: Optional[str] = None
    business_name: Optional[str] = None
    university: Optional[str] = None

class UserUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    city_id: Optional[int] = None
    village_id: Optional[int] = None
    company_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

class UserRead(BaseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: str
    status: str
    city: Optional[str] = None
    city_id: Optional[int] = None
    village_id: Optional[int] = None
    company_name: Optional[str] = None
    university: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    balance: float = 0
    clicks: int = 0
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class LoginRequest(BaseModel):
    email: str
    password: str

class TokenRead(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead

class UserStatusUpdate(BaseModel):
    status: str

class MerchantProfileUpdate(BaseModel):
    business_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    city_id: Optional[int] = None
    village_id: Optional[int] = None
    region_id: Optional[int] = None
    business_address: Optional[str] = None
    business_description: Optional[str] = None
    logo_url: Optional[str] = None

class MerchantProfileRead(MerchantProfileUpdate):
    id: str
    user_id: str
    business_name: str
    class Config:
        from_attributes = True

class SharedProductUpsert(BaseModel):
    marketing_title: Optional[str] = None
    marketing_description: Optional[str] = None
    custom_discount_text: Optional[str] = None

class SharedProductRead(SharedProductUpsert):
    id: str
    broker_id: str
    product_id: str
    shared_at: datetime
    clicks: int
    sales: int
    is_featured: bool
    class Config:
        from_attributes = True

class CommissionRead(BaseModel):
    id: str
    broker_id: str
    order_id: str
    amount: float
    status: str
    created_at: datetime
    class Config:
        from_attributes = True

class WithdrawalCreate(BaseModel):
    amount: float

class WithdrawalRead(BaseModel):
    id: str
    user_id: str
    amount: float
    status: str
    created_at: datetime
    class Config:
        from_attributes = True

class WithdrawalStatusUpdate(BaseModel):
    status: str

class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None

class ReviewRead(BaseModel):
    id: str
    product_id: str
    customer_id: str
    customer_name: Optional[str] = None
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    class Config:
        from_attributes = True

class RatingRead(BaseModel):
    average: float
    count: int
