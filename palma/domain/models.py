from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, Numeric, DateTime, Boolean, Text, Integer, Float, JSON
from datetime import datetime
from enum import Enum
from typing import Optional

class Role(str, Enum):
    CUSTOMER = "CUSTOMER"
    MERCHANT = "MERCHANT"
    BROKER = "BROKER"
    ADMIN = "ADMIN"

class UserStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

# Orders in these states never change status again
TERMINAL_ORDER_STATUSES = (OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value)

class PaymentMethod(str, Enum):
    COD = "COD"
    CREDIT_CARD = "CREDIT_CARD"

class Base(DeclarativeBase):
    pass

class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default=Role.CUSTOMER.value)
    status: Mapped[str] = mapped_column(String(20), default=UserStatus.APPROVED.value)
    password_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    city_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    village_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    university: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # Brokers only
    balance: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class MerchantProfile(Base):
    __tablename__ = "merchant_profiles"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    business_name: Mapped[str] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    city_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    village_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    region_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    business_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    business_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

class Product(Base):
    __tablename__ = "products"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Merchant reference only; deleting a merchant or product does not cascade
    merchant_id: Mapped[Optional[str]] = mapped_column(String(64), index=True, nullable=True)
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    stock: Mapped[int] = mapped_column(Integer, default=0)
    category: Mapped[str] = mapped_column(String(50), default="other")
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    images: Mapped[list] = mapped_column(JSON, default=list)
    rating: Mapped[float] = mapped_column(Float, default=0)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_bestseller: Mapped[bool] = mapped_column(Boolean, default=False)
    sku: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

class Order(Base):
    __tablename__ = "orders"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), index=True)
    merchant_id: Mapped[Optional[str]] = mapped_column(String(64), index=True, nullable=True)
    total_amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False))
    status: Mapped[str] = mapped_column(String(30), default=OrderStatus.PENDING.value)
    payment_method: Mapped[str] = mapped_column(String(30))
    # Shipping address snapshot
    shipping_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    shipping_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    shipping_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    city_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    village_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    village_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    region_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    # Carrier fields, populated once the shipment is created
    shipment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    barcode_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    expected_delivery_date: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    shipment_cost: Mapped[Optional[float]] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=True)
    delivery_status: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    affiliate_broker_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    items: Mapped[list["OrderItem"]] = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), index=True)
    # Product reference without FK - products can be hard-deleted
    product_id: Mapped[str] = mapped_column(String(64))
    product_name_snapshot: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False))
    order: Mapped[Order] = relationship("Order", back_populates="items")

class SharedProduct(Base):
    __tablename__ = "shared_products"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    broker_id: Mapped[str] = mapped_column(String(64), index=True)
    product_id: Mapped[str] = mapped_column(String(64), index=True)
    shared_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    sales: Mapped[int] = mapped_column(Integer, default=0)
    marketing_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    marketing_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    custom_discount_text: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)

class Review(Base):
    __tablename__ = "reviews"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(64), index=True)
    customer_id: Mapped[str] = mapped_column(String(64))
    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    rating: Mapped[int] = mapped_column(Integer)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class CommissionRecord(Base):
    __tablename__ = "commissions"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    broker_id: Mapped[str] = mapped_column(String(64), index=True)
    order_id: Mapped[str] = mapped_column(String(64))
    amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False))
    status: Mapped[str] = mapped_column(String(20), default="PENDING")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

class WithdrawalRequest(Base):
    __tablename__ = "withdrawals"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False))
    status: Mapped[str] = mapped_column(String(20), default="PENDING")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
