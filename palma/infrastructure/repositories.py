"""Typed data access, one repository per table.

Every mutating call commits immediately, so each write is durable on its own;
there is no atomicity across repositories.
"""
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, Type, TypeVar
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from palma.domain.models import (
    Base, User, MerchantProfile, Product, Order, OrderItem, SharedProduct,
    Review, CommissionRecord, WithdrawalRequest,
)

ModelT = TypeVar("ModelT", bound=Base)

class Repository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def get(self, item_id: str) -> Optional[ModelT]:
        return self.db.query(self.model).filter(self.model.id == item_id).first()

    def list(self) -> list[ModelT]:
        return self.db.query(self.model).all()

    def add(self, obj: ModelT) -> ModelT:
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, item_id: str, **changes) -> Optional[ModelT]:
        """Shallow merge of ``changes`` onto the row; None when it does not exist."""
        obj = self.get(item_id)
        if not obj:
            return None
        for key, value in changes.items():
            setattr(obj, key, value)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete(self, item_id: str) -> bool:
        obj = self.get(item_id)
        if not obj:
            return False
        self.db.delete(obj)
        self.db.commit()
        return True

    def refresh(self, obj: ModelT) -> ModelT:
        self.db.refresh(obj)
        return obj

    def count(self) -> int:
        return self.db.query(self.model).count()

class UserRepository(Repository[User]):
    model = User

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def list_by_role(self, role: str, status: Optional[str] = None) -> list[User]:
        query = self.db.query(User).filter(User.role == role)
        if status:
            query = query.filter(User.status == status)
        return query.all()

class MerchantProfileRepository(Repository[MerchantProfile]):
    model = MerchantProfile

    def get_by_user_id(self, user_id: str) -> Optional[MerchantProfile]:
        return self.db.query(MerchantProfile).filter(MerchantProfile.user_id == user_id).first()

class ProductRepository(Repository[Product]):
    model = Product

    def list_by_merchant(self, merchant_id: str) -> list[Product]:
        return (
            self.db.query(Product)
            .filter(Product.merchant_id == merchant_id)
            .order_by(Product.created_at.desc())
            .all()
        )

    def replace_all(self, products: Iterable[Product]) -> list[Product]:
        """Drop every cached row and store ``products`` in their place, in one transaction."""
        products = list(products)
        try:
            self.db.query(Product).delete()
            self.db.add_all(products)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return products

class OrderRepository(Repository[Order]):
    model = Order

    def list_for_customer(self, customer_id: str) -> list[Order]:
        return self.db.query(Order).filter(Order.customer_id == customer_id).order_by(Order.created_at).all()

    def list_for_merchant(self, merchant_id: str) -> list[Order]:
        return self.db.query(Order).filter(Order.merchant_id == merchant_id).order_by(Order.created_at).all()

class OrderItemRepository(Repository[OrderItem]):
    model = OrderItem

    def list_for_order(self, order_id: str) -> list[OrderItem]:
        return self.db.query(OrderItem).filter(OrderItem.order_id == order_id).all()

class SharedProductRepository(Repository[SharedProduct]):
    model = SharedProduct

    def find(self, broker_id: str, product_id: str) -> Optional[SharedProduct]:
        return (
            self.db.query(SharedProduct)
            .filter(SharedProduct.broker_id == broker_id, SharedProduct.product_id == product_id)
            .first()
        )

    def list_for_broker(self, broker_id: str) -> list[SharedProduct]:
        return self.db.query(SharedProduct).filter(SharedProduct.broker_id == broker_id).all()

class ReviewRepository(Repository[Review]):
    model = Review

    def list_for_product(self, product_id: str) -> list[Review]:
        return self.db.query(Review).filter(Review.product_id == product_id).all()

    def find(self, customer_id: str, product_id: str) -> Optional[Review]:
        return (
            self.db.query(Review)
            .filter(Review.customer_id == customer_id, Review.product_id == product_id)
            .first()
        )

class CommissionRepository(Repository[CommissionRecord]):
    model = CommissionRecord

    def list_for_broker(self, broker_id: str) -> list[CommissionRecord]:
        return self.db.query(CommissionRecord).filter(CommissionRecord.broker_id == broker_id).all()

class WithdrawalRepository(Repository[WithdrawalRequest]):
    model = WithdrawalRequest

    def list_for_user(self, user_id: str) -> list[WithdrawalRequest]:
        return self.db.query(WithdrawalRequest).filter(WithdrawalRequest.user_id == user_id).all()

@dataclass
class Repositories:
    users: UserRepository
    merchant_profiles: MerchantProfileRepository
    products: ProductRepository
    orders: OrderRepository
    order_items: OrderItemRepository
    shared_products: SharedProductRepository
    reviews: ReviewRepository
    commissions: CommissionRepository
    withdrawals: WithdrawalRepository

    @classmethod
    def from_session(cls, db: Session) -> "Repositories":
        return cls(
            users=UserRepository(db),
            merchant_profiles=MerchantProfileRepository(db),
            products=ProductRepository(db),
            orders=OrderRepository(db),
            order_items=OrderItemRepository(db),
            shared_products=SharedProductRepository(db),
            reviews=ReviewRepository(db),
            commissions=CommissionRepository(db),
            withdrawals=WithdrawalRepository(db),
        )
