import uuid
from datetime import datetime
from typing import Optional
from shared.core import get_logger
from palma.domain.models import CommissionRecord, Role, SharedProduct, UserStatus, WithdrawalRequest
from palma.infrastructure.repositories import Repositories
from .schemas import ActionResponse, SharedProductUpsert, USER_NOT_FOUND

logger = get_logger(__name__)

PENDING = "PENDING"
PAID = "PAID"
APPROVED = "APPROVED"
REJECTED = "REJECTED"

class BrokerService:
    """Broker endorsements, commission ledger and withdrawal requests."""

    def __init__(self, repos: Repositories, commission_rate: float = 0.02):
        self.repos = repos
        self.commission_rate = commission_rate

    # --- shared products ---

    def get_shared_products(self, broker_id: Optional[str] = None) -> list[SharedProduct]:
        if broker_id:
            return self.repos.shared_products.list_for_broker(broker_id)
        return self.repos.shared_products.list()

    def upsert_shared_product(self, broker_id: str, product_id: str,
                              data: Optional[SharedProductUpsert] = None) -> SharedProduct:
        fields = data.model_dump(exclude_none=True) if data else {}
        existing = self.repos.shared_products.find(broker_id, product_id)
        if existing:
            return self.repos.shared_products.update(existing.id, **fields)
        return self.repos.shared_products.add(SharedProduct(
            id=str(uuid.uuid4()),
            broker_id=broker_id,
            product_id=product_id,
            shared_at=datetime.utcnow(),
            clicks=0,
            sales=0,
            is_featured=False,
            **fields,
        ))

    def remove_shared_product(self, broker_id: str, product_id: str) -> bool:
        existing = self.repos.shared_products.find(broker_id, product_id)
        if not existing:
            return False
        return self.repos.shared_products.delete(existing.id)

    def toggle_featured(self, share_id: str) -> Optional[SharedProduct]:
        share = self.repos.shared_products.get(share_id)
        if not share:
            return None
        return self.repos.shared_products.update(share_id, is_featured=not share.is_featured)

    def increment_clicks(self, user_id: str) -> Optional[int]:
        user = self.repos.users.get(user_id)
        if not user:
            return None
        return self.repos.users.update(user_id, clicks=(user.clicks or 0) + 1).clicks

    def increment_share_sales(self, broker_id: str, product_id: str) -> Optional[SharedProduct]:
        share = self.repos.shared_products.find(broker_id, product_id)
        if not share:
            return None
        return self.repos.shared_products.update(share.id, sales=(share.sales or 0) + 1)

    # --- commissions ---

    def is_active_broker(self, user_id: Optional[str]) -> bool:
        user = self.repos.users.get(user_id) if user_id else None
        return bool(user and user.role == Role.BROKER.value and user.status == UserStatus.APPROVED.value)

    def commission_for(self, price: float) -> float:
        return round((price or 0) * self.commission_rate, 2)

    def record_commission(self, broker_id: str, order_id: str, amount: float) -> CommissionRecord:
        record = self.repos.commissions.add(CommissionRecord(
            id=str(uuid.uuid4()),
            broker_id=broker_id,
            order_id=order_id,
            amount=amount,
            status=PENDING,
            created_at=datetime.utcnow(),
        ))
        logger.info(
            "Commission recorded",
            extra={"extra_fields": {"broker_id": broker_id, "order_id": order_id, "amount": amount}},
        )
        return record

    def get_commissions(self, broker_id: Optional[str] = None) -> list[CommissionRecord]:
        if broker_id:
            return self.repos.commissions.list_for_broker(broker_id)
        return self.repos.commissions.list()

    def mark_commission_paid(self, commission_id: str) -> ActionResponse:
        """Settle a pending commission into the broker's balance."""
        record = self.repos.commissions.get(commission_id)
        if not record:
            return ActionResponse.fail("Commission not found")
        if record.status == PAID:
            return ActionResponse.fail("Commission already paid")
        broker = self.repos.users.get(record.broker_id)
        if not broker:
            return ActionResponse.fail(USER_NOT_FOUND)
        self.repos.users.update(broker.id, balance=(broker.balance or 0) + record.amount)
        return ActionResponse.ok(self.repos.commissions.update(commission_id, status=PAID))

    # --- withdrawals ---

    def request_withdrawal(self, user_id: str, amount: float) -> ActionResponse:
        user = self.repos.users.get(user_id)
        if not user:
            return ActionResponse.fail(USER_NOT_FOUND)
        if user.role != Role.BROKER.value:
            return ActionResponse.fail("Only brokers can request withdrawals")
        if amount <= 0:
            return ActionResponse.fail("Withdrawal amount must be positive")
        if amount > (user.balance or 0):
            return ActionResponse.fail("Insufficient balance")
        request = self.repos.withdrawals.add(WithdrawalRequest(
            id=str(uuid.uuid4()),
            user_id=user_id,
            amount=amount,
            status=PENDING,
            created_at=datetime.utcnow(),
        ))
        logger.info("Withdrawal requested", extra={"extra_fields": {"user_id": user_id, "amount": amount}})
        return ActionResponse.ok(request)

    def list_withdrawals(self, user_id: Optional[str] = None) -> list[WithdrawalRequest]:
        if user_id:
            return self.repos.withdrawals.list_for_user(user_id)
        return self.repos.withdrawals.list()

    def update_withdrawal_status(self, withdrawal_id: str, status: str) -> ActionResponse:
        if status not in (APPROVED, REJECTED):
            return ActionResponse.fail(f"Unknown withdrawal status: {status}")
        request = self.repos.withdrawals.get(withdrawal_id)
        if not request:
            return ActionResponse.fail("Withdrawal not found")
        if request.status != PENDING:
            return ActionResponse.fail("Withdrawal already processed")

        if status == APPROVED:
            user = self.repos.users.get(request.user_id)
            if not user:
                return ActionResponse.fail(USER_NOT_FOUND)
            if request.amount > (user.balance or 0):
                return ActionResponse.fail("Insufficient balance")
            self.repos.users.update(user.id, balance=(user.balance or 0) - request.amount)
        return ActionResponse.ok(self.repos.withdrawals.update(withdrawal_id, status=status))
