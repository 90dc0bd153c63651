import uuid
from datetime import datetime
from typing import Optional
from shared.core import get_logger
from palma.domain.models import MerchantProfile, Role, User, UserStatus
from palma.infrastructure.repositories import Repositories
from palma.infrastructure.security import create_access_token, hash_password, verify_password
from .schemas import (
    ActionResponse, MerchantProfileUpdate, UserCreate, UserUpdate,
    ALREADY_REGISTERED, INVALID_CREDENTIALS, ACCOUNT_REJECTED, USER_NOT_FOUND,
)

logger = get_logger(__name__)

class UserService:
    """Accounts, merchant profiles and the admin approval workflow.

    New accounts start APPROVED; an admin can later move any account to
    PENDING or REJECTED, which closes the role-specific endpoints to it.
    """

    def __init__(self, repos: Repositories):
        self.repos = repos

    def register(self, data: UserCreate) -> ActionResponse:
        try:
            role = Role(data.role)
        except ValueError:
            return ActionResponse.fail(f"Unknown role: {data.role}")
        if role == Role.ADMIN:
            return ActionResponse.fail("Admin accounts cannot be self-registered")
        if self.repos.users.find_by_email(data.email):
            return ActionResponse.fail(ALREADY_REGISTERED)

        now = datetime.utcnow()
        user = self.repos.users.add(User(
            id=str(uuid.uuid4()),
            email=data.email.lower(),
            name=data.name,
            phone=data.phone,
            role=role.value,
            status=UserStatus.APPROVED.value,
            password_hash=hash_password(data.password),
            city=data.city,
            city_id=data.city_id,
            village_id=data.village_id,
            company_name=data.company_name or data.business_name,
            university=data.university,
            balance=0,
            clicks=0,
            approved_at=now,
            created_at=now,
        ))
        if role == Role.MERCHANT:
            self.repos.merchant_profiles.add(MerchantProfile(
                id=str(uuid.uuid4()),
                user_id=user.id,
                business_name=data.business_name or data.company_name or data.name,
                phone=data.phone,
                city=data.city,
                city_id=data.city_id,
                village_id=data.village_id,
                region_id=data.region_id,
            ))
        logger.info("User registered", extra={"extra_fields": {"user_id": user.id, "role": role.value}})
        return ActionResponse.ok(user)

    def login(self, email: str, password: str) -> ActionResponse:
        user = self.repos.users.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt", extra={"extra_fields": {"email": email}})
            return ActionResponse.fail(INVALID_CREDENTIALS)
        if user.status == UserStatus.REJECTED.value:
            return ActionResponse.fail(ACCOUNT_REJECTED)
        token = create_access_token(user.id, user.role)
        return ActionResponse.ok({"user": user, "token": token})

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return self.repos.users.get(user_id)

    def get_merchant_name(self, merchant_id: Optional[str]) -> str:
        if not merchant_id:
            return "Palma Merchant"
        profile = self.repos.merchant_profiles.get_by_user_id(merchant_id)
        if profile and profile.business_name:
            return profile.business_name
        user = self.repos.users.get(merchant_id)
        return (user.company_name or user.name) if user else "Palma Merchant"

    def get_merchant_profile(self, user_id: str) -> Optional[MerchantProfile]:
        return self.repos.merchant_profiles.get_by_user_id(user_id)

    def update_profile(self, user_id: str, data: UserUpdate) -> ActionResponse:
        user = self.repos.users.update(user_id, **data.model_dump(exclude_none=True))
        if not user:
            return ActionResponse.fail(USER_NOT_FOUND)
        return ActionResponse.ok(user)

    def update_merchant_profile(self, user_id: str, data: MerchantProfileUpdate) -> ActionResponse:
        user = self.repos.users.get(user_id)
        if not user or user.role != Role.MERCHANT.value:
            return ActionResponse.fail(USER_NOT_FOUND)
        changes = data.model_dump(exclude_none=True)
        profile = self.repos.merchant_profiles.get_by_user_id(user_id)
        if profile:
            profile = self.repos.merchant_profiles.update(profile.id, **changes)
        else:
            changes.setdefault("business_name", user.company_name or user.name)
            profile = self.repos.merchant_profiles.add(MerchantProfile(id=str(uuid.uuid4()), user_id=user_id, **changes))
        return ActionResponse.ok(profile)

    def list_users(self, role: Optional[str] = None, status: Optional[str] = None) -> list[User]:
        if role:
            return self.repos.users.list_by_role(role, status)
        users = self.repos.users.list()
        if status:
            users = [u for u in users if u.status == status]
        return users

    def list_approved_merchants(self) -> list[User]:
        return self.repos.users.list_by_role(Role.MERCHANT.value, UserStatus.APPROVED.value)

    def set_status(self, user_id: str, status: str) -> ActionResponse:
        try:
            status = UserStatus(status).value
        except ValueError:
            return ActionResponse.fail(f"Unknown user status: {status}")
        changes = {"status": status}
        if status == UserStatus.APPROVED.value:
            changes["approved_at"] = datetime.utcnow()
        user = self.repos.users.update(user_id, **changes)
        if not user:
            return ActionResponse.fail(USER_NOT_FOUND)
        logger.info("User status changed", extra={"extra_fields": {"user_id": user_id, "status": status}})
        return ActionResponse.ok(user)
