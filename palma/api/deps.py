from functools import lru_cache
from typing import Callable, Optional
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session
from palma.application.notifications import EmailNotifier
from palma.application.schemas import (
    ActionResponse, ACCOUNT_PENDING, ACCOUNT_REJECTED, ALREADY_REGISTERED, INVALID_CREDENTIALS,
    ORDER_ALREADY_FINAL, ORDER_NOT_FOUND, PAYMENT_FAILED, PRODUCT_NOT_FOUND, USER_NOT_FOUND,
)
from palma.core_settings import get_settings
from palma.domain.models import Role, User, UserStatus
from palma.infrastructure.db import get_db
from palma.infrastructure.gateway import ShipmentGateway, build_gateway
from palma.infrastructure.remote_catalog import RemoteCatalog, build_remote_catalog
from palma.infrastructure.security import decode_access_token
from palma.store import MarketStore

BEARER_PREFIX = "Bearer "

@lru_cache
def get_gateway() -> ShipmentGateway:
    return build_gateway(get_settings())

@lru_cache
def get_remote_catalog() -> Optional[RemoteCatalog]:
    return build_remote_catalog(get_settings())

@lru_cache
def get_notifier() -> EmailNotifier:
    return EmailNotifier()

def get_store(
    db: Session = Depends(get_db),
    gateway: ShipmentGateway = Depends(get_gateway),
    remote: Optional[RemoteCatalog] = Depends(get_remote_catalog),
    notifier: EmailNotifier = Depends(get_notifier),
) -> MarketStore:
    return MarketStore.from_session(db, gateway, remote, notifier=notifier)

def verify_token(request: Request) -> dict:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Missing token")
    token = auth_header.split(" ", 1)[1]
    token_data = decode_access_token(token)
    if not token_data:
        raise HTTPException(status_code=401, detail="Invalid token")
    return token_data

def get_current_user(token: dict = Depends(verify_token), store: MarketStore = Depends(get_store)) -> User:
    user = store.get_user_by_id(token.get("sub"))
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user

def check_approval(user: User, roles: tuple[str, ...]) -> None:
    """Raise 403 unless ``user`` is an approved account holding one of ``roles``."""
    if user.role == Role.ADMIN.value:
        return
    if roles and user.role not in roles:
        raise HTTPException(status_code=403, detail="Insufficient role")
    if user.status == UserStatus.REJECTED.value:
        raise HTTPException(status_code=403, detail=ACCOUNT_REJECTED)
    if user.status != UserStatus.APPROVED.value:
        raise HTTPException(status_code=403, detail=ACCOUNT_PENDING)

def require_role(*roles: Role) -> Callable[..., User]:
    allowed = tuple(Role(r).value for r in roles)

    def dependency(user: User = Depends(get_current_user)) -> User:
        check_approval(user, allowed)
        return user
    return dependency

ERROR_STATUS = {
    PRODUCT_NOT_FOUND: 404,
    ORDER_NOT_FOUND: 404,
    USER_NOT_FOUND: 404,
    ORDER_ALREADY_FINAL: 409,
    ALREADY_REGISTERED: 409,
    INVALID_CREDENTIALS: 401,
    ACCOUNT_REJECTED: 403,
    ACCOUNT_PENDING: 403,
    PAYMENT_FAILED: 402,
}

def unwrap(response: ActionResponse, status_code: int = 400):
    """Return the payload of a successful ActionResponse or raise it as an HTTP error."""
    if not response.success:
        raise HTTPException(status_code=ERROR_STATUS.get(response.error, status_code), detail=response.error)
    return response.data
