from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from palma.application.schemas import (
    LoginRequest, MerchantProfileRead, MerchantProfileUpdate, TokenRead, UserCreate,
    UserRead, UserStatusUpdate, UserUpdate, USER_NOT_FOUND,
)
from palma.domain.models import Role, User
from palma.store import MarketStore
from .deps import get_current_user, get_store, require_role, unwrap

auth_router = APIRouter(prefix="/auth", tags=["auth"])
users_router = APIRouter(prefix="/users", tags=["users"])

@auth_router.post("/register", response_model=UserRead, status_code=201)
def register(payload: UserCreate, store: MarketStore = Depends(get_store)):
    return unwrap(store.register(payload))

@auth_router.post("/login", response_model=TokenRead)
def login(payload: LoginRequest, store: MarketStore = Depends(get_store)):
    data = unwrap(store.login(payload.email, payload.password), status_code=401)
    return TokenRead(access_token=data["token"], user=UserRead.model_validate(data["user"]))

@auth_router.get("/me", response_model=UserRead)
def me(user: User = Depends(get_current_user)):
    return user

@users_router.get("/", response_model=list[UserRead])
def list_users(role: Optional[str] = None, status: Optional[str] = None,
               admin: User = Depends(require_role(Role.ADMIN)), store: MarketStore = Depends(get_store)):
    return store.get_users(role=role, status=status)

@users_router.get("/merchants", response_model=list[UserRead])
def list_merchants(store: MarketStore = Depends(get_store)):
    return store.get_all_approved_merchants()

@users_router.put("/me", response_model=UserRead)
def update_me(payload: UserUpdate, user: User = Depends(get_current_user), store: MarketStore = Depends(get_store)):
    return unwrap(store.update_user_profile(user.id, payload))

@users_router.put("/me/merchant-profile", response_model=MerchantProfileRead)
def update_my_merchant_profile(payload: MerchantProfileUpdate, user: User = Depends(require_role(Role.MERCHANT)),
                               store: MarketStore = Depends(get_store)):
    return unwrap(store.update_merchant_profile(user.id, payload))

@users_router.get("/{user_id}/merchant-profile", response_model=MerchantProfileRead)
def get_merchant_profile(user_id: str, store: MarketStore = Depends(get_store)):
    profile = store.get_merchant_profile(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Merchant profile not found")
    return profile

@users_router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: str, viewer: User = Depends(get_current_user), store: MarketStore = Depends(get_store)):
    user = store.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND)
    return user

@users_router.put("/{user_id}/status", response_model=UserRead)
def set_user_status(user_id: str, payload: UserStatusUpdate, admin: User = Depends(require_role(Role.ADMIN)),
                    store: MarketStore = Depends(get_store)):
    return unwrap(store.set_user_status(user_id, payload.status))
