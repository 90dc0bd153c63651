from fastapi import APIRouter, Depends, HTTPException
from palma.application.schemas import (
    CommissionRead, SharedProductRead, SharedProductUpsert, WithdrawalCreate, WithdrawalRead,
    WithdrawalStatusUpdate, PRODUCT_NOT_FOUND, USER_NOT_FOUND,
)
from palma.domain.models import Role, User
from palma.store import MarketStore
from .deps import require_role, get_store, unwrap

router = APIRouter(prefix="/brokers", tags=["brokers"])

@router.get("/shared", response_model=list[SharedProductRead])
def list_shared(user: User = Depends(require_role(Role.BROKER)), store: MarketStore = Depends(get_store)):
    return store.get_shared_products(user.id)

@router.put("/shared/{product_id}", response_model=SharedProductRead)
def share_product(product_id: str, payload: SharedProductUpsert, user: User = Depends(require_role(Role.BROKER)),
                  store: MarketStore = Depends(get_store)):
    if not store.get_product(product_id):
        raise HTTPException(status_code=404, detail=PRODUCT_NOT_FOUND)
    return store.upsert_shared_product(user.id, product_id, payload)

@router.delete("/shared/{product_id}", status_code=204)
def unshare_product(product_id: str, user: User = Depends(require_role(Role.BROKER)),
                    store: MarketStore = Depends(get_store)):
    if not store.remove_shared_product(user.id, product_id):
        raise HTTPException(status_code=404, detail="Shared product not found")
    return None

@router.post("/shared/{share_id}/featured", response_model=SharedProductRead)
def toggle_featured(share_id: str, user: User = Depends(require_role(Role.BROKER)),
                    store: MarketStore = Depends(get_store)):
    share = store.repos.shared_products.get(share_id)
    if not share or (user.role != Role.ADMIN.value and share.broker_id != user.id):
        raise HTTPException(status_code=404, detail="Shared product not found")
    return store.toggle_shared_product_featured(share_id)

@router.post("/{broker_id}/clicks")
def track_click(broker_id: str, store: MarketStore = Depends(get_store)):
    """Public referral-link hit."""
    clicks = store.increment_clicks(broker_id)
    if clicks is None:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND)
    return {"broker_id": broker_id, "clicks": clicks}

@router.get("/commissions", response_model=list[CommissionRead])
def list_commissions(user: User = Depends(require_role(Role.BROKER)), store: MarketStore = Depends(get_store)):
    if user.role == Role.ADMIN.value:
        return store.get_commissions()
    return store.get_commissions(user.id)

@router.post("/commissions/{commission_id}/pay", response_model=CommissionRead)
def pay_commission(commission_id: str, admin: User = Depends(require_role(Role.ADMIN)),
                   store: MarketStore = Depends(get_store)):
    return unwrap(store.mark_commission_paid(commission_id))

@router.get("/withdrawals", response_model=list[WithdrawalRead])
def list_withdrawals(user: User = Depends(require_role(Role.BROKER)), store: MarketStore = Depends(get_store)):
    if user.role == Role.ADMIN.value:
        return store.get_withdrawals()
    return store.get_withdrawals(user.id)

@router.post("/withdrawals", response_model=WithdrawalRead, status_code=201)
def request_withdrawal(payload: WithdrawalCreate, user: User = Depends(require_role(Role.BROKER)),
                       store: MarketStore = Depends(get_store)):
    return unwrap(store.request_withdrawal(user.id, payload.amount))

@router.put("/withdrawals/{withdrawal_id}", response_model=WithdrawalRead)
def update_withdrawal(withdrawal_id: str, payload: WithdrawalStatusUpdate,
                      admin: User = Depends(require_role(Role.ADMIN)), store: MarketStore = Depends(get_store)):
    return unwrap(store.update_withdrawal_status(withdrawal_id, payload.status))
