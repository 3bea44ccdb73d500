# ============================================================================
# routers/admin.py - Admin Routes
# ============================================================================

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.database import get_db
from fashionx.dependencies import get_admin_user
from fashionx.models.generation import MediaKind
from fashionx.schemas.admin import CreditsUpdateRequest, PlanOverrideRequest, RefundRequest, StatusUpdateRequest
from fashionx.schemas.auth import UserResponse
from fashionx.services.admin import admin_service
from fashionx.services.history import list_history
from fashionx.services.payment import payment_service
from fashionx.services.plans import plan_service

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(get_admin_user)])


def _user(user) -> dict:
    return UserResponse.model_validate(user).to_dict()


@router.get("/users")
async def list_users(
    plan: Optional[str] = None,
    search: Optional[str] = None,
    tc_accepted: Optional[bool] = Query(default=None, alias="tcAccepted"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    result = await admin_service.list_users(db, plan=plan, search=search, terms_accepted=tc_accepted, page=page, limit=limit)
    return {
        "success": True,
        "total": result["total"],
        "totalPages": result["totalPages"],
        "currentPage": result["currentPage"],
        "data": [_user(user) for user in result["users"]],
    }


@router.get("/users/{user_id}")
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    user = await admin_service.get_user(user_id, db)
    images = await list_history(db, user.id, MediaKind.IMAGE)
    videos = await list_history(db, user.id, MediaKind.VIDEO)
    return {
        "success": True,
        "data": {
            "user": _user(user),
            "images": [record.to_dict() for record in images],
            "videos": [record.to_dict() for record in videos],
        },
    }


@router.patch("/users/{user_id}/credits")
async def update_credits(user_id: str, request: CreditsUpdateRequest, db: AsyncSession = Depends(get_db)):
    user = await admin_service.get_user(user_id, db)
    user = await plan_service.admin_set_credits(user, request.credits, db)
    return {"success": True, "message": "User credits updated successfully", "data": {"user": _user(user)}}


@router.patch("/users/{user_id}/plan")
async def update_plan(user_id: str, request: PlanOverrideRequest, db: AsyncSession = Depends(get_db)):
    user = await admin_service.get_user(user_id, db)
    user = await plan_service.admin_set_plan(
        user, request.plan, db, price=request.plan_price, overrides=request.credits
    )
    return {"success": True, "message": "User plan updated successfully", "data": {"user": _user(user)}}


@router.patch("/users/{user_id}/status")
async def update_status(user_id: str, request: StatusUpdateRequest, db: AsyncSession = Depends(get_db)):
    user = await admin_service.get_user(user_id, db)
    user = await admin_service.update_status(user, request, db)
    return {"success": True, "message": "User status updated successfully", "data": {"user": _user(user)}}


@router.get("/users/{user_id}/transactions")
async def list_transactions(user_id: str, db: AsyncSession = Depends(get_db)):
    await admin_service.get_user(user_id, db)
    payments = await payment_service.list_transactions(user_id, db)
    return {"success": True, "data": [payment.to_dict() for payment in payments]}


@router.post("/users/{user_id}/refund")
async def refund(user_id: str, request: RefundRequest, db: AsyncSession = Depends(get_db)):
    await admin_service.get_user(user_id, db)
    payment = await payment_service.refund(user_id, request.transaction_id, db)
    return {
        "success": True,
        "message": "Refund processed successfully",
        "data": {"transactionId": payment.id, "refundId": payment.refund_id, "status": payment.status.value},
    }


@router.get("/analytics")
async def analytics(db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await admin_service.analytics(db)}
