# ============================================================================
# routers/plans.py - Plan Routes
# ============================================================================

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.database import get_db
from fashionx.dependencies import get_current_user
from fashionx.models.user import User
from fashionx.schemas.admin import PlanSelectRequest
from fashionx.services.plans import plan_service

router = APIRouter(prefix="/api/plans", tags=["plans"])


@router.get("")
async def list_plans():
    return {"success": True, "data": plan_service.list_plans()}


@router.get("/current")
async def current_plan(user: User = Depends(get_current_user)):
    return {"success": True, "data": plan_service.current_plan(user)}


@router.post("/select")
async def select_plan(
    request: PlanSelectRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await plan_service.select_plan(user, request.plan_id, db)
    return {"success": True, "message": "Plan selected successfully", "data": data}


@router.get("/{plan_id}")
async def get_plan(plan_id: str):
    return {"success": True, "data": plan_service.get_plan(plan_id)}
