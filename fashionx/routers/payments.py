# ============================================================================
# routers/payments.py - Stripe Payment Routes
# ============================================================================

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.database import get_db
from fashionx.dependencies import get_current_user
from fashionx.models.user import User
from fashionx.schemas.admin import CheckoutRequest
from fashionx.services.payment import payment_service

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/create-checkout-session")
async def create_checkout_session(
    request: CheckoutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await payment_service.create_checkout_session(user, request.plan_id, db)
    return {"success": True, "data": data}


@router.post("/webhook")
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    payload = await request.body()
    return await payment_service.handle_webhook(payload, request.headers.get("stripe-signature"), db)
