# ============================================================================
# services/plans.py - Plan Catalog & Plan Selection
# ============================================================================

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.errors import InvalidPlanError, NotFound, ValidationError
from fashionx.models.user import Plan, User
from fashionx.schemas.credits import CreditsOverride
from fashionx.services.ledger import PLAN_CREDITS, apply_plan_change, parse_plan

logger = logging.getLogger(__name__)

PLAN_CATALOG = {
    Plan.FREE: {
        "name": "Free",
        "price": 0,
        "description": "One-time per user",
        "features": [
            "3 AI-generated images",
            "Basic editing tools",
            "Standard resolution",
            "24/7 Support",
        ],
    },
    Plan.BASIC: {
        "name": "Basic",
        "price": 399,
        "description": "Starter plan",
        "features": [
            "50 AI-generated images",
            "Advanced editing tools",
            "HD resolution",
            "Email support",
        ],
    },
    Plan.PRO: {
        "name": "Pro",
        "price": 999,
        "description": "Recommended plan",
        "features": [
            "200 AI-generated images",
            "Premium editing tools",
            "4K resolution",
            "Priority support",
            "Commercial usage",
        ],
    },
    Plan.ENTERPRISE: {
        "name": "Enterprise",
        "price": 2999,
        "description": "For businesses",
        "features": [
            "1000 AI-generated images",
            "All premium features",
            "Unlimited resolution",
            "Dedicated support",
            "API access",
            "Custom branding",
        ],
    },
}


def plan_details(plan: Plan) -> dict:
    entry = PLAN_CATALOG[plan]
    return {"id": plan.value, "credits": PLAN_CREDITS[plan], **entry}


def plan_price(plan_name) -> int:
    return PLAN_CATALOG[parse_plan(plan_name)]["price"]


class PlanService:

    def list_plans(self) -> List[dict]:
        return [plan_details(plan) for plan in Plan]

    def get_plan(self, plan_id: str) -> dict:
        try:
            return plan_details(parse_plan(plan_id))
        except InvalidPlanError:
            raise NotFound("Plan not found")

    async def select_plan(self, user: User, plan_name: Optional[str], db: AsyncSession) -> dict:
        """Self-service plan change"""
        if not plan_name:
            raise ValidationError("Plan ID is required")
        plan = parse_plan(plan_name)

        # The free tier cannot be claimed again once it has been used
        if plan == Plan.FREE and user.plan == Plan.FREE and user.images_generated > 0:
            raise ValidationError("Free plan can only be used once")

        apply_plan_change(user, plan)
        user.plan_price = plan_price(plan)
        await db.commit()
        await db.refresh(user)

        return {
            "plan": user.plan.value,
            "credits": user.credits_balance,
            "planActivatedAt": user.plan_activated_at.isoformat(),
        }

    def current_plan(self, user: User) -> dict:
        if user.plan is None:
            raise NotFound("No plan selected")
        return {
            "plan": plan_details(Plan(user.plan)),
            "userPlanDetails": {
                "credits": user.credits_balance,
                "imagesGenerated": user.images_generated,
                "videosGenerated": user.videos_generated,
                "planActivatedAt": user.plan_activated_at.isoformat() if user.plan_activated_at else None,
            },
        }

    async def admin_set_plan(
        self,
        user: User,
        plan_name: Optional[str],
        db: AsyncSession,
        price: Optional[int] = None,
        overrides: Optional[CreditsOverride] = None,
    ) -> User:
        if not plan_name:
            raise ValidationError("Plan is required")
        plan = parse_plan(plan_name)

        changes = overrides.changes() if overrides else {}
        if changes:
            now = datetime.utcnow()
            user.plan = plan
            user.plan_activated_at = now
            user.credits = user.credits.replace(**changes)
            user.last_purchase_at = now
            user.last_purchase_amount = changes.get("balance", 0)
        else:
            apply_plan_change(user, plan)

        user.plan_price = price if price is not None else plan_price(plan)
        await db.commit()
        await db.refresh(user)
        logger.info(f"Admin set plan {plan.value} for user {user.id} (price {user.plan_price})")
        return user

    async def admin_set_credits(self, user: User, overrides: Optional[CreditsOverride], db: AsyncSession) -> User:
        changes = overrides.changes() if overrides else {}
        if not changes:
            raise ValidationError("Credits data is required")

        user.credits = user.credits.replace(**changes)
        await db.commit()
        await db.refresh(user)
        logger.info(f"Admin updated credits for user {user.id}: {changes}")
        return user


plan_service = PlanService()
