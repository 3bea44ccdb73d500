# ============================================================================
# services/admin.py - Admin User Management & Analytics
# ============================================================================

import logging
import math
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.errors import NotFound, ValidationError
from fashionx.models.payment import Payment, PaymentStatus
from fashionx.models.user import Plan, User, UserRole
from fashionx.schemas.admin import StatusUpdateRequest
from fashionx.services.ledger import parse_plan

logger = logging.getLogger(__name__)


class AdminService:

    async def get_user(self, user_id: str, db: AsyncSession) -> User:
        user = await db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def list_users(
        self,
        db: AsyncSession,
        plan: Optional[str] = None,
        search: Optional[str] = None,
        terms_accepted: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        # Admin accounts are not listed
        conditions = [User.role == UserRole.USER]
        if plan:
            conditions.append(User.plan == parse_plan(plan))
        if terms_accepted is not None:
            conditions.append(User.terms_accepted == terms_accepted)
        if search:
            pattern = f"%{search.strip().lower()}%"
            conditions.append(
                or_(
                    func.lower(User.email).like(pattern),
                    func.lower(User.first_name).like(pattern),
                    func.lower(User.last_name).like(pattern),
                )
            )

        total = (await db.execute(select(func.count()).select_from(User).where(*conditions))).scalar_one()
        result = await db.execute(
            select(User)
            .where(*conditions)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "users": list(result.scalars().all()),
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
            "currentPage": page,
        }

    async def update_status(self, user: User, data: StatusUpdateRequest, db: AsyncSession) -> User:
        if data.is_blocked is None and data.is_active is None:
            raise ValidationError("isBlocked or isActive is required")

        if data.is_blocked is not None:
            user.is_blocked = data.is_blocked
        if data.is_active is not None:
            user.is_active = data.is_active
        await db.commit()
        await db.refresh(user)

        logger.info(f"Admin updated status of user {user.id}: blocked={user.is_blocked}, active={user.is_active}")
        return user

    async def analytics(self, db: AsyncSession) -> dict:
        by_plan = {plan.value: 0 for plan in Plan}
        rows = await db.execute(
            select(User.plan, func.count()).where(User.role == UserRole.USER).group_by(User.plan)
        )
        for plan, count in rows.all():
            if plan is not None:
                by_plan[Plan(plan).value] = count

        revenue = (
            await db.execute(
                select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.status == PaymentStatus.CAPTURED)
            )
        ).scalar_one()
        recent = await db.execute(select(Payment).order_by(Payment.created_at.desc(), Payment.id.desc()).limit(5))

        return {
            "userStats": {"total": sum(by_plan.values()), "byPlan": by_plan},
            "financialStats": {
                "totalRevenue": int(revenue),
                "recentPayments": [payment.to_dict() for payment in recent.scalars().all()],
            },
        }


admin_service = AdminService()
