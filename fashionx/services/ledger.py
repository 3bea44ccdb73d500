# ============================================================================
# services/ledger.py - Credit Ledger
# ============================================================================
"""Plan → credit allotment and the balance rules applied on signup, login,
plan change and generation.

Everything here except `consume_credit_atomic` works on an in-memory
`User` and leaves persistence to the caller.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.errors import InsufficientCredits, InvalidPlanError
from fashionx.models.generation import MediaKind
from fashionx.models.user import Plan, User

logger = logging.getLogger(__name__)

PLAN_CREDITS = {
    Plan.FREE: 3,
    Plan.BASIC: 50,
    Plan.PRO: 200,
    Plan.ENTERPRISE: 1000,
}

FREE_CREDITS = PLAN_CREDITS[Plan.FREE]


def parse_plan(plan_name: Union[str, Plan, None]) -> Plan:
    if isinstance(plan_name, Plan):
        return plan_name
    try:
        return Plan((plan_name or "").strip().lower())
    except ValueError:
        raise InvalidPlanError(f"Invalid plan '{plan_name}'. Choose one of: {', '.join(p.value for p in Plan)}")


def credits_for_plan(plan_name: Union[str, Plan, None]) -> int:
    """Credit allotment of a plan; unknown or missing plans get the free allotment"""
    try:
        return PLAN_CREDITS[parse_plan(plan_name)]
    except InvalidPlanError:
        return FREE_CREDITS


def _activation_time(user: User, now: Optional[datetime]) -> datetime:
    now = now or datetime.utcnow()
    previous = user.plan_activated_at
    if previous is not None and now < previous:
        return previous
    return now


def apply_plan_change(user: User, new_plan: Union[str, Plan], now: Optional[datetime] = None) -> User:
    """Switch plan and add its allotment to the purchased total.

    The grant is additive: selecting a plan again tops the account up
    rather than resetting it.
    """
    plan = parse_plan(new_plan)
    granted = PLAN_CREDITS[plan]
    credits = user.credits
    total_purchased = credits.total_purchased + granted

    user.plan = plan
    user.plan_activated_at = _activation_time(user, now)
    user.credits = credits.replace(
        total_purchased=total_purchased,
        balance=total_purchased - credits.total_used,
    )
    user.last_purchase_at = user.plan_activated_at
    user.last_purchase_amount = granted

    logger.info(f"Plan changed for user {user.id}: {plan.value} (+{granted} credits, balance {user.credits_balance})")
    return user


def consume_credit(user: User, amount: int = 1) -> User:
    """In-memory form of the rule `consume_credit_atomic` applies in SQL"""
    credits = user.credits
    if amount <= 0 or credits.balance < amount:
        raise InsufficientCredits()

    user.credits = credits.replace(
        balance=credits.balance - amount,
        total_used=credits.total_used + amount,
    )
    return user


def grant_free_on_first_login(user: User, now: Optional[datetime] = None) -> bool:
    """Give an uninitialized account its free allotment; no-op otherwise"""
    if user.plan is not None and not (user.plan == Plan.FREE and user.credits_balance == 0):
        return False

    credits = user.credits
    user.plan = Plan.FREE
    user.plan_activated_at = _activation_time(user, now)
    user.credits = credits.replace(
        total_purchased=credits.total_purchased + FREE_CREDITS,
        balance=FREE_CREDITS,
    )
    logger.info(f"Granted {FREE_CREDITS} free credits to user {user.id}")
    return True


async def consume_credit_atomic(
    db: AsyncSession,
    user_id: str,
    media: MediaKind,
    amount: int = 1,
) -> Optional[int]:
    """Deduct credits with a single conditional UPDATE.

    Returns the new balance, or None when the account no longer holds
    `amount` credits. Does not commit.
    """
    counter = User.images_generated if media == MediaKind.IMAGE else User.videos_generated
    stmt = (
        update(User)
        .where(User.id == user_id, User.credits_balance >= amount)
        .values(
            {
                User.credits_balance: User.credits_balance - amount,
                User.credits_total_used: User.credits_total_used + amount,
                counter: counter + 1,
            }
        )
        .returning(User.credits_balance)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    new_balance = result.scalar_one_or_none()
    if new_balance is None:
        logger.warning(f"Credit deduction refused for user {user_id}: balance below {amount}")
    return new_balance
