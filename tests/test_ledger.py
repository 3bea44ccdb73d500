"""
Tests for the credit ledger.

These tests verify that:
1. Plans map to their fixed credit allotment
2. Consuming credits never drives the balance below zero
3. Plan changes are additive and never move the activation stamp back
4. The login-time free grant only touches uninitialized accounts
"""

from datetime import datetime, timedelta

import pytest

from fashionx.core.errors import InsufficientCredits, InvalidPlanError
from fashionx.models.generation import MediaKind
from fashionx.models.user import Plan, User
from fashionx.schemas.credits import Credits
from fashionx.services.ledger import (
    apply_plan_change,
    consume_credit,
    consume_credit_atomic,
    credits_for_plan,
    grant_free_on_first_login,
    parse_plan,
)


def make_user(**fields) -> User:
    fields.setdefault("email", "ledger@example.com")
    return User(**fields)


# =============================================================================
# Plan table
# =============================================================================

@pytest.mark.parametrize("plan, expected", [
    ("free", 3),
    ("basic", 50),
    ("pro", 200),
    ("enterprise", 1000),
    ("PRO", 200),
    (" Basic ", 50),
    (Plan.ENTERPRISE, 1000),
])
def test_credits_for_plan(plan, expected):
    assert credits_for_plan(plan) == expected


@pytest.mark.parametrize("plan", ["", None, "platinum", "trial"])
def test_unknown_plans_get_the_free_allotment(plan):
    assert credits_for_plan(plan) == 3


def test_parse_plan_rejects_unknown_names():
    with pytest.raises(InvalidPlanError) as exc:
        parse_plan("platinum")
    assert exc.value.status_code == 400


def test_credits_clamps_negative_balance():
    assert Credits(balance=-5).balance == 0
    assert Credits().replace(balance=-1).balance == 0


# =============================================================================
# consume_credit
# =============================================================================

def test_consume_credit_decrements_balance_and_counts_usage():
    user = make_user(credits_balance=2, credits_total_used=1)

    consume_credit(user)

    assert user.credits_balance == 1
    assert user.credits_total_used == 2


def test_consume_credit_with_empty_balance_leaves_state_unchanged():
    user = make_user(credits_balance=0, credits_total_purchased=3, credits_total_used=3)
    before = user.credits

    with pytest.raises(InsufficientCredits) as exc:
        consume_credit(user)

    assert exc.value.status_code == 403
    assert exc.value.to_dict()["redirectTo"] == "/pricing"
    assert user.credits == before


# =============================================================================
# apply_plan_change
# =============================================================================

def test_plan_change_is_additive():
    user = make_user(credits_balance=1, credits_total_purchased=3, credits_total_used=2)

    apply_plan_change(user, "basic")

    assert user.plan == Plan.BASIC
    assert user.credits_total_purchased == 53
    assert user.credits_balance == 51
    assert user.last_purchase_amount == 50

    apply_plan_change(user, "basic")
    assert user.credits_total_purchased == 103
    assert user.credits_balance == 101


def test_plan_change_balance_is_clamped():
    # Corrupt aggregate where more was used than purchased
    user = make_user(credits_balance=0, credits_total_purchased=3, credits_total_used=500)

    apply_plan_change(user, "basic")

    assert user.credits_balance == 0


def test_plan_change_never_moves_activation_back():
    future = datetime.utcnow() + timedelta(days=1)
    user = make_user(plan_activated_at=future)

    apply_plan_change(user, "pro", now=datetime.utcnow())
    assert user.plan_activated_at == future

    later = future + timedelta(hours=1)
    apply_plan_change(user, "pro", now=later)
    assert user.plan_activated_at == later


def test_plan_change_rejects_unknown_plan():
    user = make_user()
    with pytest.raises(InvalidPlanError):
        apply_plan_change(user, "gold")
    assert user.plan == Plan.FREE


# =============================================================================
# grant_free_on_first_login
# =============================================================================

def test_free_grant_on_account_without_plan():
    user = make_user(plan=None, credits_balance=0, credits_total_purchased=0, credits_total_used=0)

    assert grant_free_on_first_login(user) is True
    assert user.plan == Plan.FREE
    assert user.credits_balance == 3
    assert user.credits_total_purchased == 3


def test_free_grant_is_idempotent():
    user = make_user(plan=Plan.FREE, credits_balance=0, credits_total_purchased=0, credits_total_used=0)

    assert grant_free_on_first_login(user) is True
    assert grant_free_on_first_login(user) is False
    assert user.credits_balance == 3
    assert user.credits_total_purchased == 3


def test_free_grant_sets_balance_when_purchased_is_ahead():
    user = make_user(plan=Plan.FREE, credits_balance=0, credits_total_purchased=50, credits_total_used=0)

    assert grant_free_on_first_login(user) is True
    assert user.credits_balance == 3
    assert user.credits_total_purchased == 53


def test_free_grant_sets_balance_when_used_is_ahead():
    user = make_user(plan=Plan.FREE, credits_balance=0, credits_total_purchased=3, credits_total_used=10)

    assert grant_free_on_first_login(user) is True
    assert user.credits_balance == 3
    assert user.credits_total_purchased == 6
    assert user.credits_total_used == 10


def test_free_grant_skips_initialized_accounts():
    user = make_user(plan=Plan.PRO, credits_balance=0, credits_total_purchased=203, credits_total_used=203)

    assert grant_free_on_first_login(user) is False
    assert user.credits_balance == 0


# =============================================================================
# consume_credit_atomic
# =============================================================================

async def test_atomic_consume_updates_counters(db):
    user = make_user(credits_balance=2)
    db.add(user)
    await db.commit()

    remaining = await consume_credit_atomic(db, user.id, MediaKind.VIDEO)
    await db.commit()
    await db.refresh(user)

    assert remaining == 1
    assert user.credits_balance == 1
    assert user.credits_total_used == 1
    assert user.videos_generated == 1
    assert user.images_generated == 0


async def test_atomic_consume_refuses_empty_balance(db):
    user = make_user(credits_balance=0, credits_total_used=3)
    db.add(user)
    await db.commit()

    assert await consume_credit_atomic(db, user.id, MediaKind.IMAGE) is None
    await db.commit()
    await db.refresh(user)

    assert user.credits_balance == 0
    assert user.credits_total_used == 3
    assert user.images_generated == 0
