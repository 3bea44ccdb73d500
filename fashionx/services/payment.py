# ============================================================================
# services/payment.py - Stripe Payments
# ============================================================================

import logging
from datetime import datetime
from typing import Optional

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fashionx.core.config import settings
from fashionx.core.errors import AppError, Forbidden, NotFound, UpstreamError, ValidationError
from fashionx.models.payment import Payment, PaymentStatus
from fashionx.models.user import Plan, User
from fashionx.services.ledger import apply_plan_change, parse_plan
from fashionx.services.plans import PLAN_CATALOG

logger = logging.getLogger(__name__)

stripe.api_key = settings.STRIPE_SECRET_KEY


class PaymentService:

    async def create_checkout_session(self, user: User, plan_name: Optional[str], db: AsyncSession) -> dict:
        if not plan_name:
            raise ValidationError("Plan ID is required")
        plan = parse_plan(plan_name)
        if plan == Plan.FREE:
            raise ValidationError("The free plan does not require payment")

        entry = PLAN_CATALOG[plan]
        try:
            session = stripe.checkout.Session.create(
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": settings.CURRENCY,
                        "product_data": {"name": f"FashionX {entry['name']} plan"},
                        "unit_amount": entry["price"] * 100,
                    },
                    "quantity": 1,
                }],
                mode="payment",
                success_url=f"{settings.FRONTEND_URL}/dashboard?success=true",
                cancel_url=f"{settings.FRONTEND_URL}/pricing?canceled=true",
                customer_email=user.email,
                metadata={
                    "user_id": str(user.id),
                    "plan": plan.value,
                },
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe checkout session failed for user {user.id}: {e}")
            raise UpstreamError("Failed to create payment session")

        payment = Payment(
            user_id=user.id,
            plan_name=plan.value,
            amount=entry["price"],
            order_id=session.id,
            status=PaymentStatus.CREATED,
        )
        db.add(payment)
        await db.commit()

        logger.info(f"Created checkout session {session.id} for user {user.id} ({plan.value})")
        return {"sessionId": session.id, "checkoutUrl": session.url, "amount": entry["price"], "plan": plan.value}

    async def handle_webhook(self, payload: bytes, sig_header: Optional[str], db: AsyncSession) -> dict:
        try:
            event = stripe.Webhook.construct_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
        except ValueError:
            raise ValidationError("Invalid payload")
        except stripe.SignatureVerificationError:
            raise ValidationError("Invalid signature")

        event_type = event["type"]
        session = event["data"]["object"]
        logger.info(f"Stripe webhook received: {event_type}")

        if event_type == "checkout.session.completed":
            await self._capture(session, db)
        elif event_type == "checkout.session.expired":
            await self._fail(session, db)

        return {"received": True}

    async def _find_by_order(self, order_id: str, db: AsyncSession) -> Optional[Payment]:
        result = await db.execute(select(Payment).where(Payment.order_id == order_id))
        return result.scalar_one_or_none()

    async def _capture(self, session, db: AsyncSession) -> None:
        payment = await self._find_by_order(session["id"], db)
        if not payment:
            logger.warning(f"No payment recorded for checkout session {session['id']}")
            return
        if payment.status == PaymentStatus.CAPTURED:
            # Stripe redelivers events
            return

        payment.transition(PaymentStatus.CAPTURED)
        payment.payment_id = session.get("payment_intent")

        user = await db.get(User, payment.user_id)
        if user:
            apply_plan_change(user, payment.plan_name)
            user.plan_price = payment.amount
        await db.commit()
        logger.info(f"✅ Payment {payment.order_id} captured; user {payment.user_id} moved to {payment.plan_name}")

    async def _fail(self, session, db: AsyncSession) -> None:
        payment = await self._find_by_order(session["id"], db)
        if not payment or payment.status != PaymentStatus.CREATED:
            return

        payment.transition(PaymentStatus.FAILED)
        await db.commit()
        logger.info(f"Payment {payment.order_id} expired")

    async def list_transactions(self, user_id: str, db: AsyncSession) -> list:
        result = await db.execute(
            select(Payment).where(Payment.user_id == user_id).order_by(Payment.created_at.desc(), Payment.id.desc())
        )
        return list(result.scalars().all())

    async def refund(self, user_id: str, transaction_id: Optional[int], db: AsyncSession) -> Payment:
        if not transaction_id:
            raise ValidationError("Transaction ID is required")

        payment = await db.get(Payment, transaction_id)
        if not payment:
            raise NotFound("Transaction not found")
        if payment.user_id != user_id:
            raise Forbidden("Transaction does not belong to this user")
        if payment.status == PaymentStatus.REFUNDED:
            raise ValidationError("Payment has already been refunded")
        if payment.status != PaymentStatus.CAPTURED or not payment.payment_id:
            raise ValidationError("Only captured payments can be refunded")

        try:
            refund = stripe.Refund.create(payment_intent=payment.payment_id)
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe refund failed for payment {payment.id}: {e}")
            raise AppError("Failed to process refund with payment gateway", status_code=502)

        payment.transition(PaymentStatus.REFUNDED)
        payment.refund_id = refund.id
        payment.refunded_at = datetime.utcnow()

        user = await db.get(User, user_id)
        if user:
            user.plan = Plan.FREE
            user.plan_price = 0
            user.plan_activated_at = max(datetime.utcnow(), user.plan_activated_at or datetime.min)
        await db.commit()

        logger.info(f"✅ Refunded payment {payment.id} for user {user_id} (refund {payment.refund_id})")
        return payment


payment_service = PaymentService()
