# ============================================================================
# models/payment.py - Payment Database Model
# ============================================================================

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from fashionx.core.database import Base
from fashionx.core.errors import ValidationError


class PaymentStatus(str, Enum):
    CREATED = "created"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    FAILED = "failed"


ALLOWED_TRANSITIONS = {
    PaymentStatus.CREATED: {PaymentStatus.AUTHORIZED, PaymentStatus.CAPTURED, PaymentStatus.FAILED},
    PaymentStatus.AUTHORIZED: {PaymentStatus.CAPTURED, PaymentStatus.FAILED},
    PaymentStatus.CAPTURED: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
    PaymentStatus.FAILED: set(),
}


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    plan_name = Column(String(20), nullable=False)
    amount = Column(Integer, nullable=False)
    payment_id = Column(String(255), nullable=True)  # Stripe payment intent
    order_id = Column(String(255), unique=True, nullable=False)  # Stripe checkout session
    status = Column(
        SQLEnum(PaymentStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        default=PaymentStatus.CREATED,
        nullable=False,
    )
    refund_id = Column(String(255), nullable=True)
    refunded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="payments")

    def transition(self, new_status: PaymentStatus) -> None:
        current = PaymentStatus(self.status or PaymentStatus.CREATED)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise ValidationError(f"Payment cannot move from {current.value} to {new_status.value}")
        self.status = new_status

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "planName": self.plan_name,
            "amount": self.amount,
            "paymentId": self.payment_id,
            "orderId": self.order_id,
            "status": PaymentStatus(self.status).value,
            "refundId": self.refund_id,
            "refundedAt": self.refunded_at.isoformat() if self.refunded_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
