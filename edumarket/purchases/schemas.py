"""Pydantic schemas for purchases and enrollments."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from edumarket.purchases.models import (
    EnrollmentRecord,
    PurchaseRecord,
    PurchaseStatus,
    TransitionResult,
)


class PurchaseCreate(BaseModel):
    """Schema for starting a purchase."""

    course_id: str = Field(..., description="Course to buy")
    payment_method: str = Field(..., description="e.g. stripe, paypal, credit_card")


class PurchaseResponse(BaseModel):
    """Purchase response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    status: PurchaseStatus
    payment_method: str
    amount: Decimal
    purchase_date: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_purchase(cls, purchase: PurchaseRecord) -> "PurchaseResponse":
        return cls.model_validate(purchase)


class EnrollmentResponse(BaseModel):
    """Enrollment response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    course_id: str
    has_access: bool
    enrolled_at: datetime
    updated_at: datetime | None = None


class TransitionResponse(BaseModel):
    """Purchase after a status change, with the resulting enrollment."""

    purchase: PurchaseResponse
    enrollment: EnrollmentResponse | None = None

    @classmethod
    def from_result(cls, result: TransitionResult) -> "TransitionResponse":
        enrollment: EnrollmentRecord | None = result.enrollment
        return cls(
            purchase=PurchaseResponse.from_purchase(result.purchase),
            enrollment=(
                EnrollmentResponse.model_validate(enrollment) if enrollment else None
            ),
        )
