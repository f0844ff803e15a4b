# Purchases module
from edumarket.purchases.models import (
    EnrollmentRecord,
    PurchaseRecord,
    PurchaseStatus,
    TransitionResult,
)


__all__ = [
    "EnrollmentRecord",
    "PurchaseRecord",
    "PurchaseStatus",
    "TransitionResult",
]
