"""Tests for purchase status transitions."""

import pytest

from edumarket.purchases.models import (
    ALLOWED_TRANSITIONS,
    PurchaseRecord,
    PurchaseStatus,
    can_transition,
)


class TestTransitionTable:
    """Tests for can_transition."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (PurchaseStatus.PENDING, PurchaseStatus.COMPLETED),
            (PurchaseStatus.COMPLETED, PurchaseStatus.REFUNDED),
        ],
    )
    def test_allowed(self, current: PurchaseStatus, target: PurchaseStatus) -> None:
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (PurchaseStatus.PENDING, PurchaseStatus.REFUNDED),
            (PurchaseStatus.COMPLETED, PurchaseStatus.PENDING),
            (PurchaseStatus.REFUNDED, PurchaseStatus.COMPLETED),
            (PurchaseStatus.REFUNDED, PurchaseStatus.PENDING),
            (PurchaseStatus.PENDING, PurchaseStatus.PENDING),
        ],
    )
    def test_rejected(self, current: PurchaseStatus, target: PurchaseStatus) -> None:
        assert not can_transition(current, target)

    def test_refunded_is_terminal(self) -> None:
        assert PurchaseStatus.REFUNDED not in ALLOWED_TRANSITIONS

    def test_accepts_plain_strings(self) -> None:
        assert can_transition("pending", "completed")


class TestPurchaseRecord:
    """Tests for PurchaseRecord."""

    def test_defaults_to_pending(self) -> None:
        purchase = PurchaseRecord("user-1", "course-1", "stripe", amount=10)
        assert purchase.status is PurchaseStatus.PENDING
        assert purchase.purchase_date.tzinfo is not None

    def test_status_from_string(self) -> None:
        purchase = PurchaseRecord("u", "c", "paypal", amount=1, status="refunded")
        assert purchase.status is PurchaseStatus.REFUNDED
