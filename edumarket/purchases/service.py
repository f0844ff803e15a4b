"""Access control service.

Drives the purchase status state machine and decides who may view course
content:

    pending --confirm_payment--> completed --process_refund--> refunded

A completed purchase grants access through the (user, course) enrollment, a
refund revokes it. _apply_access is the only code that writes has_access.

The purchase status change (compare-and-set) and the enrollment write are
separate writes, so every transition can be retried: re-applying a
transition whose status is already recorded repairs the enrollment if the
earlier attempt did not get to write it, and does nothing otherwise.

Cached access decisions carry the invalidation generation read before the
store lookup. A decision is only cached if no invalidation happened since, so
a refund racing a lookup can never leave a stale grant in Redis.
"""

from decimal import Decimal

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from edumarket.core.errors import (
    AccessDeniedError,
    InvalidTransitionError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from edumarket.core.redis import access_cache_key, access_generation_key
from edumarket.courses.models import ContentItem
from edumarket.courses.service import CourseService
from edumarket.purchases.models import (
    ACCESS_BY_STATUS,
    EnrollmentRecord,
    PurchaseRecord,
    PurchaseStatus,
    TransitionResult,
    can_transition,
)
from edumarket.purchases.store import EnrollmentStore, PurchaseStore


logger = structlog.get_logger(__name__)

# KEYS: decision key, generation key. ARGV: generation read, value, ttl.
_CACHE_IF_CURRENT_LUA = """
if tonumber(redis.call("GET", KEYS[2]) or "0") == tonumber(ARGV[1]) then
    redis.call("SET", KEYS[1], ARGV[2], "EX", ARGV[3])
    return 1
end
return 0
"""


class AccessService:
    """Purchases, enrollments and enrollment-gated content."""

    def __init__(
        self,
        purchases: PurchaseStore,
        enrollments: EnrollmentStore,
        course_service: CourseService,
        redis: Redis | None = None,
        cache_ttl: int = 300,
    ):
        """Initialize the service.

        Args:
            purchases: Purchase store adapter
            enrollments: Enrollment store adapter
            course_service: Source of courses and their content
            redis: Optional client for caching access decisions
            cache_ttl: Seconds an access decision stays cached
        """
        self.purchases = purchases
        self.enrollments = enrollments
        self.course_service = course_service
        self.redis = redis
        self.cache_ttl = cache_ttl

    # ==========================================================================
    # Purchases
    # ==========================================================================

    async def create_purchase(
        self, user_id: str, course_id: str, payment_method: str
    ) -> PurchaseRecord:
        """Start a purchase in pending status at the course's current price.

        Raises:
            ValidationError: If user_id or payment_method is empty
            NotFoundError: If the course does not exist or is soft-deleted
        """
        if not user_id:
            raise ValidationError("User id is required", fields=["user_id"])
        if not payment_method or not payment_method.strip():
            raise ValidationError(
                "Payment method is required", fields=["payment_method"]
            )

        course = await self.course_service.get_course(course_id)

        purchase = PurchaseRecord(
            user_id=user_id,
            course_id=course.id,
            payment_method=payment_method.strip(),
            amount=Decimal(course.price),
        )
        self.purchases.insert(purchase)

        logger.info(
            "purchase_created",
            purchase_id=purchase.id,
            user_id=user_id,
            course_id=course.id,
        )
        return purchase

    async def list_user_purchases(self, user_id: str) -> list[PurchaseRecord]:
        """A user's purchases, newest first."""
        purchases = self.purchases.list_by_user(user_id)
        return sorted(purchases, key=lambda p: p.purchase_date, reverse=True)

    async def get_enrollment(
        self, user_id: str, course_id: str
    ) -> EnrollmentRecord | None:
        return self.enrollments.find(user_id, course_id)

    # ==========================================================================
    # Status transitions
    # ==========================================================================

    async def confirm_payment(self, purchase_id: str) -> TransitionResult:
        """Mark a pending purchase completed and grant access.

        Raises:
            NotFoundError: If the purchase does not exist
            InvalidTransitionError: If the purchase is not pending
        """
        return await self._transition(purchase_id, PurchaseStatus.COMPLETED)

    async def process_refund(self, purchase_id: str) -> TransitionResult:
        """Mark a completed purchase refunded and revoke access.

        The enrollment record is kept with has_access false.

        Raises:
            NotFoundError: If the purchase does not exist
            InvalidTransitionError: If the purchase is not completed
        """
        return await self._transition(purchase_id, PurchaseStatus.REFUNDED)

    def _load_purchase(self, purchase_id: str) -> PurchaseRecord:
        purchase = self.purchases.find_by_id(purchase_id) if purchase_id else None
        if purchase is None:
            raise NotFoundError("Purchase not found")
        return purchase

    async def _transition(
        self, purchase_id: str, target: PurchaseStatus
    ) -> TransitionResult:
        purchase = self._load_purchase(purchase_id)

        if purchase.status == target:
            return await self._retry(purchase)

        if not can_transition(purchase.status, target):
            raise InvalidTransitionError(purchase.status.value, target.value)

        if not self.purchases.transition_status(purchase, target):
            # Another writer moved the purchase first
            current = self._load_purchase(purchase_id)
            logger.info(
                "purchase_transition_conflict",
                purchase_id=purchase_id,
                status=current.status.value,
                target=target.value,
            )
            if current.status == target:
                return await self._retry(current)
            raise InvalidTransitionError(current.status.value, target.value)

        enrollment = await self._apply_access(purchase)

        logger.info(
            "purchase_transitioned",
            purchase_id=purchase.id,
            user_id=purchase.user_id,
            course_id=purchase.course_id,
            status=purchase.status.value,
        )
        return TransitionResult(purchase=purchase, enrollment=enrollment)

    async def _retry(self, purchase: PurchaseRecord) -> TransitionResult:
        """Re-apply a transition whose target status is already recorded."""
        enrollment = self.enrollments.find(purchase.user_id, purchase.course_id)

        if self._needs_repair(purchase, enrollment):
            logger.warning(
                "enrollment_repaired",
                purchase_id=purchase.id,
                status=purchase.status.value,
            )
            enrollment = await self._apply_access(purchase)
        else:
            await self._invalidate_access(purchase.user_id, purchase.course_id)

        return TransitionResult(purchase=purchase, enrollment=enrollment)

    @staticmethod
    def _needs_repair(
        purchase: PurchaseRecord, enrollment: EnrollmentRecord | None
    ) -> bool:
        """Whether the enrollment missed this purchase's last transition.

        A newer transition of another purchase is never overwritten.
        """
        has_access = ACCESS_BY_STATUS[purchase.status]
        if enrollment is None:
            return has_access
        if enrollment.purchase_id == purchase.id:
            return enrollment.has_access != has_access
        if enrollment.updated_at is None or purchase.updated_at is None:
            return enrollment.has_access != has_access
        return enrollment.updated_at < purchase.updated_at

    async def _apply_access(
        self, purchase: PurchaseRecord
    ) -> EnrollmentRecord | None:
        """Write the enrollment side effect of the purchase's current status."""
        has_access = ACCESS_BY_STATUS[purchase.status]
        enrollment = self.enrollments.find(purchase.user_id, purchase.course_id)

        if enrollment is None:
            if not has_access:
                # Nothing to revoke
                await self._invalidate_access(purchase.user_id, purchase.course_id)
                return None
            enrollment = EnrollmentRecord(
                user_id=purchase.user_id,
                course_id=purchase.course_id,
                has_access=True,
                purchase_id=purchase.id,
            )
        else:
            enrollment.has_access = has_access
            enrollment.purchase_id = purchase.id

        self.enrollments.upsert(enrollment)
        await self._invalidate_access(purchase.user_id, purchase.course_id)

        logger.info(
            "enrollment_access_updated",
            user_id=purchase.user_id,
            course_id=purchase.course_id,
            has_access=has_access,
        )
        return enrollment

    # ==========================================================================
    # Content access
    # ==========================================================================

    async def can_access_content(self, user_id: str, course_id: str) -> bool:
        """Whether the user holds an enrollment with access to the course.

        Never raises for a missing enrollment or empty ids.
        """
        if not user_id or not course_id:
            return False

        cached = await self._read_cached_access(user_id, course_id)
        if cached is not None:
            return cached

        generation = await self._read_access_generation(user_id, course_id)

        enrollment = self.enrollments.find(user_id, course_id)
        allowed = enrollment is not None and enrollment.has_access

        if generation is not None:
            await self._cache_access(user_id, course_id, allowed, generation)
        return allowed

    async def get_course_content(
        self, user_id: str, course_id: str
    ) -> list[ContentItem]:
        """Content of a course the user is enrolled in, in display order.

        Raises:
            AccessDeniedError: If the user has no access; no content is fetched
        """
        if not await self.can_access_content(user_id, course_id):
            logger.info("content_access_denied", user_id=user_id, course_id=course_id)
            raise AccessDeniedError

        return await self.course_service.list_visible_content(course_id)

    # ==========================================================================
    # Access cache
    # ==========================================================================

    async def _read_cached_access(self, user_id: str, course_id: str) -> bool | None:
        if self.redis is None:
            return None
        try:
            value = await self.redis.get(access_cache_key(user_id, course_id))
        except RedisError as e:
            logger.warning("access_cache_read_failed", error=str(e))
            return None
        if value is None:
            return None
        return value in ("1", b"1")

    async def _read_access_generation(
        self, user_id: str, course_id: str
    ) -> int | None:
        """Current invalidation generation, or None when it cannot be cached."""
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(access_generation_key(user_id, course_id))
        except RedisError as e:
            logger.warning("access_cache_read_failed", error=str(e))
            return None
        return int(raw) if raw else 0

    async def _cache_access(
        self, user_id: str, course_id: str, allowed: bool, generation: int
    ) -> None:
        """Cache the decision unless it was invalidated after generation was read."""
        try:
            stored = await self.redis.eval(
                _CACHE_IF_CURRENT_LUA,
                2,
                access_cache_key(user_id, course_id),
                access_generation_key(user_id, course_id),
                str(generation),
                "1" if allowed else "0",
                self.cache_ttl,
            )
        except RedisError as e:
            logger.warning("access_cache_write_failed", error=str(e))
            return
        if not stored:
            logger.info(
                "access_cache_write_skipped", user_id=user_id, course_id=course_id
            )

    async def _invalidate_access(self, user_id: str, course_id: str) -> None:
        """Drop the cached decision. Fails loudly so the caller retries.

        The generation is bumped before the delete so a lookup already in
        flight cannot cache what it read.
        """
        if self.redis is None:
            return
        try:
            await self.redis.incr(access_generation_key(user_id, course_id))
            await self.redis.delete(access_cache_key(user_id, course_id))
        except RedisError as e:
            logger.error("access_cache_invalidation_failed", error=str(e))
            raise StoreError("Access cache invalidation failed") from e
