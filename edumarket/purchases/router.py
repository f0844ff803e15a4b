"""Purchase API endpoints.

Provides routes for:
- Starting a purchase and listing the caller's purchases
- Admin payment confirmation and refunds

Payment processing happens outside this service; an admin (or the payment
integration acting as one) reports the outcome through confirm and refund.
"""

from fastapi import APIRouter, status

from edumarket.auth.dependencies import AdminUser, CurrentUser
from edumarket.purchases.dependencies import AccessServiceDep
from edumarket.purchases.schemas import (
    PurchaseCreate,
    PurchaseResponse,
    TransitionResponse,
)


router = APIRouter(prefix="/v1/purchases", tags=["purchases"])


@router.post(
    "",
    response_model=PurchaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a purchase",
    responses={404: {"description": "Course not found"}},
)
async def create_purchase(
    data: PurchaseCreate,
    user: CurrentUser,
    access_service: AccessServiceDep,
) -> PurchaseResponse:
    """Create a pending purchase for the current user at the course price."""
    purchase = await access_service.create_purchase(
        user_id=user.id,
        course_id=data.course_id,
        payment_method=data.payment_method,
    )
    return PurchaseResponse.from_purchase(purchase)


@router.get(
    "/my",
    response_model=list[PurchaseResponse],
    summary="List my purchases",
)
async def list_my_purchases(
    user: CurrentUser, access_service: AccessServiceDep
) -> list[PurchaseResponse]:
    purchases = await access_service.list_user_purchases(user.id)
    return [PurchaseResponse.from_purchase(p) for p in purchases]


@router.post(
    "/{purchase_id}/confirm",
    response_model=TransitionResponse,
    summary="Confirm payment (admin)",
    responses={
        404: {"description": "Purchase not found"},
        409: {"description": "Purchase is not pending"},
    },
)
async def confirm_payment(
    purchase_id: str, _admin: AdminUser, access_service: AccessServiceDep
) -> TransitionResponse:
    """Complete a pending purchase and grant course access.

    Safe to repeat: confirming a completed purchase changes nothing.
    """
    result = await access_service.confirm_payment(purchase_id)
    return TransitionResponse.from_result(result)


@router.post(
    "/{purchase_id}/refund",
    response_model=TransitionResponse,
    summary="Refund purchase (admin)",
    responses={
        404: {"description": "Purchase not found"},
        409: {"description": "Purchase is not completed"},
    },
)
async def process_refund(
    purchase_id: str, _admin: AdminUser, access_service: AccessServiceDep
) -> TransitionResponse:
    """Refund a completed purchase and revoke course access."""
    result = await access_service.process_refund(purchase_id)
    return TransitionResponse.from_result(result)
