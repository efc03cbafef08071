"""Subscription router — plan status, pricing and the upgrade/downgrade stubs."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cvgen.database import get_db
from cvgen.models.user import User
from cvgen.schemas.subscription import (
    SubscriptionStatusResponse,
    UpgradeRequest,
    SubscriptionActionResponse,
)
from cvgen.middleware.auth import get_current_user
from cvgen.services import quota_service

router = APIRouter(prefix="/api/subscription", tags=["subscription"])


@router.get("/status", response_model=SubscriptionStatusResponse)
def get_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Plan, activity and per-type usage; limits are null on PRO."""
    return SubscriptionStatusResponse(**quota_service.get_status(db, current_user.id))


@router.get("/pricing")
def get_pricing():
    return quota_service.get_pricing()


@router.post("/upgrade", response_model=SubscriptionActionResponse)
def upgrade(
    req: UpgradeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Switch to PRO for one billing cycle. No payment is taken."""
    user = quota_service.upgrade_to_pro(db, current_user.id, req.billingCycle)
    return SubscriptionActionResponse(
        success=True,
        message=f"Upgraded to PRO ({req.billingCycle}) until {user.subscription_end_date.date().isoformat()}",
    )


@router.post("/downgrade", response_model=SubscriptionActionResponse)
def downgrade(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    quota_service.downgrade_to_free(db, current_user.id)
    return SubscriptionActionResponse(success=True, message="Downgraded to FREE")
