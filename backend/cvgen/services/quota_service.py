"""Quota service — subscription plans and lifetime CV generation limits.

FREE users get a fixed number of generations per CV type over the lifetime of
the account (not per month). PRO users are unlimited until their end date
passes; an expired PRO subscription is downgraded the first time it is
looked at.
"""

import asyncio
import calendar
import contextlib
import logging
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy.orm import Session

from cvgen.errors import NotFoundError, QuotaExceededError
from cvgen.models.user import User

logger = logging.getLogger(__name__)

FREE_JOB_BASED_LIMIT = 3
FREE_PROFILE_BASED_LIMIT = 1


class SubscriptionType(str, Enum):
    FREE = "FREE"
    PRO = "PRO"


class CVType(str, Enum):
    JOB_BASED = "JOB_BASED"
    PROFILE_BASED = "PROFILE_BASED"


_LIMITS = {
    CVType.JOB_BASED: FREE_JOB_BASED_LIMIT,
    CVType.PROFILE_BASED: FREE_PROFILE_BASED_LIMIT,
}

_COUNTERS = {
    CVType.JOB_BASED: User.job_based_cvs_used,
    CVType.PROFILE_BASED: User.profile_based_cvs_used,
}

# Per-user locks serialising check → generate → increment for limited users.
# An entry lives only while some request holds or waits on it.
_user_locks: dict[str, asyncio.Lock] = {}
_lock_users: dict[str, int] = {}


def cv_type_for(job_posting_id: str | None) -> CVType:
    return CVType.JOB_BASED if job_posting_id else CVType.PROFILE_BASED


@contextlib.asynccontextmanager
async def user_lock(user_id: str):
    lock = _user_locks.setdefault(user_id, asyncio.Lock())
    _lock_users[user_id] = _lock_users.get(user_id, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _lock_users[user_id] -= 1
        if _lock_users[user_id] == 0:
            del _lock_users[user_id]
            del _user_locks[user_id]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _add_months(value: datetime, months: int) -> datetime:
    """Same day-of-month N months later, clamped to the last day (Jan 31 -> Feb 28)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _iso(value: datetime | None) -> str | None:
    return _as_utc(value).isoformat() if value else None


def _get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).populate_existing().first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _is_expired(user: User, now: datetime) -> bool:
    return (
        user.subscription_type == SubscriptionType.PRO.value
        and user.subscription_end_date is not None
        and _as_utc(user.subscription_end_date) < now
    )


def _load_effective_user(db: Session, user_id: str, commit: bool = True) -> User:
    """Load the user, downgrading a lapsed PRO plan before anything reads it."""
    user = _get_user(db, user_id)
    if _is_expired(user, _now()):
        logger.info("PRO subscription for user %s expired; downgrading to FREE", user_id)
        downgrade_to_free(db, user_id, commit=commit)
        user = _get_user(db, user_id)
    return user


def _used(user: User, cv_type: CVType) -> int:
    return user.job_based_cvs_used if cv_type == CVType.JOB_BASED else user.profile_based_cvs_used


def is_limited(db: Session, user_id: str) -> bool:
    """True when the user's generations count against FREE limits."""
    return _load_effective_user(db, user_id).subscription_type == SubscriptionType.FREE.value


def can_generate(db: Session, user_id: str, cv_type: CVType) -> bool:
    user = _load_effective_user(db, user_id)
    if user.subscription_type == SubscriptionType.PRO.value:
        return True
    return _used(user, cv_type) < _LIMITS[cv_type]


def check_can_generate(db: Session, user_id: str, cv_type: CVType) -> bool:
    """Raise QuotaExceededError if the user may not start another generation.

    Returns True when the permitted generation counts against a FREE limit,
    False when it was permitted under PRO and is not counted.
    """
    user = _load_effective_user(db, user_id)
    if user.subscription_type == SubscriptionType.PRO.value:
        return False
    if _used(user, cv_type) < _LIMITS[cv_type]:
        return True
    logger.info("Quota rejected %s generation for user %s", cv_type.value, user_id)
    raise QuotaExceededError(
        plan=user.subscription_type,
        limit_type=cv_type.value,
        limit=_LIMITS[cv_type],
        used=_used(user, cv_type),
    )


def increment_usage(
    db: Session,
    user_id: str,
    cv_type: CVType,
    commit: bool = True,
    counted: bool | None = None,
) -> None:
    """Count one successful generation against a FREE user's limit.

    The increment is a single conditional UPDATE (``used < limit``), so two
    sessions can never push a counter past its limit. PRO users are not
    counted. ``counted`` is the decision returned by check_can_generate; when
    given, the plan is not looked at again, so a PRO plan lapsing in between
    does not turn a permitted generation into a rejection. With
    ``commit=False`` the caller owns the transaction and nothing here commits.
    """
    if counted is None:
        user = _load_effective_user(db, user_id, commit=commit)
        counted = user.subscription_type == SubscriptionType.FREE.value
    if not counted:
        return

    counter = _COUNTERS[cv_type]
    limit = _LIMITS[cv_type]
    updated = (
        db.query(User)
        .filter(User.id == user_id, counter < limit)
        .update({counter: counter + 1}, synchronize_session="fetch")
    )
    if updated == 0:
        raise QuotaExceededError(
            plan=SubscriptionType.FREE.value,
            limit_type=cv_type.value,
            limit=limit,
            used=_used(_get_user(db, user_id), cv_type),
        )
    if commit:
        db.commit()


def _usage_counter(user: User, cv_type: CVType) -> dict:
    used = _used(user, cv_type)
    if user.subscription_type != SubscriptionType.FREE.value:
        return {"used": used, "limit": None, "remaining": None}
    limit = _LIMITS[cv_type]
    return {"used": used, "limit": limit, "remaining": max(0, limit - used)}


def get_status(db: Session, user_id: str) -> dict:
    """Subscription type, activity flag, dates and per-type usage."""
    user = _load_effective_user(db, user_id)
    is_active = user.subscription_type == SubscriptionType.PRO.value and (
        user.subscription_end_date is None or _as_utc(user.subscription_end_date) >= _now()
    )
    return {
        "subscriptionType": user.subscription_type,
        "isActive": is_active,
        "subscriptionStartDate": _iso(user.subscription_start_date),
        "subscriptionEndDate": _iso(user.subscription_end_date),
        "usage": {
            "jobBasedCVs": _usage_counter(user, CVType.JOB_BASED),
            "profileBasedCVs": _usage_counter(user, CVType.PROFILE_BASED),
        },
    }


def upgrade_to_pro(db: Session, user_id: str, billing_cycle: str) -> User:
    """Switch the user to PRO for one month or one year (no payment processing)."""
    if billing_cycle not in ("monthly", "yearly"):
        raise ValueError(f"Unknown billing cycle: {billing_cycle}")
    user = _get_user(db, user_id)
    start = _now()
    user.subscription_type = SubscriptionType.PRO.value
    user.subscription_start_date = start
    user.subscription_end_date = _add_months(start, 1 if billing_cycle == "monthly" else 12)
    db.commit()
    return user


def downgrade_to_free(db: Session, user_id: str, commit: bool = True) -> None:
    """Reset the plan to FREE and clear its dates; usage counters are kept."""
    user = _get_user(db, user_id)
    user.subscription_type = SubscriptionType.FREE.value
    user.subscription_start_date = None
    user.subscription_end_date = None
    if commit:
        db.commit()
    else:
        db.flush()


def get_pricing() -> dict:
    return {
        "free": {
            "name": "Free",
            "price": 0,
            "features": [
                f"{FREE_JOB_BASED_LIMIT} job-based CVs (total limit)",
                f"{FREE_PROFILE_BASED_LIMIT} profile-based CV (total limit)",
                "Basic templates",
                "ATS-optimized format",
            ],
            "limits": {
                "jobBasedCVs": FREE_JOB_BASED_LIMIT,
                "profileBasedCVs": FREE_PROFILE_BASED_LIMIT,
            },
        },
        "pro": {
            "name": "Pro",
            "monthly": {"price": 15, "billingCycle": "monthly"},
            "yearly": {"price": 99, "billingCycle": "yearly", "pricePerMonth": 8.25, "savings": 81},
            "features": [
                "Unlimited CV generation",
                "All templates",
                "Priority AI processing",
                "Advanced customization",
                "Premium support",
            ],
        },
    }
