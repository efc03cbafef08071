"""Subscription / quota schemas."""

from typing import Literal, Optional

from pydantic import BaseModel


class UsageCounter(BaseModel):
    used: int
    limit: Optional[int] = None       # None = unlimited (PRO)
    remaining: Optional[int] = None


class Usage(BaseModel):
    jobBasedCVs: UsageCounter
    profileBasedCVs: UsageCounter


class SubscriptionStatusResponse(BaseModel):
    subscriptionType: str
    isActive: bool
    subscriptionStartDate: Optional[str] = None
    subscriptionEndDate: Optional[str] = None
    usage: Usage


class UpgradeRequest(BaseModel):
    billingCycle: Literal["monthly", "yearly"]


class SubscriptionActionResponse(BaseModel):
    success: bool
    message: str
