"""
Domain models for the subscriber webhook service.

Design decisions:
- Using Pydantic for validation and serialization
- Registry entries and webhook events are frozen once constructed
- The on-disk document keeps the camelCase ``updatedAt`` key via an alias
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class SubscriptionAction(str, Enum):
    """What a webhook event does to a product's subscriber set."""
    ADD = "add"
    REMOVE = "remove"


class SubscriptionStatus(str, Enum):
    """Status reported by the verify endpoints."""
    ACTIVE = "active"
    NONE = "none"


# =============================================================================
# Registry
# =============================================================================

class Product(BaseModel):
    """
    A product sold through the payment platform.

    ``key`` is the product permalink used to route webhook events and to
    name the product's subscriber file.
    """
    key: str = Field(..., description="Product permalink")
    name: str = Field(..., description="Display name")
    id: Optional[str] = Field(default=None, description="Platform product id")

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Persistence
# =============================================================================

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubscriberFile(BaseModel):
    """The JSON document stored for one product."""
    product: Optional[str] = None
    emails: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Webhook Events
# =============================================================================

class WebhookEvent(BaseModel):
    """
    Normalized, validated view of an inbound webhook ping.

    Built by ``subscribers.events.parse_webhook``; raw payload dictionaries
    never travel past that function.
    """
    email: str
    product_key: str
    action: SubscriptionAction
    seller_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_termination(self) -> bool:
        return self.action == SubscriptionAction.REMOVE


class SubscriberChange(BaseModel):
    """Outcome of applying an add/remove to a subscriber set."""
    product: str
    email: str
    action: SubscriptionAction
    changed: bool


# =============================================================================
# Query Results
# =============================================================================

class VerifyResult(BaseModel):
    """Answer to "is this email subscribed?"."""
    email: str
    subscribed: bool
    status: SubscriptionStatus
    product: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)


class HealthReport(BaseModel):
    """Diagnostic snapshot of the service."""
    status: str = "ok"
    service: str
    products: dict[str, Product]
    subscribers: dict[str, int]
    timestamp: datetime = Field(default_factory=utcnow)
