"""
Subscriber tracking for Gumroad products.

This package contains the service core, independent of the HTTP layer:
- Configuration and the static product registry
- Flat-file storage and the per-product subscriber store
- Webhook interpretation (ping payload -> add/remove decision)
- Query and admin operations
"""

from subscribers.admin import SubscriberAdmin
from subscribers.config import Settings, get_settings
from subscribers.events import apply_event, parse_webhook
from subscribers.models import (
    HealthReport,
    Product,
    SubscriberChange,
    SubscriptionAction,
    SubscriptionStatus,
    VerifyResult,
    WebhookEvent,
)
from subscribers.registry import ProductRegistry, build_registry
from subscribers.storage import JsonFileStorage, SubscriberStorage
from subscribers.store import SubscriberStore, normalize_email

__all__ = [
    "SubscriberAdmin",
    "Settings",
    "get_settings",
    "apply_event",
    "parse_webhook",
    "HealthReport",
    "Product",
    "SubscriberChange",
    "SubscriptionAction",
    "SubscriptionStatus",
    "VerifyResult",
    "WebhookEvent",
    "ProductRegistry",
    "build_registry",
    "JsonFileStorage",
    "SubscriberStorage",
    "SubscriberStore",
    "normalize_email",
]
