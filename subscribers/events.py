"""
Interpretation of Gumroad ping payloads.

A ping is an untyped mapping of form fields. ``parse_webhook`` turns it into
a ``WebhookEvent`` or raises one of the request errors; ``apply_event``
applies the decided action to the subscriber store.

Fields used:
- email: the buyer's email (required)
- seller_id: compared against the configured seller, when both are present
- product_permalink: which product the ping is about (multi-product mode)
- refunded, subscription_cancelled_at, subscription_ended_at: termination
  signals; any one of them turns the ping into a removal
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from subscribers.config import Settings
from subscribers.errors import MissingEmail, UntrustedSender
from subscribers.models import SubscriberChange, SubscriptionAction, WebhookEvent
from subscribers.registry import ProductRegistry
from subscribers.store import SubscriberStore, normalize_email

logger = logging.getLogger("webhook_events")

UNKNOWN_PRODUCT = "unknown"

TERMINATION_TIMESTAMP_FIELDS = ("subscription_cancelled_at", "subscription_ended_at")


def _text(payload: Mapping[str, Any], field: str) -> Optional[str]:
    """A payload field as stripped text, or None when absent or blank."""
    value = payload.get(field)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _is_refunded(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def is_termination(payload: Mapping[str, Any]) -> bool:
    """True when the ping reports a refund, cancellation or ended subscription."""
    if _is_refunded(payload.get("refunded")):
        return True
    return any(_text(payload, field) for field in TERMINATION_TIMESTAMP_FIELDS)


def parse_webhook(
    payload: Mapping[str, Any],
    settings: Settings,
    registry: ProductRegistry,
) -> WebhookEvent:
    """
    Decide product, email and action for a ping.

    Raises:
        MissingEmail: no email in the payload.
        UntrustedSender: a seller id is configured and the payload carries a
            different one. Pings without a seller id are let through.
    """
    email = _text(payload, "email")
    if email is None:
        raise MissingEmail()

    seller_id = _text(payload, "seller_id")
    expected = settings.gumroad_seller_id
    if expected and seller_id and seller_id != expected:
        logger.warning(f"Invalid seller_id: {seller_id}")
        raise UntrustedSender()

    if settings.is_single_product:
        product_key = settings.single_product
    else:
        product_key = _text(payload, "product_permalink") or UNKNOWN_PRODUCT
        if product_key not in registry:
            # Still processed; the registry may lag behind the storefront
            logger.warning(f"Unknown product: {product_key}")

    action = SubscriptionAction.REMOVE if is_termination(payload) else SubscriptionAction.ADD

    return WebhookEvent(
        email=normalize_email(email),
        product_key=product_key,
        action=action,
        seller_id=seller_id,
    )


def apply_event(store: SubscriberStore, event: WebhookEvent) -> SubscriberChange:
    """Apply a parsed ping to the store."""
    if event.action == SubscriptionAction.REMOVE:
        changed = store.remove(event.product_key, event.email)
        logger.info(f"[{event.product_key}] Subscription ended for: {event.email}")
    else:
        changed = store.add(event.product_key, event.email)
        logger.info(f"[{event.product_key}] New subscription: {event.email}")

    return SubscriberChange(
        product=event.product_key,
        email=event.email,
        action=event.action,
        changed=changed,
    )
