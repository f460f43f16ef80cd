"""
Query and administrative operations over the subscriber store.

Reads go straight to the store. Listing and manual add/remove are guarded
by the admin credential; manual changes bypass webhook interpretation
entirely.
"""

import hmac
import logging
from typing import Optional

from subscribers.config import Settings
from subscribers.errors import InvalidProductKey, MissingParameter, Unauthorized
from subscribers.models import (
    HealthReport,
    SubscriberChange,
    SubscriptionAction,
    SubscriptionStatus,
    VerifyResult,
)
from subscribers.registry import ProductRegistry
from subscribers.store import SubscriberStore, normalize_email

logger = logging.getLogger("subscriber_admin")

SERVICE_NAME = "unified-gumroad-webhook"


class SubscriberAdmin:
    """
    Admin/query surface used by the HTTP layer and the CLI.

    Example usage:
        admin = SubscriberAdmin(settings, registry, store)
        admin.verify("alice@example.com", product_key="cemyz")
        admin.list_all(credential="s3cret")
    """

    def __init__(self, settings: Settings, registry: ProductRegistry, store: SubscriberStore):
        self.settings = settings
        self.registry = registry
        self.store = store

    # =========================================================================
    # Authorization
    # =========================================================================

    def authorize(self, credential: Optional[str]) -> None:
        """
        Check a caller-supplied admin credential.

        The check is equality against ADMIN_KEY with one deliberate
        departure: with no admin key configured the admin surface is
        closed, so an omitted credential does not match an unset secret.
        """
        secret = self.settings.admin_key
        if secret is None or credential is None:
            raise Unauthorized()
        if not hmac.compare_digest(credential.encode(), secret.get_secret_value().encode()):
            raise Unauthorized()

    # =========================================================================
    # Queries
    # =========================================================================

    def verify(self, email: str, product_key: Optional[str] = None) -> VerifyResult:
        """
        Is ``email`` subscribed?

        With a product, only that product's set is checked. Without one, the
        registered products are checked in registry order and the first
        match is reported.
        """
        normalized = normalize_email(email)

        if product_key is not None:
            try:
                subscribed = self.store.contains(product_key, normalized)
            except InvalidProductKey:
                # No set can exist under a key the storage refuses
                subscribed = False
            logger.info(
                f"[{product_key}] Verify: {normalized} -> "
                f"{'subscribed' if subscribed else 'not found'}"
            )
            return VerifyResult(
                email=normalized,
                subscribed=subscribed,
                status=SubscriptionStatus.ACTIVE if subscribed else SubscriptionStatus.NONE,
                product=product_key,
            )

        for product in self.registry:
            if self.store.contains(product.key, normalized):
                logger.info(f"[legacy] Verify: {normalized} -> subscribed ({product.key})")
                return VerifyResult(
                    email=normalized,
                    subscribed=True,
                    status=SubscriptionStatus.ACTIVE,
                    product=product.key,
                )

        logger.info(f"[legacy] Verify: {normalized} -> not found")
        return VerifyResult(email=normalized, subscribed=False, status=SubscriptionStatus.NONE)

    def health(self) -> HealthReport:
        return HealthReport(
            service=SERVICE_NAME,
            products=self.registry.as_dict(),
            subscribers={p.key: self.store.count(p.key) for p in self.registry},
        )

    # =========================================================================
    # Admin Operations
    # =========================================================================

    def list_all(self, credential: Optional[str]) -> dict[str, list[str]]:
        """Subscribers of every registered product, as stored on disk."""
        self.authorize(credential)
        return {p.key: self.store.load(p.key) for p in self.registry}

    def manual_add(
        self,
        credential: Optional[str],
        email: Optional[str],
        product_key: Optional[str],
    ) -> SubscriberChange:
        self.authorize(credential)
        email, product_key = self._require(email, product_key)
        added = self.store.add(product_key, email)
        return SubscriberChange(
            product=product_key,
            email=email,
            action=SubscriptionAction.ADD,
            changed=added,
        )

    def manual_remove(
        self,
        credential: Optional[str],
        email: Optional[str],
        product_key: Optional[str],
    ) -> SubscriberChange:
        self.authorize(credential)
        email, product_key = self._require(email, product_key)
        removed = self.store.remove(product_key, email)
        return SubscriberChange(
            product=product_key,
            email=email,
            action=SubscriptionAction.REMOVE,
            changed=removed,
        )

    def _require(self, email: Optional[str], product_key: Optional[str]) -> tuple[str, str]:
        """
        Validate the parameters of a manual change.

        In single-product mode the product defaults to the configured one.
        """
        email = str(email).strip() if email is not None else ""
        product_key = str(product_key).strip() if product_key is not None else ""

        if self.settings.is_single_product:
            if not product_key:
                product_key = self.settings.single_product
            elif product_key != self.settings.single_product:
                raise InvalidProductKey(f"Unknown product: {product_key}")

        if not email or not product_key:
            raise MissingParameter()
        return normalize_email(email), product_key
