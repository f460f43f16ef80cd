"""
Tests for the admin/query surface.

These tests verify verify/list/health results and the admin credential
checks that guard listing and manual changes.
"""

import pytest

from subscribers.admin import SubscriberAdmin
from subscribers.config import Settings
from subscribers.errors import InvalidProductKey, MissingParameter, Unauthorized
from subscribers.models import SubscriptionStatus
from subscribers.registry import build_registry
from subscribers.storage import JsonFileStorage
from subscribers.store import SubscriberStore

# Same key the settings fixture configures
ADMIN_KEY = "test-admin-key"


class TestAuthorize:
    """Tests for the admin credential check."""

    def test_matching_credential(self, admin: SubscriberAdmin):
        admin.authorize(ADMIN_KEY)

    def test_wrong_credential(self, admin: SubscriberAdmin):
        with pytest.raises(Unauthorized):
            admin.authorize("wrong")

    def test_missing_credential(self, admin: SubscriberAdmin):
        with pytest.raises(Unauthorized):
            admin.authorize(None)

    def test_no_secret_configured_refuses_everyone(self, data_dir):
        """Without ADMIN_KEY the admin surface is closed, credential or not."""
        settings = Settings(_env_file=None, data_dir=data_dir)
        admin = SubscriberAdmin(settings, build_registry(settings), SubscriberStore(JsonFileStorage(data_dir)))

        with pytest.raises(Unauthorized):
            admin.authorize(None)
        with pytest.raises(Unauthorized):
            admin.authorize("anything")


class TestVerify:
    """Tests for subscription lookups."""

    def test_scoped_subscribed(self, admin: SubscriberAdmin, store: SubscriberStore, automation_product):
        store.add(automation_product, "a@b.com")

        result = admin.verify("A@B.com", automation_product)

        assert result.subscribed is True
        assert result.status == SubscriptionStatus.ACTIVE.value
        assert result.product == automation_product
        assert result.email == "a@b.com"

    def test_scoped_only_checks_that_product(self, admin: SubscriberAdmin, store: SubscriberStore,
                                             automation_product, screenshot_product):
        store.add(screenshot_product, "a@b.com")

        result = admin.verify("a@b.com", automation_product)

        assert result.subscribed is False
        assert result.status == "none"

    def test_unscoped_first_match_in_registry_order(self, admin: SubscriberAdmin, store: SubscriberStore,
                                                    automation_product, screenshot_product):
        """With subscriptions to both, the first registered product is reported."""
        store.add(automation_product, "a@b.com")
        store.add(screenshot_product, "a@b.com")

        result = admin.verify("a@b.com")

        assert result.subscribed is True
        assert result.product == screenshot_product

    def test_unscoped_ignores_unregistered_products(self, admin: SubscriberAdmin, store: SubscriberStore):
        store.add("nonexistent", "a@b.com")

        result = admin.verify("a@b.com")

        assert result.subscribed is False
        assert result.product is None


class TestListAndHealth:
    """Tests for listing and health snapshots."""

    def test_list_all(self, admin: SubscriberAdmin, store: SubscriberStore, automation_product):
        store.add(automation_product, "a@b.com")

        listing = admin.list_all(ADMIN_KEY)

        assert listing == {"store-screenshot-mcp": [], "cemyz": ["a@b.com"]}

    def test_list_all_requires_credential(self, admin: SubscriberAdmin):
        with pytest.raises(Unauthorized):
            admin.list_all(None)

    def test_health_counts(self, admin: SubscriberAdmin, store: SubscriberStore, automation_product):
        store.add(automation_product, "a@b.com")
        store.add(automation_product, "c@d.com")

        report = admin.health()

        assert report.status == "ok"
        assert report.subscribers == {"store-screenshot-mcp": 0, "cemyz": 2}
        assert set(report.products) == {"store-screenshot-mcp", "cemyz"}


class TestManualChanges:
    """Tests for admin add/remove."""

    def test_manual_add_and_remove(self, admin: SubscriberAdmin, store: SubscriberStore, automation_product):
        added = admin.manual_add(ADMIN_KEY, " A@B.com", automation_product)
        assert added.changed is True
        assert added.email == "a@b.com"
        assert store.contains(automation_product, "a@b.com")

        removed = admin.manual_remove(ADMIN_KEY, "a@b.com", automation_product)
        assert removed.changed is True
        assert not store.contains(automation_product, "a@b.com")

    def test_manual_add_existing(self, admin: SubscriberAdmin, automation_product):
        admin.manual_add(ADMIN_KEY, "a@b.com", automation_product)
        assert admin.manual_add(ADMIN_KEY, "a@b.com", automation_product).changed is False

    @pytest.mark.parametrize("email,product", [(None, "cemyz"), ("a@b.com", None), ("", ""), ("  ", "cemyz")])
    def test_missing_parameters(self, admin: SubscriberAdmin, email, product):
        with pytest.raises(MissingParameter):
            admin.manual_add(ADMIN_KEY, email, product)

    def test_credential_checked_first(self, admin: SubscriberAdmin):
        with pytest.raises(Unauthorized):
            admin.manual_remove("wrong", None, None)

    def test_single_product_defaults_product(self, data_dir):
        settings = Settings(_env_file=None, data_dir=data_dir, admin_key=ADMIN_KEY, single_product="cemyz")
        store = SubscriberStore(JsonFileStorage(data_dir, single_product="cemyz"))
        admin = SubscriberAdmin(settings, build_registry(settings), store)

        change = admin.manual_add(ADMIN_KEY, "a@b.com", None)

        assert change.product == "cemyz"
        assert (data_dir / "subscribers.json").exists()
        with pytest.raises(InvalidProductKey):
            admin.manual_add(ADMIN_KEY, "a@b.com", "other")


class TestVerifyUnstorableKeys:
    """Tests for verify on product keys the storage refuses."""

    @pytest.mark.parametrize("key", [".x", "a b"])
    def test_scoped_verify_reports_not_subscribed(self, admin: SubscriberAdmin, key):
        result = admin.verify("a@b.com", key)

        assert result.subscribed is False
        assert result.status == "none"
        assert result.product == key
