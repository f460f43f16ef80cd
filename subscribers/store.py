"""
Subscriber sets with add/remove semantics on top of a SubscriberStorage.

No in-memory cache is kept: every call reads the backing storage, and every
mutation rewrites the whole set. Read-modify-write cycles for the same
product are serialized with a per-product lock, so concurrent requests
(FastAPI runs sync work on a thread pool) cannot lose updates.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from subscribers.storage import SubscriberStorage

logger = logging.getLogger("subscriber_store")


def normalize_email(email: str) -> str:
    """Canonical form used for storage and comparison."""
    return email.strip().lower()


class SubscriberStore:
    """
    Per-product subscriber sets.

    Example usage:
        store = SubscriberStore(JsonFileStorage(Path("./data")))
        store.add("cemyz", "Alice@Example.com ")   # True
        store.add("cemyz", "alice@example.com")    # False, already present
        store.contains("cemyz", "ALICE@example.com")  # True
    """

    def __init__(self, storage: SubscriberStorage):
        self.storage = storage
        # product key -> [lock, number of callers holding or waiting on it]
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _locked(self, product_key: str) -> Iterator[None]:
        """Hold the product's lock; the entry is dropped once nobody uses it."""
        with self._locks_guard:
            entry = self._locks.setdefault(product_key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[product_key]

    def load(self, product_key: str) -> list[str]:
        """Current subscribers for a product, in insertion order."""
        return list(dict.fromkeys(normalize_email(e) for e in self.storage.load(product_key)))

    def save(self, product_key: str, emails: list[str]) -> None:
        normalized = list(dict.fromkeys(normalize_email(e) for e in emails))
        with self._locked(product_key):
            self.storage.save(product_key, normalized)

    def add(self, product_key: str, email: str) -> bool:
        """
        Add an email to a product's set.

        Returns False (and writes nothing) when the email is already present.
        """
        normalized = normalize_email(email)
        with self._locked(product_key):
            emails = self.load(product_key)
            if normalized in emails:
                logger.info(f"[{product_key}] Already subscribed: {normalized}")
                return False
            emails.append(normalized)
            self.storage.save(product_key, emails)
        logger.info(f"[{product_key}] Added subscriber: {normalized}")
        return True

    def remove(self, product_key: str, email: str) -> bool:
        """
        Remove an email from a product's set.

        Returns False (and writes nothing) when the email was not present.
        """
        normalized = normalize_email(email)
        with self._locked(product_key):
            emails = self.load(product_key)
            if normalized not in emails:
                logger.info(f"[{product_key}] Not subscribed: {normalized}")
                return False
            emails.remove(normalized)
            self.storage.save(product_key, emails)
        logger.info(f"[{product_key}] Removed subscriber: {normalized}")
        return True

    def contains(self, product_key: str, email: str) -> bool:
        return normalize_email(email) in self.load(product_key)

    def count(self, product_key: str) -> int:
        return len(self.load(product_key))
