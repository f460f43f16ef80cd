"""
Persistence for per-product subscriber sets.

Callers depend on the ``SubscriberStorage`` protocol only. Its contract:
- ``load`` never raises for missing or unreadable data; it returns an
  empty list and logs the problem
- ``save`` replaces the whole set in one step, so a concurrent reader sees
  either the old document or the new one, never a partial write
- ``path_for`` raises ``InvalidProductKey`` for keys it cannot store
- ``ensure_data_dir`` prepares the backing location at startup

``JsonFileStorage`` is the only implementation: one JSON document per
product under the data directory.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from subscribers.errors import InvalidProductKey, StorageReadFailure, StorageWriteFailure
from subscribers.models import SubscriberFile, utcnow

logger = logging.getLogger("subscriber_storage")

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]*$")


@runtime_checkable
class SubscriberStorage(Protocol):
    def ensure_data_dir(self) -> None:
        ...

    def path_for(self, product_key: str) -> Path:
        ...

    def load(self, product_key: str) -> list[str]:
        ...

    def save(self, product_key: str, emails: list[str]) -> None:
        ...


class JsonFileStorage:
    """
    Flat-file storage: ``<data_dir>/subscribers_<product>.json``.

    In single-product mode every read and write goes to
    ``<data_dir>/subscribers.json`` and only the configured key is accepted.
    """

    def __init__(self, data_dir: Path, single_product: Optional[str] = None):
        self.data_dir = Path(data_dir)
        self.single_product = single_product

    def ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, product_key: str) -> Path:
        """
        File backing a product's subscriber set.

        Raises:
            InvalidProductKey: the key cannot be used as part of a file name,
                or names another product while in single-product mode.
        """
        if self.single_product is not None:
            if product_key != self.single_product:
                raise InvalidProductKey(f"Unknown product: {product_key}")
            return self.data_dir / "subscribers.json"

        if not product_key or not _SAFE_KEY.match(product_key):
            raise InvalidProductKey(f"Invalid product key: {product_key!r}")
        return self.data_dir / f"subscribers_{product_key}.json"

    def load(self, product_key: str) -> list[str]:
        path = self.path_for(product_key)
        if not path.exists():
            return []
        try:
            document = self._read(path)
        except StorageReadFailure as exc:
            logger.error(f"Error loading subscribers for {product_key}: {exc}")
            return []
        # Collapse duplicates from hand-edited files, keeping first occurrence
        return list(dict.fromkeys(document.emails))

    def save(self, product_key: str, emails: list[str]) -> None:
        path = self.path_for(product_key)
        document = SubscriberFile(
            product=product_key,
            emails=list(emails),
            updated_at=utcnow(),
        )
        payload = document.model_dump_json(by_alias=True, indent=2)
        self._write_atomic(path, payload)

    def _read(self, path: Path) -> SubscriberFile:
        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw)
            return SubscriberFile.model_validate(data)
        except (OSError, ValueError) as exc:
            raise StorageReadFailure(f"{path}: {exc}") from exc

    def _write_atomic(self, path: Path, payload: str) -> None:
        """Write to a temp file in the same directory, then rename over ``path``."""
        tmp_name = None
        try:
            self.ensure_data_dir()
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.data_dir,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            logger.error(f"Error saving subscribers to {path}: {exc}")
            raise StorageWriteFailure(f"Could not write {path.name}") from exc
