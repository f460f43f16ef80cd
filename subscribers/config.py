"""
Runtime configuration, read once from the environment (or a ``.env`` file).

The settings object is frozen and passed explicitly to every component;
nothing else in the service reads ``os.environ``.
"""

from pathlib import Path
from typing import Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Directory holding one subscribers_<product>.json file per product
    data_dir: Path = Path("./data")
    port: int = 3000

    # Expected Gumroad seller id; pings from other sellers are rejected
    gumroad_seller_id: Optional[str] = None

    # Shared secret for the /subscribers admin endpoints (X-Admin-Key header)
    admin_key: Optional[SecretStr] = None

    # When set, every ping is recorded against this product and stored in
    # a single subscribers.json file
    single_product: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    @field_validator("gumroad_seller_id", "admin_key", "single_product", mode="before")
    @classmethod
    def blank_as_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_single_product(self) -> bool:
        return self.single_product is not None


def get_settings() -> Settings:
    """Build settings from the current process environment."""
    return Settings()
