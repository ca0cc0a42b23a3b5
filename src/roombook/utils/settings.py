import os
from dataclasses import dataclass
from typing import Optional

from botocore.config import Config

from roombook.utils.constants import DEFAULT_OPERATING_HOURS, DEFAULT_REGION

TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUTHY


@dataclass(frozen=True)
class Settings:
    table_name: Optional[str] = None
    region: str = DEFAULT_REGION
    operating_hours: str = DEFAULT_OPERATING_HOURS
    store_connect_timeout: float = 2.0
    store_read_timeout: float = 5.0
    store_max_attempts: int = 3
    lock_timeout_seconds: float = 10.0
    max_commit_attempts: int = 3
    receipt_include_email: bool = False
    sender_email: str = "bookings@roombook.local"
    notification_workers: int = 2
    notification_flush_seconds: float = 5.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            table_name=os.environ.get("TABLE_NAME"),
            region=os.environ.get("AWS_REGION", DEFAULT_REGION),
            operating_hours=os.environ.get("OPERATING_HOURS", DEFAULT_OPERATING_HOURS),
            store_connect_timeout=float(os.environ.get("STORE_CONNECT_TIMEOUT", "2")),
            store_read_timeout=float(os.environ.get("STORE_READ_TIMEOUT", "5")),
            store_max_attempts=int(os.environ.get("STORE_MAX_ATTEMPTS", "3")),
            lock_timeout_seconds=float(os.environ.get("LOCK_TIMEOUT_SECONDS", "10")),
            max_commit_attempts=int(os.environ.get("MAX_COMMIT_ATTEMPTS", "3")),
            receipt_include_email=_env_bool("RECEIPT_INCLUDE_EMAIL", False),
            sender_email=os.environ.get("SENDER_EMAIL", "bookings@roombook.local"),
            notification_workers=int(os.environ.get("NOTIFICATION_WORKERS", "2")),
            notification_flush_seconds=float(os.environ.get("NOTIFICATION_FLUSH_SECONDS", "5")),
        )

    def boto_config(self) -> Config:
        """Client config that bounds every store call so nothing hangs."""
        return Config(
            region_name=self.region,
            connect_timeout=self.store_connect_timeout,
            read_timeout=self.store_read_timeout,
            retries={"max_attempts": self.store_max_attempts, "mode": "standard"},
        )
