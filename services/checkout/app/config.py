from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo


def parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True, slots=True)
class CheckoutSettings:
    """Runtime settings for the checkout service.

    Env vars:
    - SAMEDAY_BACKEND (default: mock). mock or sql.
    - SAMEDAY_TIMEZONE (default: America/New_York)
    - SAMEDAY_GUEST_CACHE_DIR (default: .local/guest_identity)
    - SAMEDAY_LOG_LEVEL (default: INFO)
    - SAMEDAY_LOG_JSON (default: false)
    - SAMEDAY_SESSION_TTL_SECONDS (default: 7200). Idle checkouts are dropped after this.
    """

    backend: str
    timezone: str
    guest_cache_dir: Path
    log_level: str
    log_json: bool
    session_ttl_seconds: float

    @classmethod
    def from_env(cls) -> "CheckoutSettings":
        backend = os.getenv("SAMEDAY_BACKEND", "mock").strip().lower()
        timezone = os.getenv("SAMEDAY_TIMEZONE", "America/New_York").strip()
        guest_cache_dir = Path(
            os.getenv("SAMEDAY_GUEST_CACHE_DIR", ".local/guest_identity")
        ).expanduser()
        log_level = os.getenv("SAMEDAY_LOG_LEVEL", "INFO").strip().upper()
        log_json = parse_bool(os.getenv("SAMEDAY_LOG_JSON", "false"))
        session_ttl_seconds = float(os.getenv("SAMEDAY_SESSION_TTL_SECONDS", "7200"))

        return cls(
            backend=backend,
            timezone=timezone,
            guest_cache_dir=guest_cache_dir,
            log_level=log_level,
            log_json=log_json,
            session_ttl_seconds=session_ttl_seconds,
        )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
