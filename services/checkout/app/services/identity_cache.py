"""Guest identity cache.

Guests type their name, phone and email once; the values are cached locally so
a returning guest does not have to retype them. Only written when at least one
field is non-empty.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

import structlog

from services.checkout.app.models.checkout import GuestIdentity

logger = structlog.get_logger(__name__)

CACHE_KEY = "guest_checkout_info"


class GuestIdentityCache(Protocol):
    def save(self, identity: GuestIdentity) -> None: ...

    def load(self) -> GuestIdentity | None: ...


class InMemoryIdentityCache:
    def __init__(self) -> None:
        self._identity: GuestIdentity | None = None

    def save(self, identity: GuestIdentity) -> None:
        self._identity = identity.model_copy()

    def load(self) -> GuestIdentity | None:
        return self._identity.model_copy() if self._identity is not None else None


class JsonFileIdentityCache:
    """Stores the identity under CACHE_KEY in a small JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @classmethod
    def for_device(cls, cache_dir: Path, device_id: str) -> "JsonFileIdentityCache":
        safe_id = "".join(ch for ch in device_id if ch.isalnum() or ch in "-_") or "default"
        return cls(cache_dir / f"{safe_id}.json")

    def save(self, identity: GuestIdentity) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({CACHE_KEY: identity.model_dump()}), encoding="utf-8")

    def load(self) -> GuestIdentity | None:
        if not self._path.exists():
            return None
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable guest identity cache", path=str(self._path), error=str(e))
            return None

        data = raw.get(CACHE_KEY) if isinstance(raw, dict) else None
        if not isinstance(data, dict):
            return None
        return GuestIdentity.model_validate(data)
