# Overview: Local fallback copy of the signed-in user, with an expiry.

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 8 * 60 * 60


class AuthCache:
    """
    JSON file holding {"user": {...}, "expires_at": <epoch seconds>}.

    Only a fallback for rendering before the server answers; the server's
    view always wins (see AppContext.restore).
    """

    def __init__(self, path, *, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def save(self, user: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"user": user, "expires_at": self.clock() + self.ttl_seconds}))

    def load(self) -> Optional[dict]:
        """The cached user, or None when missing, unreadable or expired (expired entries are removed)."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError):
            logger.warning("Discarding unreadable auth cache at %s", self.path)
            self.clear()
            return None
        if not isinstance(data, dict) or data.get("expires_at", 0) <= self.clock():
            self.clear()
            return None
        return data.get("user")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
