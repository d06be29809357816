from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import asdict
from pathlib import Path
from typing import Callable, Optional

from .models import PortalCookie, PortalSession


logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 600


class SessionStore:
    """
    File-backed cache of the last authenticated portal session.

    The portal allows one active session per account, so reusing a recent session avoids
    logging in (and kicking ourselves out) on back-to-back runs. Every failure here is non-fatal:
    the worst case is a fresh login.

    There is no cross-process locking. Two overlapping runs can race on the file and the
    last writer wins.
    """

    def __init__(
        self,
        path: str,
        *,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(path).expanduser()
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def load(self) -> Optional[PortalSession]:
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            session = PortalSession(
                cookies=tuple(PortalCookie(**c) for c in data["cookies"]),
                created_at=float(data["created_at"]),
            )
        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.warning("Saved portal session is unreadable; discarding it. (%s)", e)
            self.invalidate()
            return None

        age = session.age(self._clock())
        if age < self.ttl_seconds:
            logger.debug("Using cached session (age: %.0fs)", age)
            return session

        logger.debug("Cached session too old (%.0fs); will re-login", age)
        return None

    def save(self, session: PortalSession) -> None:
        payload = {
            "created_at": session.created_at,
            "cookies": [asdict(c) for c in session.cookies],
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # created owner-only; the file holds live session cookies
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(payload, indent=2))
            tmp.replace(self.path)
        except OSError:
            logger.warning("Failed to persist portal session to %s; next run will log in again.", self.path, exc_info=True)

    def invalidate(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        except OSError:
            logger.debug("Failed to delete session file=%s", self.path, exc_info=True)

    def new_session(self, cookies: tuple[PortalCookie, ...]) -> PortalSession:
        return PortalSession(cookies=cookies, created_at=self._clock())
