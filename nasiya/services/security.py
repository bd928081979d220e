"""Edit throttling and audit logging."""

import logging
import math
import time
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime
from threading import Lock
from typing import Any

from nasiya.exceptions import RateLimitedError
from nasiya.models import AuditLogEntry
from nasiya.store import InstallmentStore

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window in-memory rate limiter keyed by actor."""

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()

    def check(self, key: str) -> None:
        """Count one request for ``key``.

        Raises
        ------
        RateLimitedError
            If ``key`` already used its allowance within the window.
        """
        now = self.clock()
        window_start = now - self.window_seconds

        with self._lock:
            timestamps = self._windows[key]
            timestamps[:] = [t for t in timestamps if t > window_start]
            if len(timestamps) >= self.max_requests:
                retry_after = math.ceil(timestamps[0] + self.window_seconds - now)
                logger.warning("Rate limit hit for %s (%d in %.0fs)", key, len(timestamps), self.window_seconds)
                raise RateLimitedError(
                    f"Too many requests, retry in {retry_after}s",
                    retry_after=max(retry_after, 1),
                )
            timestamps.append(now)

    def get_remaining(self, key: str) -> int:
        window_start = self.clock() - self.window_seconds
        with self._lock:
            active = sum(1 for t in self._windows.get(key, []) if t > window_start)
        return max(0, self.max_requests - active)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)


class AuditLogger:
    """Writes audit entries without ever failing the audited operation."""

    def __init__(self, store: InstallmentStore) -> None:
        self.store = store

    def record(
        self,
        action: str,
        resource_type: str,
        resource_id: str,
        user_id: str,
        success: bool,
        changes: list[dict[str, Any]] | None = None,
        error_message: str | None = None,
    ) -> AuditLogEntry | None:
        try:
            employee = self.store.employees.get(user_id)
            entry = AuditLogEntry(
                timestamp=datetime.now(),
                user_id=user_id,
                user_name=employee.full_name if employee else user_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                success=success,
                changes=changes or [],
                error_message=error_message,
            )
            self.store.add_audit_entry(entry)
        except Exception:
            logger.exception("Failed to write audit entry for %s %s", resource_type, resource_id)
            return None
        return entry
