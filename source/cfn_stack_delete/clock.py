# ABOUTME: Clock abstraction used by every polling and retry loop
# ABOUTME: Lets tests drive time deterministically instead of sleeping

"""Wall-clock access for polling loops."""

import time
from datetime import datetime, timezone


class SystemClock:
    """Monotonic clock backed by the time module."""

    def now(self) -> float:
        """Seconds from an arbitrary fixed point; only differences are meaningful."""
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def wall_time(self) -> datetime:
        return datetime.now(timezone.utc)
