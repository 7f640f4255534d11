from typing import Protocol


class RateLimiter(Protocol):
    """Counts hits per key; keys look like ``auth:<ip>`` or ``global:<ip>``."""

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Record one hit for ``key`` and say whether it is still within budget."""
        ...
