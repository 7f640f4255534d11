try:
    import redis
except Exception:  # pragma: no cover
    redis = None

from ...application.ports.rate_limiter import RateLimiter


class RedisRateLimiter(RateLimiter):
    """Fixed-window limiter shared by every instance pointing at the same redis."""

    def __init__(self, url: str, prefix: str = "rl:", client=None) -> None:
        if client is None:
            if redis is None:
                raise RuntimeError("redis package is not installed")
            client = redis.Redis.from_url(url)
        self.client = client
        self.prefix = prefix

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        rk = f"{self.prefix}{key}:{window_seconds}"
        pipe = self.client.pipeline()
        pipe.incr(rk, 1)
        # only the first hit in a window starts the expiry clock
        pipe.expire(rk, window_seconds, nx=True)
        count, _ = pipe.execute()
        return int(count) <= int(max_requests)
