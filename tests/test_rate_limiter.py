from fastapi import FastAPI
from fastapi.testclient import TestClient

from urbanesta.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from urbanesta.infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from urbanesta.middleware import RateLimitMiddleware


class FakeTime:
    def __init__(self):
        self.t = 1000.0

    def __call__(self):
        return self.t


def test_memory_rate_limiter_allows_then_blocks():
    rl = InMemoryRateLimiter()
    assert rl.allow("k1", max_requests=2, window_seconds=60) is True
    assert rl.allow("k1", max_requests=2, window_seconds=60) is True
    assert rl.allow("k1", max_requests=2, window_seconds=60) is False
    assert rl.allow("k2", max_requests=2, window_seconds=60) is True


def test_memory_rate_limiter_window_slides():
    clock = FakeTime()
    rl = InMemoryRateLimiter(clock=clock)
    assert rl.allow("k", 1, 60) is True
    assert rl.allow("k", 1, 60) is False
    clock.t += 61
    assert rl.allow("k", 1, 60) is True


class FakePipe:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def incr(self, key, amount):
        self.ops.append(("incr", key, amount))
        return self

    def expire(self, key, seconds, nx=False):
        self.ops.append(("expire", key, seconds, nx))
        return self

    def execute(self):
        results = []
        for op in self.ops:
            if op[0] == "incr":
                self.client.counts[op[1]] = self.client.counts.get(op[1], 0) + op[2]
                results.append(self.client.counts[op[1]])
            else:
                self.client.expires.append(op)
                results.append(True)
        return results


class FakeRedis:
    def __init__(self):
        self.counts = {}
        self.expires = []

    def pipeline(self):
        return FakePipe(self)


def test_redis_rate_limiter_with_fake():
    client = FakeRedis()
    rl = RedisRateLimiter(url="redis://fake", client=client)
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is False
    assert client.counts == {"rl:k1:60": 3}
    assert all(op[3] is True for op in client.expires)


def test_memory_rate_limiter_drops_stale_keys():
    clock = FakeTime()
    rl = InMemoryRateLimiter(clock=clock, sweep_every=3)
    rl.allow("auth:10.0.0.1", 10, 60)
    rl.allow("auth:10.0.0.2", 10, 60)
    assert len(rl) == 2
    clock.t += 61
    rl.allow("auth:10.0.0.3", 10, 60)
    assert len(rl) == 1


class RecordingLimiter:
    def __init__(self):
        self.calls = []

    def allow(self, key, max_requests, window_seconds):
        self.calls.append((key, max_requests, window_seconds))
        return True


def test_global_limit_uses_fifteen_minute_window():
    recorder = RecordingLimiter()
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limiter=recorder)

    @app.get("/ping")
    def ping():
        return {"ok": True}

    assert TestClient(app).get("/ping").status_code == 200
    assert recorder.calls == [("global:testclient", 1000, 900)]
