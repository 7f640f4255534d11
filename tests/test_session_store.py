import threading

from urbanesta.application.ports.otp_session_store import SessionFields
from urbanesta.infrastructure.sessions.memory_session_store import InMemoryOtpSessionStore
from urbanesta.infrastructure.sessions.redis_session_store import RedisOtpSessionStore


def fields(**overrides):
    base = dict(phone_number="+919876543210", raw_phone="9876543210", display_name="Asha", city="Noida",
                property_id="p1", property_name="Skyline", property_url="/p/skyline", channel="sms")
    base.update(overrides)
    return SessionFields(**base)


def test_create_and_get(sessions, clock):
    sessions.create("s1", fields())
    s = sessions.get("s1")
    assert s.attempts == 0
    assert s.verified is False
    assert s.created_at == clock.now
    assert s.property_name == "Skyline"


def test_create_overwrites_existing_id(sessions):
    sessions.create("s1", fields())
    sessions.increment_attempts("s1")
    sessions.create("s1", fields(display_name="Ravi"))
    s = sessions.get("s1")
    assert s.attempts == 0
    assert s.display_name == "Ravi"


def test_increment_and_delete(sessions):
    sessions.create("s1", fields())
    assert sessions.increment_attempts("s1") == 1
    assert sessions.increment_attempts("s1") == 2
    assert sessions.delete("s1") is True
    assert sessions.delete("s1") is False
    assert sessions.increment_attempts("s1") == 0


def test_mark_verified_only_once(sessions):
    sessions.create("s1", fields())
    assert sessions.mark_verified("s1") is True
    assert sessions.mark_verified("s1") is False
    assert sessions.mark_verified("missing") is False


def test_create_sweeps_expired_sessions(sessions, clock):
    sessions.create("old", fields())
    clock.advance(minutes=9)
    sessions.create("mid", fields())
    clock.advance(minutes=1)
    sessions.create("new", fields())
    assert sessions.get("old") is None
    assert sessions.get("mid") is not None
    assert sessions.get("new") is not None


def test_get_returns_a_copy(sessions):
    sessions.create("s1", fields())
    s = sessions.get("s1")
    s.attempts = 99
    assert sessions.get("s1").attempts == 0


def test_concurrent_increments_are_not_lost(clock):
    store = InMemoryOtpSessionStore(clock=clock)
    store.create("s1", fields())

    def bump():
        for _ in range(500):
            store.increment_attempts("s1")

    threads = [threading.Thread(target=bump) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert store.get("s1").attempts == 2000


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def delete(self, key):
        self.ops.append(lambda: self.client.delete(key))
        return self

    def hset(self, key, mapping):
        self.ops.append(lambda: self.client.hset(key, mapping=mapping))
        return self

    def expire(self, key, seconds):
        self.ops.append(lambda: self.client.expire(key, seconds))
        return self

    def execute(self):
        return [op() for op in self.ops]


class FakeRedis:
    def __init__(self):
        self.hashes = {}
        self.ttls = {}

    def pipeline(self):
        return FakePipeline(self)

    def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.hashes.pop(key, None) is not None else 0

    def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in mapping.items()})

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def register_script(self, script):
        def run(keys=None, args=None):
            # runs atomically, like EVALSHA on the server
            key = keys[0]
            if key not in self.hashes:
                return 0
            h = self.hashes[key]
            if "HINCRBY" in script:
                h["attempts"] = str(int(h.get("attempts", 0)) + 1)
                return int(h["attempts"])
            if "verified_at" in h:
                return 0
            h["verified_at"] = args[0]
            return 1
        return run


class DeleteBeforeScriptRedis(FakeRedis):
    """Lets a concurrent delete land between the caller's read and its write."""

    def register_script(self, script):
        run = super().register_script(script)

        def racing(keys=None, args=None):
            self.delete(keys[0])
            return run(keys=keys, args=args)
        return racing


def test_redis_store_round_trips_session_with_ttl(clock):
    client = FakeRedis()
    store = RedisOtpSessionStore("redis://fake", ttl_minutes=10, client=client, clock=clock)
    store.create("s1", fields())
    assert client.ttls["otp:session:s1"] == 600

    s = store.get("s1")
    assert s.phone_number == "+919876543210"
    assert s.property_url == "/p/skyline"
    assert s.created_at == clock.now
    assert s.attempts == 0
    assert s.verified is False


def test_redis_store_attempts_and_verified_claim(clock):
    store = RedisOtpSessionStore("redis://fake", client=FakeRedis(), clock=clock)
    store.create("s1", fields())
    assert store.increment_attempts("s1") == 1
    assert store.get("s1").attempts == 1
    assert store.mark_verified("s1") is True
    assert store.mark_verified("s1") is False
    assert store.get("s1").verified is True
    assert store.delete("s1") is True
    assert store.get("s1") is None
    assert store.increment_attempts("s1") == 0
    assert store.mark_verified("s1") is False


def test_redis_claim_after_concurrent_delete_does_not_recreate_session(clock):
    client = DeleteBeforeScriptRedis()
    store = RedisOtpSessionStore("redis://fake", client=client, clock=clock)
    store.create("s1", fields())

    assert store.mark_verified("s1") is False
    assert "otp:session:s1" not in client.hashes
    assert store.get("s1") is None


def test_redis_increment_after_concurrent_delete_does_not_recreate_session(clock):
    client = DeleteBeforeScriptRedis()
    store = RedisOtpSessionStore("redis://fake", client=client, clock=clock)
    store.create("s1", fields())

    assert store.increment_attempts("s1") == 0
    assert "otp:session:s1" not in client.hashes
    assert store.get("s1") is None


def test_redis_store_ignores_partial_hash(clock):
    client = FakeRedis()
    client.hashes["otp:session:s1"] = {"verified_at": clock.now.isoformat()}
    store = RedisOtpSessionStore("redis://fake", client=client, clock=clock)
    assert store.get("s1") is None
