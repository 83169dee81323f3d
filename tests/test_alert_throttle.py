import pytest

from sifsync.infrastructure.throttle.memory_throttle import InMemoryAlertThrottle


class Clock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_memory_throttle_allows_then_blocks_per_user():
    clock = Clock()
    throttle = InMemoryAlertThrottle(clock=clock)
    assert throttle.try_acquire("u1", 2) is True
    assert throttle.try_acquire("u1", 2) is True
    assert throttle.try_acquire("u1", 2) is False
    assert throttle.try_acquire("u2", 2) is True


def test_memory_throttle_window_slides():
    clock = Clock()
    throttle = InMemoryAlertThrottle(clock=clock)
    assert throttle.try_acquire("u1", 1) is True
    clock.now += 1800
    assert throttle.try_acquire("u1", 1) is False
    clock.now += 1801
    assert throttle.try_acquire("u1", 1) is True


def test_zero_limit_never_alerts():
    assert InMemoryAlertThrottle().try_acquire("u1", 0) is False


class FakePipe:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def zremrangebyscore(self, key, low, high):
        self.ops.append(("zrem", key, low, high))
        return self

    def zcard(self, key):
        self.ops.append(("zcard", key))
        return self

    def zadd(self, key, mapping):
        self.ops.append(("zadd", key, mapping))
        return self

    def expire(self, key, seconds):
        self.ops.append(("expire", key, seconds))
        return self

    def execute(self):
        results = []
        for op in self.ops:
            zset = self.client.zsets.setdefault(op[1], {})
            if op[0] == "zrem":
                for member in [m for m, score in zset.items() if op[2] <= score <= op[3]]:
                    del zset[member]
                results.append(True)
            elif op[0] == "zcard":
                results.append(len(zset))
            elif op[0] == "zadd":
                zset.update(op[2])
                results.append(len(op[2]))
            else:
                self.client.ttls[op[1]] = op[2]
                results.append(True)
        return results


class FakeRedis:
    def __init__(self):
        self.zsets = {}
        self.ttls = {}
        self.transactions = []

    def pipeline(self, transaction=True):
        self.transactions.append(transaction)
        return FakePipe(self)

    def zrem(self, key, *members):
        zset = self.zsets.get(key, {})
        return sum(1 for m in members if zset.pop(m, None) is not None)


def test_redis_throttle_with_fake():
    pytest.importorskip("redis")
    from sifsync.infrastructure.throttle.redis_throttle import RedisAlertThrottle

    clock = Clock()
    client = FakeRedis()
    throttle = RedisAlertThrottle(url="redis://fake", client=client, clock=clock)

    assert throttle.try_acquire("u1", 2) is True
    assert throttle.try_acquire("u1", 2) is True
    assert throttle.try_acquire("u1", 2) is False
    assert len(client.zsets["sif:alerts:u1"]) == 2
    assert client.ttls["sif:alerts:u1"] == 3600

    clock.now += 3601
    assert throttle.try_acquire("u1", 2) is True
    assert len(client.zsets["sif:alerts:u1"]) == 1
    assert all(client.transactions)


def test_redis_throttle_counts_slots_claimed_by_other_processes():
    pytest.importorskip("redis")
    from sifsync.infrastructure.throttle.redis_throttle import RedisAlertThrottle

    clock = Clock()
    client = FakeRedis()
    first = RedisAlertThrottle(url="redis://fake", client=client, clock=clock)
    second = RedisAlertThrottle(url="redis://fake", client=client, clock=clock)

    assert first.try_acquire("u1", 2) is True
    assert second.try_acquire("u1", 2) is True
    assert first.try_acquire("u1", 2) is False
    assert second.try_acquire("u1", 2) is False
    assert len(client.zsets["sif:alerts:u1"]) == 2
