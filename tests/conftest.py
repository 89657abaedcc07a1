from typing import Iterator

import fakeredis
import pytest
import redis

from termindex.index import Index
from termindex.storage.redis_store import RedisStore


@pytest.fixture
def redis_client() -> Iterator[redis.Redis]:
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    yield client
    client.flushall()
    client.close()


@pytest.fixture
def store(redis_client: redis.Redis) -> RedisStore:
    return RedisStore(redis_client)


@pytest.fixture
def index(store: RedisStore) -> Index:
    return Index(store)


@pytest.fixture
def failing_transactions(redis_client: redis.Redis, monkeypatch: pytest.MonkeyPatch) -> None:
    """Make every MULTI/EXEC block fail as if the connection dropped."""
    real_pipeline = redis_client.pipeline

    def pipeline(transaction: bool = True, shard_hint=None):  # type: ignore[no-untyped-def]
        pipe = real_pipeline(transaction=transaction, shard_hint=shard_hint)

        def execute(raise_on_error: bool = True):  # type: ignore[no-untyped-def]
            raise redis.ConnectionError("connection lost")

        pipe.execute = execute  # type: ignore[method-assign]
        return pipe

    monkeypatch.setattr(redis_client, "pipeline", pipeline)
