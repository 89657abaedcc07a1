from typing import Any

import fakeredis
import pytest
import redis

from termindex.config import RedisConfig
from termindex.exceptions import MalformedRecord, StoreUnavailable
from termindex.storage import redis_store
from termindex.storage.redis_store import RedisStore, client_scope, make_client


def test_basic_operations(store: RedisStore) -> None:
    assert store.exists("URLSet:java") is False

    store.set_add("URLSet:java", "https://a")
    store.set_add("URLSet:java", "https://b")

    assert store.exists("URLSet:java") is True
    assert store.set_members("URLSet:java") == {"https://a", "https://b"}
    assert store.set_members("URLSet:missing") == set()
    assert store.hash_get("TermCounter:https://a", "java") is None
    assert store.hash_get_all("TermCounter:https://a") == {}


def test_responses_decoded_without_decode_responses() -> None:
    client = fakeredis.FakeRedis()
    client.flushall()
    store = RedisStore(client)
    client.sadd("URLSet:java", "https://a")
    client.hset("TermCounter:https://a", "java", "3")

    assert store.set_members("URLSet:java") == {"https://a"}
    assert store.hash_get("TermCounter:https://a", "java") == "3"
    assert store.hash_get_all("TermCounter:https://a") == {"java": "3"}
    assert store.keys_matching("URLSet:") == {"URLSet:java"}
    client.flushall()


def test_keys_matching_by_prefix(store: RedisStore, redis_client: redis.Redis) -> None:
    redis_client.sadd("URLSet:a", "u")
    redis_client.sadd("URLSet:b", "u")
    redis_client.hset("TermCounter:u", "a", "1")

    assert store.keys_matching("URLSet:") == {"URLSet:a", "URLSet:b"}
    assert store.keys_matching("TermCounter:") == {"TermCounter:u"}
    assert store.keys_matching("") == {"URLSet:a", "URLSet:b", "TermCounter:u"}


def test_escape_glob() -> None:
    assert redis_store._escape_glob("URLSet:") == "URLSet:"
    assert redis_store._escape_glob("a*b?[c]") == "a\\*b\\?\\[c\\]"


def test_transaction_applies_all_queued_writes(store: RedisStore, redis_client: redis.Redis) -> None:
    redis_client.hset("TermCounter:u", "old", "9")

    with store.transaction() as trans:
        trans.delete("TermCounter:u")
        trans.set_add("URLSet:new", "u")
        trans.hash_set("TermCounter:u", "new", "1")
        assert trans.queued == 3

    assert redis_client.hgetall("TermCounter:u") == {"new": "1"}
    assert redis_client.smembers("URLSet:new") == {"u"}


def test_transaction_discarded_when_block_raises(
    store: RedisStore, redis_client: redis.Redis
) -> None:
    with pytest.raises(RuntimeError):
        with store.transaction() as trans:
            trans.set_add("URLSet:new", "u")
            raise RuntimeError("abort")

    assert redis_client.exists("URLSet:new") == 0


@pytest.mark.usefixtures("failing_transactions")
def test_transaction_failure_translated(store: RedisStore, redis_client: redis.Redis) -> None:
    trans = store.transaction()
    trans.set_add("URLSet:new", "u")

    with pytest.raises(StoreUnavailable) as excinfo:
        trans.execute()

    assert isinstance(excinfo.value.__cause__, redis.ConnectionError)
    assert trans.queued == 0
    assert redis_client.exists("URLSet:new") == 0


@pytest.mark.parametrize(
    "method,args",
    [
        ("exists", ("k",)),
        ("set_add", ("k", "m")),
        ("set_members", ("k",)),
        ("hash_get", ("k", "f")),
        ("hash_get_all", ("k",)),
        ("keys_matching", ("URLSet:",)),
    ],
)
def test_connection_errors_become_store_unavailable(method: str, args: Any) -> None:
    class DownClient:
        def __getattr__(self, name: str) -> Any:
            def fail(*a: Any, **kw: Any) -> Any:
                raise redis.ConnectionError("Error 111 connecting to localhost:6379")

            return fail

    store = RedisStore(DownClient())  # type: ignore[arg-type]
    with pytest.raises(StoreUnavailable):
        getattr(store, method)(*args)


def test_make_client_rejects_non_redis_url() -> None:
    with pytest.raises(ValueError):
        make_client(RedisConfig(url="http://localhost:6379"))


def test_make_client_uses_config() -> None:
    client = make_client(RedisConfig(url="redis://cache.internal:6380/3", socket_timeout=1.5))
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "cache.internal"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 3
    assert kwargs["socket_timeout"] == 1.5
    assert kwargs["decode_responses"] is True
    client.close()


def test_client_scope_closes_client(monkeypatch: pytest.MonkeyPatch) -> None:
    closed = []

    class FakeClient:
        def close(self) -> None:
            closed.append(True)

    monkeypatch.setattr(redis_store, "make_client", lambda config: FakeClient())

    with pytest.raises(RuntimeError):
        with client_scope(RedisConfig()) as client:
            assert isinstance(client, FakeClient)
            raise RuntimeError("boom")

    assert closed == [True]


def test_foreign_hash_value_rejected_before_multi(
    store: RedisStore, redis_client: redis.Redis
) -> None:
    redis_client.set("TermCounter:u", "foreign")

    trans = store.transaction()
    trans.set_add("URLSet:java", "u")
    trans.hash_set("TermCounter:u", "java", "1")
    with pytest.raises(MalformedRecord) as excinfo:
        trans.execute()

    assert excinfo.value.key == "TermCounter:u"
    assert trans.queued == 0
    assert redis_client.exists("URLSet:java") == 0
    assert redis_client.get("TermCounter:u") == "foreign"


def test_key_deleted_earlier_in_batch_is_not_type_checked(
    store: RedisStore, redis_client: redis.Redis
) -> None:
    redis_client.set("TermCounter:u", "foreign")

    with store.transaction() as trans:
        trans.delete("TermCounter:u")
        trans.hash_set("TermCounter:u", "java", "1")

    assert redis_client.hgetall("TermCounter:u") == {"java": "1"}


def test_empty_transaction_sends_nothing(store: RedisStore, monkeypatch: pytest.MonkeyPatch) -> None:
    def pipeline(*args: Any, **kwargs: Any) -> Any:
        raise AssertionError("no pipeline expected")

    monkeypatch.setattr(store.client, "pipeline", pipeline)
    store.transaction().execute()
