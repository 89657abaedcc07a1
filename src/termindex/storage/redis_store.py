"""Redis backend for the index store.

Provides a client factory, a scoped-connection context manager, and the
`RedisStore` adapter that maps the `KeyValueStore` contract onto redis-py.

Write batches use ``MULTI``/``EXEC`` (``pipeline(transaction=True)``). Redis
runs an ``EXEC`` block serially with no command from another client in
between, so two batches touching the same keys never interleave: the later
one is applied in full after the earlier one. Redis does not roll back a
block whose individual commands fail at run time (e.g. ``WRONGTYPE``), so key
types are checked under ``WATCH`` before ``MULTI`` and a batch that would hit a
foreign value is never sent.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

import redis

from termindex.config import RedisConfig
from termindex.exceptions import MalformedRecord, StoreUnavailable

from .base_store import KeyValueStore, Transaction

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = set("*?[]\\")


def make_client(config: RedisConfig) -> redis.Redis:
    """Create a Redis client from configuration.

    The client connects lazily; no network call happens here.
    """
    if not config.url.startswith(("redis://", "rediss://", "unix://")):
        raise ValueError("Unsupported Redis URL. Expected 'redis://', 'rediss://' or 'unix://'.")
    return redis.Redis.from_url(
        config.url,
        decode_responses=True,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_connect_timeout,
    )


@contextmanager
def client_scope(config: RedisConfig) -> Iterator[redis.Redis]:
    """Provide a Redis client for a series of operations and always close it."""
    client = make_client(config)
    try:
        yield client
    finally:
        client.close()


def _escape_glob(text: str) -> str:
    return "".join("\\" + ch if ch in _GLOB_SPECIAL else ch for ch in text)


def _to_str(value: Union[str, bytes]) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisTransaction(Transaction):
    """Queued writes sent as one ``MULTI``/``EXEC`` block.

    Nothing reaches the server before `execute`. Keys that receive a set or
    hash write without being deleted earlier in the batch are ``WATCH``-ed
    and their ``TYPE`` checked first, so a foreign value at an index key
    rejects the whole batch instead of failing one command inside ``EXEC``.
    A watched key changed by another client before ``EXEC`` aborts the batch
    the same way.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._ops: List[Tuple[str, Tuple[str, ...]]] = []
        self._guards: Dict[str, str] = {}
        self._cleared: Set[str] = set()

    @property
    def queued(self) -> int:
        return len(self._ops)

    def delete(self, key: str) -> None:
        self._ops.append(("delete", (key,)))
        self._cleared.add(key)
        self._guards.pop(key, None)

    def set_add(self, key: str, member: str) -> None:
        self._ops.append(("sadd", (key, member)))
        self._guard(key, "set")

    def hash_set(self, key: str, field: str, value: str) -> None:
        self._ops.append(("hset", (key, field, value)))
        self._guard(key, "hash")

    def _guard(self, key: str, expected: str) -> None:
        if key not in self._cleared:
            self._guards.setdefault(key, expected)

    def execute(self) -> None:
        if not self._ops:
            return
        try:
            with self._client.pipeline(transaction=True) as pipe:
                if self._guards:
                    pipe.watch(*self._guards)
                    for key, expected in self._guards.items():
                        actual = _to_str(pipe.type(key))
                        if actual not in (expected, "none"):
                            raise MalformedRecord(key, None, actual)
                pipe.multi()
                for command, args in self._ops:
                    getattr(pipe, command)(*args)
                pipe.execute()
        except redis.WatchError as e:
            logger.warning(
                "Transaction of %d operations aborted by a concurrent write", len(self._ops)
            )
            raise StoreUnavailable("Transaction aborted: watched key modified concurrently") from e
        except redis.RedisError as e:
            logger.warning("Transaction of %d operations failed: %s", len(self._ops), e)
            raise StoreUnavailable(f"Transaction failed: {e}") from e
        finally:
            self.discard()

    def discard(self) -> None:
        self._ops.clear()
        self._guards.clear()
        self._cleared.clear()


class RedisStore(KeyValueStore):
    """`KeyValueStore` over an injected ``redis.Redis`` client.

    The caller owns the client and its lifetime (see `client_scope`).
    """

    def __init__(self, client: redis.Redis, *, scan_count: int = 1000) -> None:
        self._client = client
        self.scan_count = scan_count

    @property
    def client(self) -> redis.Redis:
        return self._client

    def exists(self, key: str) -> bool:
        try:
            return bool(self._client.exists(key))
        except redis.RedisError as e:
            raise self._unavailable("EXISTS", key, e) from e

    def set_add(self, key: str, member: str) -> None:
        try:
            self._client.sadd(key, member)
        except redis.RedisError as e:
            raise self._unavailable("SADD", key, e) from e

    def set_members(self, key: str) -> Set[str]:
        try:
            members = self._client.smembers(key)
        except redis.RedisError as e:
            raise self._unavailable("SMEMBERS", key, e) from e
        return {_to_str(m) for m in members}

    def hash_get(self, key: str, field: str) -> Optional[str]:
        try:
            value = self._client.hget(key, field)
        except redis.RedisError as e:
            raise self._unavailable("HGET", key, e) from e
        return None if value is None else _to_str(value)

    def hash_get_all(self, key: str) -> Dict[str, str]:
        try:
            raw = self._client.hgetall(key)
        except redis.RedisError as e:
            raise self._unavailable("HGETALL", key, e) from e
        return {_to_str(k): _to_str(v) for k, v in raw.items()}

    def keys_matching(self, prefix: str) -> Set[str]:
        pattern = _escape_glob(prefix) + "*"
        try:
            return {_to_str(k) for k in self._client.scan_iter(match=pattern, count=self.scan_count)}
        except redis.RedisError as e:
            raise self._unavailable("SCAN", pattern, e) from e

    def transaction(self) -> RedisTransaction:
        return RedisTransaction(self._client)

    @staticmethod
    def _unavailable(command: str, key: str, exc: Exception) -> StoreUnavailable:
        logger.warning("%s %r failed: %s", command, key, exc)
        return StoreUnavailable(f"{command} {key!r} failed: {exc}")
