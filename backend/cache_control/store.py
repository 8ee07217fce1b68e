import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import redis

logger = logging.getLogger("cache_control")

# Expiry sentinels for save_for(); positive values are TTL seconds.
EXPIRE_RESERVED = -1
EXPIRE_NEVER = 0

_GLOB_CHARS = "\\*?[]"


def _escape_glob(value: str) -> str:
    for char in _GLOB_CHARS:
        value = value.replace(char, "\\" + char)
    return value


def _encode_part(value: str) -> str:
    return value.replace("%", "%25").replace(":", "%3A")


def _decode_part(value: str) -> str:
    return value.replace("%3A", ":").replace("%25", "%")


class CacheStore(ABC):
    """
    Namespaced key/value store.

    Entries saved with EXPIRE_RESERVED never expire and are kept by
    delete_all(); they only go away through delete_for().
    """

    @abstractmethod
    def get_for(self, namespace: str, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def save_for(
        self,
        namespace: str,
        key: str,
        value: str,
        expire: int = EXPIRE_NEVER,
        only_if_absent: bool = False,
    ) -> bool:
        """
        Store a value. Returns False when only_if_absent is set and an entry
        already exists, in which case nothing is written.
        """

    @abstractmethod
    def delete_for(self, namespace: str, key: Optional[str] = None) -> int:
        """Delete one entry, or every entry of the namespace when key is None."""

    @abstractmethod
    def expire_all(self) -> int:
        ...

    @abstractmethod
    def delete_all(self) -> int:
        ...

    @abstractmethod
    def namespaces(self) -> List[str]:
        ...


class RedisCacheStore(CacheStore):
    """
    Keys are `<prefix>:<namespace>:<key>` with ":" and "%" percent-encoded
    inside namespace and key, so a namespace pattern never reaches into
    another namespace. The client must be created with decode_responses=True.
    """

    def __init__(self, client: redis.Redis, prefix: str = "cache", scan_count: int = 500):
        self.client = client
        self.prefix = prefix
        self.scan_count = scan_count
        self.reserved_key = f"{prefix}:__reserved__"

    def _key(self, namespace: str, key: str) -> str:
        return f"{self.prefix}:{_encode_part(namespace)}:{_encode_part(key)}"

    def _scan(self, pattern: str, client=None):
        client = client if client is not None else self.client
        cursor = 0
        while True:
            cursor, keys = client.scan(cursor=cursor, match=pattern, count=self.scan_count)
            for key in keys:
                if key != self.reserved_key:
                    yield key
            if cursor == 0:
                break

    def _delete(self, keys: List[str]) -> int:
        if not keys:
            return 0
        pipe = self.client.pipeline()
        pipe.delete(*keys)
        pipe.srem(self.reserved_key, *keys)
        deleted, _ = pipe.execute()
        return deleted

    def get_for(self, namespace: str, key: str) -> Optional[str]:
        return self.client.get(self._key(namespace, key))

    def save_for(
        self,
        namespace: str,
        key: str,
        value: str,
        expire: int = EXPIRE_NEVER,
        only_if_absent: bool = False,
    ) -> bool:
        full_key = self._key(namespace, key)
        ttl = expire if expire and expire > 0 else None
        # value and reserved marker are written in one MULTI, so delete_all
        # never sees a reserved entry without its marker
        with self.client.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(full_key)
                    if only_if_absent and pipe.exists(full_key):
                        pipe.unwatch()
                        return False
                    pipe.multi()
                    pipe.set(full_key, value, ex=ttl)
                    if expire == EXPIRE_RESERVED:
                        pipe.sadd(self.reserved_key, full_key)
                    else:
                        pipe.srem(self.reserved_key, full_key)
                    pipe.execute()
                    return True
                except redis.WatchError:
                    continue

    def delete_for(self, namespace: str, key: Optional[str] = None) -> int:
        if key is not None:
            return self._delete([self._key(namespace, key)])
        pattern = f"{_escape_glob(self.prefix)}:{_escape_glob(_encode_part(namespace))}:*"
        deleted = self._delete(list(self._scan(pattern)))
        logger.debug("Deleted %s keys in namespace '%s'", deleted, namespace)
        return deleted

    def expire_all(self) -> int:
        expiring = [key for key in self._scan(f"{_escape_glob(self.prefix)}:*") if self.client.ttl(key) > 0]
        return self._delete(expiring)

    def delete_all(self) -> int:
        pattern = f"{_escape_glob(self.prefix)}:*"
        with self.client.pipeline() as pipe:
            while True:
                try:
                    # retried when an entry gets reserved while we scan
                    pipe.watch(self.reserved_key)
                    reserved = pipe.smembers(self.reserved_key)
                    keys = [key for key in self._scan(pattern, pipe) if key not in reserved]
                    if not keys:
                        pipe.unwatch()
                        return 0
                    pipe.multi()
                    pipe.delete(*keys)
                    deleted, = pipe.execute()
                    return deleted
                except redis.WatchError:
                    continue

    def namespaces(self) -> List[str]:
        found = set()
        offset = len(self.prefix) + 1
        for key in self._scan(f"{_escape_glob(self.prefix)}:*"):
            namespace, sep, _ = key[offset:].partition(":")
            if sep:
                found.add(_decode_part(namespace))
        return sorted(found)
