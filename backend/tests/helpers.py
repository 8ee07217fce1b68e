import os
import sys

import fakeredis

# Add backend directory to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cache_control.config import Settings
from cache_control.filesystem import LocalFileSystem
from cache_control.operation_log import MemoryLogSink, OperationLog
from cache_control.store import RedisCacheStore
from cache_control.tools import CacheControlTools


def fake_redis():
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


def make_settings(cache_root, **overrides):
    values = dict(
        CACHE_ROOT_PATH=str(cache_root),
        CLEAR_ALL_EXPIRE_ALL=False,
        CLEAR_ALL_DELETE_ALL=False,
        CLEAR_ALL_NAMESPACES="",
        CLEAR_ALL_DIRECTORIES=[],
        CLEAR_ALL_ASSET_VERSIONS=False,
        CLEAR_ALL_FULL_PAGE_CACHE=False,
    )
    values.update(overrides)
    return Settings(**values)


def make_tools(cache_root, client=None, full_page_cache=None, **overrides):
    client = client if client is not None else fake_redis()
    settings = make_settings(cache_root, **overrides)
    return CacheControlTools(
        store=RedisCacheStore(client, prefix=settings.CACHE_KEY_PREFIX),
        filesystem=LocalFileSystem(),
        log=OperationLog(MemoryLogSink(), log_name=settings.LOG_NAME),
        settings=settings,
        full_page_cache=full_page_cache,
    )


def touch(path, content="x"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)
