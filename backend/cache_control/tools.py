import copy
import logging
from typing import Iterable, List, Optional

import redis

from .asset_version import AssetVersionService
from .config import Settings
from .directory_purge import DirectoryPurge
from .filesystem import LocalFileSystem, list_cache_directories
from .operation_log import FileLogSink, LogSink, OperationLog
from .store import CacheStore, RedisCacheStore

logger = logging.getLogger("cache_control")


class CacheControlTools:
    """
    Entry point for every clear operation.

    silent() and verbose() return a copy sharing the same collaborators,
    so a quiet sequence never changes the behaviour of the original object:

        tools.silent().clear_namespaces(["site-search"])
    """

    def __init__(
        self,
        store: CacheStore,
        filesystem: LocalFileSystem,
        log: OperationLog,
        settings: Settings,
        full_page_cache=None,
        silent: bool = False,
    ):
        self.store = store
        self.filesystem = filesystem
        self.log = log
        self.settings = settings
        self.full_page_cache = full_page_cache
        self.is_silent = silent

    def silent(self) -> "CacheControlTools":
        return self._with_silence(True)

    def verbose(self) -> "CacheControlTools":
        return self._with_silence(False)

    def _with_silence(self, silent: bool) -> "CacheControlTools":
        clone = copy.copy(self)
        clone.is_silent = silent
        return clone

    @property
    def asset_versions(self) -> AssetVersionService:
        return AssetVersionService(
            self.store,
            self.log,
            namespace=self.settings.ASSET_VERSION_NAMESPACE,
            silent=self.is_silent,
        )

    @property
    def directory_purge(self) -> DirectoryPurge:
        return DirectoryPurge(
            self.filesystem,
            self.log,
            render_cache_directory=self.settings.RENDER_CACHE_DIRECTORY,
            silent=self.is_silent,
        )

    def log_message(self, message: str) -> None:
        self.log.log_message(message)

    def log_message_if_not_silent(self, message: str) -> None:
        self.log.log_message_if_not_silent(message, self.is_silent)

    def get_new_log_messages(self) -> List[str]:
        return self.log.get_new_log_messages()

    def get_asset_version(self, category: Optional[str] = None) -> str:
        return self.asset_versions.get_version(category or self.settings.DEFAULT_ASSET_CATEGORY)

    def refresh_asset_version(self, category: Optional[str] = None, token: Optional[str] = None) -> str:
        return self.asset_versions.refresh_version(
            category or self.settings.DEFAULT_ASSET_CATEGORY, token
        )

    def clear_all_asset_versions(self) -> int:
        return self.asset_versions.clear_all_versions()

    def purge_directory(self, subdirectory: str) -> bool:
        return self.directory_purge.purge_directory(self.settings.CACHE_ROOT_PATH, subdirectory)

    def cache_directories(self) -> List[str]:
        return list_cache_directories(self.filesystem, self.settings.CACHE_ROOT_PATH)

    def clear_namespaces(self, namespaces: Iterable[str]) -> List[str]:
        cleared = []
        for namespace in namespaces:
            self.store.delete_for(namespace)
            cleared.append(namespace)
        if cleared:
            self.log_message_if_not_silent(
                f"Deleted cache entries for namespaces: {', '.join(cleared)}."
            )
        return cleared

    def expire_all(self) -> int:
        expired = self.store.expire_all()
        self.log_message_if_not_silent("Expired all cache entries with an expiration date.")
        return expired

    def delete_all(self) -> int:
        deleted = self.store.delete_all()
        self.log_message_if_not_silent("Deleted all cache entries except reserved entries.")
        return deleted

    def clear_full_page_cache(self) -> bool:
        if self.full_page_cache is None:
            logger.debug("No full-page cache configured, nothing to clear.")
            return False
        self.full_page_cache.clear_all()
        self.log_message_if_not_silent("Cleared the full-page cache.")
        return True


def build_tools(
    settings: Settings,
    redis_client: Optional[redis.Redis] = None,
    log_sink: Optional[LogSink] = None,
    full_page_cache=None,
) -> CacheControlTools:
    if redis_client is None:
        redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    if log_sink is None:
        log_sink = FileLogSink(settings.LOG_DIR)
    return CacheControlTools(
        store=RedisCacheStore(redis_client, prefix=settings.CACHE_KEY_PREFIX),
        filesystem=LocalFileSystem(),
        log=OperationLog(log_sink, log_name=settings.LOG_NAME),
        settings=settings,
        full_page_cache=full_page_cache,
    )
