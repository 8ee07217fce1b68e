import time
from typing import Callable, Optional

from .operation_log import OperationLog
from .store import EXPIRE_RESERVED, CacheStore


def timestamp_token() -> str:
    """Default token factory: nanosecond timestamp."""
    return str(time.time_ns())


class AssetVersionService:
    """
    Hands out a version token per asset category for cache-busting URLs.

    Tokens are stored as reserved entries so they survive delete_all() and
    only change through refresh_version() or clear_all_versions().

    token_factory must be side-effect free; persisting the value it computes
    is done here.
    """

    def __init__(
        self,
        store: CacheStore,
        log: OperationLog,
        namespace: str = "cache-control-asset-versions",
        token_factory: Callable[[], str] = timestamp_token,
        silent: bool = False,
    ):
        self.store = store
        self.log = log
        self.namespace = namespace
        self.token_factory = token_factory
        self.silent = silent

    def _next_token(self, current: Optional[str]) -> str:
        token = str(self.token_factory())
        if current is None:
            return token
        if token.isdigit() and current.isdigit() and int(token) <= int(current):
            return str(int(current) + 1)
        if token == current:
            return f"{token}-1"
        return token

    def get_version(self, category: str = "default") -> str:
        token = self.store.get_for(self.namespace, category)
        if token is not None:
            return token

        generated = self._next_token(None)
        created = self.store.save_for(
            self.namespace,
            category,
            generated,
            expire=EXPIRE_RESERVED,
            only_if_absent=True,
        )
        # Whoever won the write, the stored value is the answer.
        token = self.store.get_for(self.namespace, category)
        if token is None:
            # cleared again between the write and the read
            token = generated
        if created:
            self.log.log_message_if_not_silent(
                f"Updated asset version for category '{category}' to {token}.", self.silent
            )
        return token

    def refresh_version(self, category: str = "default", token: Optional[str] = None) -> str:
        if token is None:
            token = self._next_token(self.store.get_for(self.namespace, category))
        self.store.save_for(self.namespace, category, str(token), expire=EXPIRE_RESERVED)
        self.log.log_message_if_not_silent(
            f"Updated asset version for category '{category}' to {token}.", self.silent
        )
        return str(token)

    def clear_all_versions(self) -> int:
        deleted = self.store.delete_for(self.namespace)
        self.log.log_message_if_not_silent("Cleared all asset versions.", self.silent)
        return deleted
