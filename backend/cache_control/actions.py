import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .exceptions import UnknownActionError
from .tools import CacheControlTools

logger = logging.getLogger("cache_control")

CLEAR_ALL = "clear-all"


@dataclass(frozen=True)
class CacheAction:
    name: str
    title: str
    callback: Callable[[CacheControlTools], None]


class ActionRegistry:
    def __init__(self) -> None:
        self._actions: Dict[str, CacheAction] = {}

    def register(self, name: str, title: str, callback: Optional[Callable] = None):
        """
        Register a named action. Without a callback this returns a decorator:

            @registry.register("clear-search", "Clear the search cache")
            def clear_search(tools):
                tools.clear_namespaces(["site-search"])
        """
        def decorator(func):
            self._actions[name] = CacheAction(name=name, title=title, callback=func)
            return func

        if callback is not None:
            return decorator(callback)
        return decorator

    def get(self, name: str) -> CacheAction:
        try:
            return self._actions[name]
        except KeyError:
            raise UnknownActionError(name) from None

    def actions(self) -> List[CacheAction]:
        return list(self._actions.values())

    def execute(self, name: str, tools: CacheControlTools) -> List[str]:
        action = self.get(name)
        tools.log.start()
        logger.info("Running cache action '%s'", name)
        action.callback(tools)
        return tools.get_new_log_messages()


def clear_all(tools: CacheControlTools) -> None:
    """
    Default action. Steps run in order and independently; an error stops the
    sequence and leaves earlier steps applied.
    """
    settings = tools.settings
    if settings.CLEAR_ALL_EXPIRE_ALL:
        tools.expire_all()
    if settings.CLEAR_ALL_DELETE_ALL:
        tools.delete_all()
    namespaces = settings.namespaces()
    if namespaces:
        tools.clear_namespaces(namespaces)
    for directory in settings.CLEAR_ALL_DIRECTORIES:
        tools.purge_directory(directory)
    if settings.CLEAR_ALL_ASSET_VERSIONS:
        tools.clear_all_asset_versions()
    if settings.CLEAR_ALL_FULL_PAGE_CACHE:
        tools.clear_full_page_cache()


def default_registry() -> ActionRegistry:
    registry = ActionRegistry()
    registry.register(CLEAR_ALL, "Clear all", clear_all)
    return registry


registry = default_registry()
