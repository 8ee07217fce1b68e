import logging
import os

from .exceptions import PathEscapeError
from .filesystem import LocalFileSystem, is_within
from .operation_log import OperationLog

logger = logging.getLogger("cache_control")


class DirectoryPurge:
    """
    Clears the contents of a folder directly below the cache root.

    The folder itself is kept. A missing folder is skipped. Errors from the
    filesystem propagate and whatever was deleted before stays deleted.
    """

    def __init__(
        self,
        filesystem: LocalFileSystem,
        log: OperationLog,
        render_cache_directory: str = "Page",
        silent: bool = False,
    ):
        self.filesystem = filesystem
        self.log = log
        self.render_cache_directory = render_cache_directory
        self.silent = silent

    def purge_directory(self, root_path: str, subdirectory: str) -> bool:
        name = subdirectory.strip("/")
        if not name or name in (".", "..") or "/" in name or os.sep in name:
            raise PathEscapeError(subdirectory, root_path)

        target = os.path.join(root_path, name)
        if not self.filesystem.is_directory(target):
            self.log.log_message_if_not_silent(
                f"Skipped cache directory '{name}': it doesn't exist.", self.silent
            )
            return False

        real_root = os.path.realpath(root_path)
        real_target = os.path.realpath(target)
        if real_target == real_root or not is_within(real_target, real_root):
            raise PathEscapeError(target, root_path)

        for entry in self.filesystem.list_entries(real_target):
            path = os.path.join(real_target, entry.name)
            if entry.is_dir:
                self.filesystem.remove_directory_recursive(path, root_path)
            elif entry.is_file or entry.is_link:
                self.filesystem.remove_file(path, root_path)
            else:
                logger.warning("Leaving special file %s in place.", path)

        if name == self.render_cache_directory:
            message = "Cleared the template render cache."
        else:
            message = f"Removed all files from the cache directory '{name}'."
        self.log.log_message_if_not_silent(message, self.silent)
        return True
