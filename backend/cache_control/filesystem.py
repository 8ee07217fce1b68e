import logging
import os
from typing import List

from pydantic import BaseModel

from .exceptions import PathEscapeError

logger = logging.getLogger("cache_control")


class DirectoryEntry(BaseModel):
    name: str
    is_dir: bool
    is_file: bool
    is_link: bool
    writable: bool


def is_within(path: str, root: str) -> bool:
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # different drives
        return False


def confine(path: str, root: str) -> str:
    """
    Resolve the location of `path` and make sure it lies inside `root`.

    Only the parent is resolved, so a symlink is judged by where the link
    itself lives rather than where it points. Raises PathEscapeError.
    """
    real_root = os.path.realpath(root)
    parent, name = os.path.split(os.path.abspath(path))
    resolved = os.path.join(os.path.realpath(parent), name)
    if name in ("", ".", "..") or not is_within(resolved, real_root) or resolved == real_root:
        raise PathEscapeError(path, root)
    return resolved


class LocalFileSystem:
    def is_directory(self, path: str) -> bool:
        return os.path.isdir(path)

    def list_entries(self, path: str) -> List[DirectoryEntry]:
        entries = []
        with os.scandir(path) as it:
            for entry in it:
                entries.append(
                    DirectoryEntry(
                        name=entry.name,
                        is_dir=entry.is_dir(follow_symlinks=False),
                        is_file=entry.is_file(follow_symlinks=False),
                        is_link=entry.is_symlink(),
                        writable=os.access(entry.path, os.W_OK),
                    )
                )
        return entries

    def remove_file(self, path: str, confine_to_root: str) -> None:
        resolved = confine(path, confine_to_root)
        os.unlink(resolved)

    def remove_directory_recursive(self, path: str, confine_to_root: str) -> None:
        resolved = confine(path, confine_to_root)
        if os.path.islink(resolved):
            os.unlink(resolved)
            return
        for entry in self.list_entries(resolved):
            child = os.path.join(resolved, entry.name)
            if entry.is_dir:
                self.remove_directory_recursive(child, confine_to_root)
            else:
                self.remove_file(child, confine_to_root)
        os.rmdir(resolved)


def list_cache_directories(filesystem: LocalFileSystem, root: str) -> List[str]:
    """Writable folders directly under the cache root."""
    if not filesystem.is_directory(root):
        logger.warning("Cache root %s does not exist.", root)
        return []
    names = [
        entry.name
        for entry in filesystem.list_entries(root)
        if entry.is_dir and not entry.is_link and entry.writable
    ]
    return sorted(names)
