from redis.exceptions import RedisError

# Store and filesystem failures surface as the underlying library errors.
StoreError = RedisError
FileSystemError = OSError


class CacheControlError(Exception):
    pass


class PathEscapeError(CacheControlError, ValueError):
    """A deletion path resolved outside of the cache root."""

    def __init__(self, path: str, root: str):
        self.path = path
        self.root = root
        super().__init__(f"Refusing to delete {path!r}: outside of cache root {root!r}")


class UnknownActionError(CacheControlError, KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown cache action: {self.name}"
