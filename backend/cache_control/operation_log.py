"""
Operation log for cache-control actions.

Every completed action leaves one human readable line in a dedicated log
(separate from application logging) so operators can see what a "clear"
request actually did.
"""
import logging
import logging.handlers
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger("cache_control")


@dataclass(frozen=True)
class LogEntry:
    message: str
    timestamp: float = field(default_factory=time.time)


class LogSink:
    def append(self, log_name: str, message: str) -> None:
        raise NotImplementedError


class MemoryLogSink(LogSink):
    def __init__(self) -> None:
        self.lines: Dict[str, List[str]] = {}

    def append(self, log_name: str, message: str) -> None:
        self.lines.setdefault(log_name, []).append(message)


class FileLogSink(LogSink):
    """Writes each log name to <log_dir>/<log_name>.txt with rotation."""

    def __init__(self, log_dir, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5):
        self.log_dir = Path(log_dir)
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._loggers: Dict[str, logging.Logger] = {}

    def _logger_for(self, log_name: str) -> logging.Logger:
        if log_name in self._loggers:
            return self._loggers[log_name]

        self.log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / f"{log_name}.txt",
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter("%(asctime)s\t%(message)s"))

        sink_logger = logging.getLogger(f"cache_control.oplog.{log_name}")
        sink_logger.setLevel(logging.INFO)
        sink_logger.propagate = False
        sink_logger.handlers.clear()
        sink_logger.addHandler(handler)
        self._loggers[log_name] = sink_logger
        return sink_logger

    def append(self, log_name: str, message: str) -> None:
        self._logger_for(log_name).info(message)

    def close(self) -> None:
        for sink_logger in self._loggers.values():
            for handler in list(sink_logger.handlers):
                handler.close()
                sink_logger.removeHandler(handler)
        self._loggers.clear()


class OperationLog:
    def __init__(self, sink: Optional[LogSink] = None, log_name: str = "cache-control"):
        self.sink = sink if sink is not None else MemoryLogSink()
        self.log_name = log_name
        self.entries: List[LogEntry] = []
        self.started_at = time.time()
        self._start_index = 0

    def start(self) -> None:
        """Mark the beginning of a new operation for get_new_log_messages()."""
        self.started_at = time.time()
        self._start_index = len(self.entries)

    def log_message(self, message: str) -> LogEntry:
        entry = LogEntry(message)
        self.sink.append(self.log_name, message)
        self.entries.append(entry)
        logger.info("[%s] %s", self.log_name, message)
        return entry

    def log_message_if_not_silent(self, message: str, silent: bool) -> Optional[LogEntry]:
        if silent:
            return None
        return self.log_message(message)

    def get_new_log_messages(self) -> List[str]:
        return [entry.message for entry in self.entries[self._start_index:]]
