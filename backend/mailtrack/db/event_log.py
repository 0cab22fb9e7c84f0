"""Append-only JSON-lines event log"""
import json
import os
import threading
from pathlib import Path
from typing import Generic, List, Type, TypeVar

from pydantic import ValidationError

from mailtrack.core.exceptions import PersistenceFailure
from mailtrack.core.logging import persistence_logger
from mailtrack.core.otel import event_span
from mailtrack.models.base import RecordBase

logger = persistence_logger

R = TypeVar("R", bound=RecordBase)


class EventLog(Generic[R]):
    """One record per line, each line independently parseable.

    Corrupt or torn lines are skipped on load so a partial write never
    invalidates the rest of the file.
    """

    def __init__(self, path: Path, record_type: Type[R], name: str, fsync: bool = True):
        self.path = Path(path)
        self.record_type = record_type
        self.name = name
        self.fsync = fsync
        self._lock = threading.Lock()
        self._needs_newline = self._ends_without_newline()

    def _ends_without_newline(self) -> bool:
        try:
            if self.path.stat().st_size == 0:
                return False
            with open(self.path, "rb") as f:
                f.seek(-1, os.SEEK_END)
                return f.read(1) != b"\n"
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not inspect {self.name} log {self.path}: {e}")
            return False

    def append(self, record: R) -> None:
        """Durably append one record; raises PersistenceFailure on I/O errors"""
        line = record.to_log_line() + "\n"
        with event_span("event_log.append", log=self.name), self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8") as f:
                    if self._needs_newline:
                        # Terminate a torn trailing line so it stays a single bad line
                        f.write("\n")
                    f.write(line)
                    f.flush()
                    if self.fsync:
                        os.fsync(f.fileno())
                self._needs_newline = False
            except OSError as e:
                raise PersistenceFailure(f"Failed to append to {self.name} log: {e}") from e

    def load_all(self) -> List[R]:
        """Read every parseable record in append order"""
        records: List[R] = []
        skipped = 0
        with self._lock:
            if not self.path.exists():
                logger.info(f"No {self.name} log at {self.path}, starting empty")
                return records

            try:
                with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                    for line_no, line in enumerate(f, start=1):
                        line = line.strip()
                        if not line:
                            continue
                        try:
                            records.append(self.record_type.model_validate(json.loads(line)))
                        except (json.JSONDecodeError, ValidationError, TypeError) as e:
                            skipped += 1
                            logger.debug(f"Skipping corrupt {self.name} log line {line_no}: {e}")
            except OSError as e:
                raise PersistenceFailure(f"Failed to read {self.name} log: {e}") from e

            self._needs_newline = self._ends_without_newline()

        if skipped:
            logger.warning(f"Skipped {skipped} unreadable line(s) in {self.name} log {self.path}")
        logger.info(f"Loaded {len(records)} {self.name} record(s) from {self.path}")
        return records

    def clear(self) -> None:
        """Truncate the log to empty"""
        with event_span("event_log.clear", log=self.name), self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "w", encoding="utf-8") as f:
                    f.flush()
                    if self.fsync:
                        os.fsync(f.fileno())
                self._needs_newline = False
            except OSError as e:
                raise PersistenceFailure(f"Failed to truncate {self.name} log: {e}") from e
        logger.info(f"Cleared {self.name} log {self.path}")
