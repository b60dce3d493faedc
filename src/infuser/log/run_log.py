"""
Buffered run log.

Lines are echoed through the standard logging module as they are added and
kept in memory until flush() writes them to a file as one block:

    2026-10-19 12:00:00 +0200
    <header>
    <line>
    ...
    <blank line>
"""

import logging
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Union

logger = logging.getLogger("infuser.run")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class LogMode(Enum):
    """How flush() opens the log file."""
    APPEND = "append"
    OVERWRITE = "overwrite"


class RunLog:
    """
    Collects the log lines of one run and writes them out on demand.

    Safe to share between threads: flush() takes the buffered lines out under
    the lock, so lines added while the file is being written stay buffered
    for the next flush.
    """

    def __init__(self, header: str):
        """
        Args:
            header: Line written under the timestamp of every flushed block
        """
        self.header = header
        self._buffer: List[str] = []
        self._lock = threading.Lock()

    @property
    def lines(self) -> List[str]:
        with self._lock:
            return list(self._buffer)

    def add(self, message: str) -> None:
        """Log a line and keep it for the next flush."""
        logger.info(message)
        with self._lock:
            self._buffer.append(message)

    def clear(self) -> None:
        with self._lock:
            self._buffer = []

    def flush(self, path: Union[str, Path], mode: LogMode = LogMode.APPEND) -> None:
        """
        Write the buffered lines to disk and clear the buffer.

        Args:
            path: Log file path including extension
            mode: Append to the file or overwrite it
        """
        with self._lock:
            lines, self._buffer = self._buffer, []

        try:
            self._write_block(path, mode, lines)
        except OSError:
            # put the lines back ahead of anything added meanwhile
            with self._lock:
                self._buffer = lines + self._buffer
            raise
        logger.debug(f"Flushed {len(lines)} line(s) to {path}")

    def _write_block(self, path: Union[str, Path], mode: LogMode, lines: List[str]) -> None:
        file_mode = 'a' if mode is LogMode.APPEND else 'w'
        timestamp = datetime.now().astimezone().strftime(TIMESTAMP_FORMAT)
        with open(path, file_mode, encoding='utf-8') as f:
            f.write(f"{timestamp}\n")
            f.write(f"{self.header}\n")
            for line in lines:
                f.write(f"{line}\n")
            f.write("\n")
