"""Shared run state: progress counters and the error sink.

Both objects are created once per run and handed to every upload task. They
are the only state written by several tasks at once, so every mutation goes
through a lock.
"""

import sys
import threading
from pathlib import Path
from typing import TextIO


class ProgressCounters:
    """Tallies of inserted and already-existing records for one phase.

    When `stream` is set, a status line such as
    ``"Uploaded 12 nodes and found 3 existing nodes"`` is rewritten in place
    after every increment. Concurrent writers may interleave on the stream;
    the totals themselves are always consistent.
    """

    def __init__(self, kind: str = "record", stream: TextIO | None = None) -> None:
        self.kind = kind
        self.stream = stream
        self._inserted = 0
        self._existing = 0
        self._lock = threading.Lock()

    @property
    def inserted(self) -> int:
        with self._lock:
            return self._inserted

    @property
    def existing(self) -> int:
        with self._lock:
            return self._existing

    def record_inserted(self) -> int:
        with self._lock:
            self._inserted += 1
            total = self._inserted
        self._render()
        return total

    def record_existing(self) -> int:
        with self._lock:
            self._existing += 1
            total = self._existing
        self._render()
        return total

    def status_line(self) -> str:
        with self._lock:
            inserted, existing = self._inserted, self._existing
        return f"Uploaded {inserted} {self.kind}s and found {existing} existing {self.kind}s"

    def _render(self) -> None:
        if self.stream is None:
            return
        self.stream.write("\r" + self.status_line())
        self.stream.flush()

    def finish(self) -> None:
        """End the live status line."""
        if self.stream is not None:
            self.stream.write("\n")
            self.stream.flush()


class ErrorSink:
    """Append-only, lock-protected collection of per-record failure messages.

    Messages are kept in memory for the whole run and written out once by
    `flush()`, one message per line.
    """

    def __init__(self) -> None:
        self._messages: list[str] = []
        self._lock = threading.Lock()

    def append(self, message: str) -> None:
        # one message per line in the log file
        message = message.replace("\r", " ").replace("\n", " ")
        with self._lock:
            self._messages.append(message)

    def messages(self) -> list[str]:
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def flush(self, path: Path) -> Path:
        """Write all messages to `path`, creating parent directories. Returns the path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        messages = self.messages()
        with open(path, "w", encoding="utf-8") as fh:
            for message in messages:
                fh.write(message + "\n")
        return path


def console_stream(quiet: bool = False) -> TextIO | None:
    """Stream for live progress lines, or None when quiet."""
    return None if quiet else sys.stderr
