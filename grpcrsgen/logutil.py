"""Logging setup with a background writer, to a file or to the terminal."""

from __future__ import annotations

import logging
import logging.handlers
import queue
import sys

__all__ = ["init_log"]

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(message)s"
_DATE_FORMAT = "%b %d %H:%M:%S"


class _LogGuard:
    """Keeps the installed logging active until closed."""

    def __init__(
        self,
        queue_handler: logging.Handler,
        listener: logging.handlers.QueueListener,
        sink: logging.Handler,
        previous_level: int,
    ) -> None:
        self._queue_handler = queue_handler
        self._listener = listener
        self._sink = sink
        self._previous_level = previous_level
        self._closed = False

    def close(self) -> None:
        """Flush pending records and remove the installed handlers."""
        if self._closed:
            return
        self._closed = True
        root = logging.getLogger()
        root.removeHandler(self._queue_handler)
        root.setLevel(self._previous_level)
        self._listener.stop()
        self._sink.flush()
        self._sink.close()

    def __enter__(self) -> _LogGuard:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def init_log(log_file: str | None) -> _LogGuard:
    """Send the root logger's records to ``log_file`` (truncated) or to stderr.

    Records are written by a background thread. The returned guard must be
    closed (or used as a context manager) to flush and uninstall the setup.
    """
    if log_file is not None:
        sink: logging.Handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    else:
        sink = logging.StreamHandler(sys.stderr)
    sink.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))

    records: queue.Queue[logging.LogRecord] = queue.Queue()
    queue_handler = logging.handlers.QueueHandler(records)
    listener = logging.handlers.QueueListener(records, sink, respect_handler_level=True)

    root = logging.getLogger()
    previous_level = root.level
    root.addHandler(queue_handler)
    root.setLevel(logging.DEBUG)
    listener.start()
    return _LogGuard(queue_handler, listener, sink, previous_level)