"""The status of a mount, with a way to wait for it to be unmounted."""

from __future__ import annotations

import threading
from typing import Optional

__all__ = ["MountedFileSystem"]


class MountedFileSystem:
    """A mounted (or attempted) file system whose serving can be joined."""

    def __init__(self, directory: str) -> None:
        self._directory = directory
        self._join_error: Optional[BaseException] = None
        self._done = threading.Event()
        self._lock = threading.Lock()

    @property
    def directory(self) -> str:
        """The directory on which the file system is (or was to be) mounted."""
        return self._directory

    def finish(self, error: Optional[BaseException]) -> None:
        """Record the outcome of serving and wake every joiner. Call once."""
        with self._lock:
            if self._done.is_set():
                raise RuntimeError("join status already set")
            self._join_error = error
            self._done.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until the file system is unmounted and all ops are answered.

        Raises the error recorded while serving, if any, and TimeoutError if
        ``timeout`` seconds pass first. May be called many times.
        """
        if not self._done.wait(timeout):
            raise TimeoutError(f"file system at {self._directory} still mounted")
        if self._join_error is not None:
            raise self._join_error