"""Incoming messages read from the FUSE kernel device."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from .structs import InHeader

__all__ = [
    "PAGE_SIZE",
    "MAX_WRITE_SIZE",
    "BUF_SIZE",
    "InMessage",
]

_log = logging.getLogger(__name__)

# All requests read from the kernel, without data, are shorter than this.
PAGE_SIZE = 4096

# The largest write request an InMessage accommodates. macOS caps writes at
# 1 MiB; Linux refuses a max_write above 128 KiB in the init response.
MAX_WRITE_SIZE = 1 << 20 if sys.platform == "darwin" else 1 << 17

# Room for a request plus the data of a write request.
BUF_SIZE = PAGE_SIZE + MAX_WRITE_SIZE

_HEADER_SIZE = InHeader.size()


class InMessage:
    """A request from the kernel: a leading InHeader followed by a body."""

    def __init__(self) -> None:
        self._data = bytes(_HEADER_SIZE)
        self._pos = _HEADER_SIZE

    def read_from(self, reader) -> None:
        """Fill the message with one read from ``reader``.

        The first call to :meth:`consume` afterwards yields the bytes that
        directly follow the header.
        """
        data = reader.read(BUF_SIZE)
        if not data:
            raise EOFError("no message to read")

        n = len(data)
        if n < _HEADER_SIZE:
            raise ValueError(f"Unexpectedly read only {n} bytes.")

        self._data = bytes(data)
        self._pos = _HEADER_SIZE

        declared = self.header().length
        if declared != n:
            raise ValueError(f"Header says {declared} bytes, but we read {n}")

        if len(self) == 0:
            _log.debug("InMessage read %d-byte header with no body", _HEADER_SIZE)

    def header(self) -> InHeader:
        """The header read by the most recent call to :meth:`read_from`."""
        return InHeader.unpack(self._data)

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def consume(self, n: int) -> Optional[bytes]:
        """Take the next ``n`` bytes, or None if the body is empty or too short."""
        available = len(self)
        if available == 0 or n > available:
            _log.debug("InMessage consume %d with %d left", n, available)
            return None
        return self._take(n)

    def consume_bytes(self, n: int) -> Optional[bytes]:
        """Take the next ``n`` bytes, or None if fewer remain."""
        if n > len(self):
            return None
        return self._take(n)

    def _take(self, n: int) -> bytes:
        if n < 0:
            raise ValueError(f"cannot consume {n} bytes")
        start = self._pos
        self._pos = start + n
        return self._data[start:self._pos]