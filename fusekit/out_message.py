"""Outgoing replies built for the FUSE kernel device."""

from __future__ import annotations

import sys

from .structs import OutHeader

__all__ = [
    "OUT_MESSAGE_HEADER_SIZE",
    "MAX_READ_SIZE",
    "OutMessage",
]

# Size of the leading header of every reply; reset brings a message back to it.
OUT_MESSAGE_HEADER_SIZE = OutHeader.size()

# The largest read the kernel is expected to ask for, which bounds the payload.
MAX_READ_SIZE = 1 << 20 if sys.platform == "darwin" else 1 << 17


class OutMessage:
    """A single reply built from segments after a leading OutHeader."""

    def __init__(self) -> None:
        self.header = OutHeader()
        self._payload = bytearray(MAX_READ_SIZE)
        self._offset = 0

    def reset(self) -> None:
        """Make the message a zeroed header with no payload."""
        self.header.length = 0
        self.header.error = 0
        self.header.unique = 0
        self._offset = 0

    def grow(self, n: int) -> memoryview:
        """Extend the payload by ``n`` zeroed bytes and return a view of them."""
        view = self.grow_no_zero(n)
        view[:] = bytes(n)
        return view

    def grow_no_zero(self, n: int) -> memoryview:
        """Extend the payload by ``n`` bytes, leaving their contents as they were."""
        if n < 0:
            raise ValueError(f"cannot grow by {n} bytes")
        start = self._offset
        if len(self._payload) - start < n:
            raise BufferError(f"Can't grow {n} bytes")
        self._offset = start + n
        return memoryview(self._payload)[start:start + n]

    def shrink_to(self, n: int) -> None:
        """Cut the message back to a total length of ``n`` bytes."""
        if n < OUT_MESSAGE_HEADER_SIZE or n > len(self):
            raise ValueError(
                f"ShrinkTo({n}) out of range (current Len: {len(self)})"
            )
        self._offset = n - OUT_MESSAGE_HEADER_SIZE

    def append(self, data: bytes) -> None:
        """Copy ``data`` onto the end of the payload."""
        view = self.grow_no_zero(len(data))
        view[:] = data

    def append_string(self, text: str) -> None:
        """Copy the UTF-8 encoding of ``text`` onto the end of the payload."""
        self.append(text.encode("utf-8"))

    def __len__(self) -> int:
        return OUT_MESSAGE_HEADER_SIZE + self._offset

    def to_bytes(self) -> bytes:
        """The whole message, header included."""
        return self.header.pack() + bytes(self._payload[:self._offset])