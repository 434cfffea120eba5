"""FUSE kernel protocol version numbers and the features each version offers."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "Protocol",
    "PROTO_VERSION_MIN",
    "PROTO_VERSION_MAX",
]


@dataclass(frozen=True, order=True)
class Protocol:
    """A FUSE protocol version number, ordered by (major, minor)."""

    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    def lt(self, other: Protocol) -> bool:
        """Return whether this version is older than ``other``."""
        return self < other

    def ge(self, other: Protocol) -> bool:
        """Return whether this version is ``other`` or newer."""
        return self >= other

    def _at_least(self, minor: int) -> bool:
        return self.ge(Protocol(7, minor))

    def has_attr_block_size(self) -> bool:
        """Whether the kernel respects the attribute block size."""
        return self._at_least(9)

    def has_read_write_flags(self) -> bool:
        """Whether the flag fields of read and write requests are valid."""
        return self._at_least(9)

    def has_getattr_flags(self) -> bool:
        """Whether the flags field of getattr requests is valid."""
        return self._at_least(9)

    def has_open_non_seekable(self) -> bool:
        """Whether the non-seekable open response flag is supported."""
        return self._at_least(10)

    def has_umask(self) -> bool:
        """Whether create, mkdir and mknod requests carry a valid umask."""
        return self._at_least(12)

    def has_invalidate(self) -> bool:
        """Whether inode and entry invalidation notifications are supported."""
        return self._at_least(12)


PROTO_VERSION_MIN = Protocol(7, 8)
PROTO_VERSION_MAX = Protocol(7, 12)