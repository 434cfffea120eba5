"""Operations handled by the connection itself rather than the file system."""

from __future__ import annotations

from dataclasses import dataclass, field

from .flags import InitFlags
from .protocol import Protocol

__all__ = ["UnknownOp", "InterruptOp", "InitOp"]


@dataclass
class UnknownOp:
    """An op with an opcode we do not handle; it must be answered with an error."""

    op_code: int = 0
    inode: int = 0


@dataclass
class InterruptOp:
    """A request to cancel the op with the given kernel-assigned ID."""

    fuse_id: int = 0


@dataclass
class InitOp:
    """The init exchange required to mount.

    ``kernel`` comes from the kernel, ``flags`` goes both ways, and
    ``library``, ``max_readahead`` and ``max_write`` are our reply.
    """

    kernel: Protocol = field(default_factory=lambda: Protocol(0, 0))
    flags: InitFlags = InitFlags(0)
    library: Protocol = field(default_factory=lambda: Protocol(0, 0))
    max_readahead: int = 0
    max_write: int = 0