"""Bit flags and opcodes of the FUSE kernel protocol."""

from __future__ import annotations

import os
import sys
from enum import IntEnum, IntFlag
from typing import Iterable, Tuple

__all__ = [
    "flag_string",
    "GetattrFlags",
    "SetattrValid",
    "OpenFlags",
    "OPEN_ACCESS_MODE_MASK",
    "OpenResponseFlags",
    "InitFlags",
    "ReleaseFlags",
    "ReadFlags",
    "WriteFlags",
    "Opcode",
    "open_flags",
]


def flag_string(value: int, names: Iterable[Tuple[int, str]]) -> str:
    """Render ``value`` as '+'-joined names, with leftover bits in hex."""
    remaining = int(value)
    if remaining == 0:
        return "0"
    parts = []
    for bit, name in names:
        bit = int(bit)
        if remaining & bit:
            parts.append(name)
            remaining &= ~bit
    if remaining:
        parts.append(f"{remaining:#x}")
    return "+".join(parts)


_FLAG_NAMES: dict = {}


class _NamedFlag(IntFlag):
    """An IntFlag whose string form lists the protocol names of set bits."""

    def __str__(self) -> str:
        return flag_string(int(self), _FLAG_NAMES[type(self)])

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class GetattrFlags(_NamedFlag):
    """Flags seen in getattr requests."""

    FH = 1 << 0


class SetattrValid(_NamedFlag):
    """Which fields of a setattr request are included in the change."""

    MODE = 1 << 0
    UID = 1 << 1
    GID = 1 << 2
    SIZE = 1 << 3
    ATIME = 1 << 4
    MTIME = 1 << 5
    HANDLE = 1 << 6
    ATIME_NOW = 1 << 7
    MTIME_NOW = 1 << 8
    LOCK_OWNER = 1 << 9
    CRTIME = 1 << 28
    CHGTIME = 1 << 29
    BKUPTIME = 1 << 30
    FLAGS = 1 << 31


OPEN_ACCESS_MODE_MASK = 3


class OpenFlags(_NamedFlag):
    """The O_* flags passed to open and create calls."""

    READ_ONLY = os.O_RDONLY
    WRITE_ONLY = os.O_WRONLY
    READ_WRITE = os.O_RDWR
    APPEND = os.O_APPEND
    CREATE = os.O_CREAT
    EXCLUSIVE = os.O_EXCL
    SYNC = getattr(os, "O_SYNC", 0o4010000)
    TRUNCATE = os.O_TRUNC

    def __str__(self) -> str:
        value = int(self)
        text = _ACCESS_MODE_NAMES.get(value & OPEN_ACCESS_MODE_MASK, "")
        rest = value & ~OPEN_ACCESS_MODE_MASK
        if rest:
            text = text + "+" + flag_string(rest, _FLAG_NAMES[OpenFlags])
        return text

    def _access_mode(self) -> int:
        return int(self) & OPEN_ACCESS_MODE_MASK

    def is_read_only(self) -> bool:
        """Whether the access mode is read-only."""
        return self._access_mode() == int(OpenFlags.READ_ONLY)

    def is_write_only(self) -> bool:
        """Whether the access mode is write-only."""
        return self._access_mode() == int(OpenFlags.WRITE_ONLY)

    def is_read_write(self) -> bool:
        """Whether the access mode is read-write."""
        return self._access_mode() == int(OpenFlags.READ_WRITE)


_ACCESS_MODE_NAMES = {
    int(OpenFlags.READ_ONLY): "OpenReadOnly",
    int(OpenFlags.WRITE_ONLY): "OpenWriteOnly",
    int(OpenFlags.READ_WRITE): "OpenReadWrite",
}


class OpenResponseFlags(_NamedFlag):
    """Flags returned in an open response."""

    DIRECT_IO = 1 << 0
    KEEP_CACHE = 1 << 1
    NON_SEEKABLE = 1 << 2
    PURGE_ATTR = 1 << 30
    PURGE_UBC = 1 << 31


class InitFlags(_NamedFlag):
    """Flags used in the init exchange."""

    ASYNC_READ = 1 << 0
    POSIX_LOCKS = 1 << 1
    FILE_OPS = 1 << 2
    ATOMIC_TRUNC = 1 << 3
    EXPORT_SUPPORT = 1 << 4
    BIG_WRITES = 1 << 5
    DONT_MASK = 1 << 6
    SPLICE_WRITE = 1 << 7
    SPLICE_MOVE = 1 << 8
    SPLICE_READ = 1 << 9
    FLOCK_LOCKS = 1 << 10
    HAS_IOCTL_DIR = 1 << 11
    AUTO_INVAL_DATA = 1 << 12
    DO_READDIRPLUS = 1 << 13
    READDIRPLUS_AUTO = 1 << 14
    ASYNC_DIO = 1 << 15
    WRITEBACK_CACHE = 1 << 16
    NO_OPEN_SUPPORT = 1 << 17
    CASE_SENSITIVE = 1 << 29
    VOL_RENAME = 1 << 30
    XTIMES = 1 << 31


class ReleaseFlags(_NamedFlag):
    """Flags used in the release exchange."""

    FLUSH = 1 << 0


class ReadFlags(_NamedFlag):
    """Flags passed in read requests."""

    LOCK_OWNER = 1 << 1


class WriteFlags(_NamedFlag):
    """Flags passed in write requests."""

    CACHE = 1 << 0
    LOCK_OWNER = 1 << 1


_FLAG_NAMES.update(
    {
        GetattrFlags: [(GetattrFlags.FH, "GetattrFh")],
        SetattrValid: [
            (SetattrValid.MODE, "SetattrMode"),
            (SetattrValid.UID, "SetattrUid"),
            (SetattrValid.GID, "SetattrGid"),
            (SetattrValid.SIZE, "SetattrSize"),
            (SetattrValid.ATIME, "SetattrAtime"),
            (SetattrValid.MTIME, "SetattrMtime"),
            (SetattrValid.HANDLE, "SetattrHandle"),
            (SetattrValid.ATIME_NOW, "SetattrAtimeNow"),
            (SetattrValid.MTIME_NOW, "SetattrMtimeNow"),
            (SetattrValid.LOCK_OWNER, "SetattrLockOwner"),
            (SetattrValid.CRTIME, "SetattrCrtime"),
            (SetattrValid.CHGTIME, "SetattrChgtime"),
            (SetattrValid.BKUPTIME, "SetattrBkuptime"),
            (SetattrValid.FLAGS, "SetattrFlags"),
        ],
        OpenFlags: [
            (OpenFlags.CREATE, "OpenCreate"),
            (OpenFlags.EXCLUSIVE, "OpenExclusive"),
            (OpenFlags.TRUNCATE, "OpenTruncate"),
            (OpenFlags.APPEND, "OpenAppend"),
            (OpenFlags.SYNC, "OpenSync"),
        ],
        OpenResponseFlags: [
            (OpenResponseFlags.DIRECT_IO, "OpenDirectIO"),
            (OpenResponseFlags.KEEP_CACHE, "OpenKeepCache"),
            (OpenResponseFlags.NON_SEEKABLE, "OpenNonSeekable"),
            (OpenResponseFlags.PURGE_ATTR, "OpenPurgeAttr"),
            (OpenResponseFlags.PURGE_UBC, "OpenPurgeUBC"),
        ],
        InitFlags: [
            (InitFlags.ASYNC_READ, "InitAsyncRead"),
            (InitFlags.POSIX_LOCKS, "InitPosixLocks"),
            (InitFlags.FILE_OPS, "InitFileOps"),
            (InitFlags.ATOMIC_TRUNC, "InitAtomicTrunc"),
            (InitFlags.EXPORT_SUPPORT, "InitExportSupport"),
            (InitFlags.BIG_WRITES, "InitBigWrites"),
            (InitFlags.DONT_MASK, "InitDontMask"),
            (InitFlags.SPLICE_WRITE, "InitSpliceWrite"),
            (InitFlags.SPLICE_MOVE, "InitSpliceMove"),
            (InitFlags.SPLICE_READ, "InitSpliceRead"),
            (InitFlags.FLOCK_LOCKS, "InitFlockLocks"),
            (InitFlags.HAS_IOCTL_DIR, "InitHasIoctlDir"),
            (InitFlags.AUTO_INVAL_DATA, "InitAutoInvalData"),
            (InitFlags.DO_READDIRPLUS, "InitDoReaddirplus"),
            (InitFlags.READDIRPLUS_AUTO, "InitReaddirplusAuto"),
            (InitFlags.ASYNC_DIO, "InitAsyncDIO"),
            (InitFlags.WRITEBACK_CACHE, "InitWritebackCache"),
            (InitFlags.NO_OPEN_SUPPORT, "InitNoOpenSupport"),
            (InitFlags.CASE_SENSITIVE, "InitCaseSensitive"),
            (InitFlags.VOL_RENAME, "InitVolRename"),
            (InitFlags.XTIMES, "InitXtimes"),
        ],
        ReleaseFlags: [(ReleaseFlags.FLUSH, "ReleaseFlush")],
        ReadFlags: [(ReadFlags.LOCK_OWNER, "ReadLockOwner")],
        WriteFlags: [
            (WriteFlags.CACHE, "WriteCache"),
            (WriteFlags.LOCK_OWNER, "WriteLockOwner"),
        ],
    }
)


class Opcode(IntEnum):
    """Operation codes of kernel requests."""

    LOOKUP = 1
    FORGET = 2
    GETATTR = 3
    SETATTR = 4
    READLINK = 5
    SYMLINK = 6
    MKNOD = 8
    MKDIR = 9
    UNLINK = 10
    RMDIR = 11
    RENAME = 12
    LINK = 13
    OPEN = 14
    READ = 15
    WRITE = 16
    STATFS = 17
    RELEASE = 18
    FSYNC = 20
    SETXATTR = 21
    GETXATTR = 22
    LISTXATTR = 23
    REMOVEXATTR = 24
    FLUSH = 25
    INIT = 26
    OPENDIR = 27
    READDIR = 28
    RELEASEDIR = 29
    FSYNCDIR = 30
    GETLK = 31
    SETLK = 32
    SETLKW = 33
    ACCESS = 34
    CREATE = 35
    INTERRUPT = 36
    BMAP = 37
    DESTROY = 38
    IOCTL = 39
    POLL = 40
    FALLOCATE = 43
    SETVOLNAME = 61
    GETXTIMES = 62
    EXCHANGE = 63


_LARGEFILE = 0x8000


def open_flags(flags: int) -> OpenFlags:
    """Convert raw open flags from the kernel, dropping O_LARGEFILE on Linux."""
    flags = int(flags)
    if sys.platform.startswith("linux"):
        flags &= ~_LARGEFILE
    return OpenFlags(flags)