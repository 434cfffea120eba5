"""Fixed-layout structures exchanged with the FUSE kernel module."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, ClassVar, Iterator, List, Optional, Sequence, Tuple

from .protocol import Protocol

__all__ = [
    "KernelStruct",
    "InHeader",
    "OutHeader",
    "Attr",
    "EntryOut",
    "AttrOut",
    "InitIn",
    "InitOut",
    "OpenIn",
    "OpenOut",
    "ReadIn",
    "WriteIn",
    "WriteOut",
    "Dirent",
    "entry_out_size",
    "attr_out_size",
    "mknod_in_size",
    "mkdir_in_size",
    "create_in_size",
    "read_in_size",
    "write_in_size",
    "lk_in_size",
    "ROOT_ID",
    "DIRENT_SIZE",
    "COMPAT_STATFS_SIZE",
    "NOTIFY_CODE_POLL",
    "NOTIFY_CODE_INVAL_INODE",
    "NOTIFY_CODE_INVAL_ENTRY",
]

ROOT_ID = 1
DIRENT_SIZE = 8 + 8 + 4 + 4
COMPAT_STATFS_SIZE = 48

NOTIFY_CODE_POLL = 1
NOTIFY_CODE_INVAL_INODE = 2
NOTIFY_CODE_INVAL_ENTRY = 3

_IS_DARWIN = sys.platform == "darwin"

# A layout entry is (field name, code). The code is a struct format character
# or a nested KernelStruct subclass. A name of None marks zeroed padding.
_Layout = Tuple[Tuple[Optional[str], Any], ...]


def _entry_format(code: Any) -> str:
    if isinstance(code, type) and issubclass(code, KernelStruct):
        return _body_format(code)
    return code


def _piece_format(name: Optional[str], code: Any) -> str:
    if name is None:
        return f"{struct.calcsize('=' + code)}x"
    return _entry_format(code)


@lru_cache(maxsize=None)
def _body_format(cls: type) -> str:
    return "".join(_piece_format(name, code) for name, code in cls._LAYOUT)


@lru_cache(maxsize=None)
def _compiled(cls: type) -> struct.Struct:
    return struct.Struct("=" + _body_format(cls))


@dataclass
class KernelStruct:
    """Base for structures with a fixed native-endian wire layout."""

    _LAYOUT: ClassVar[_Layout] = ()

    def _values(self) -> List[Any]:
        values: List[Any] = []
        for name, code in self._LAYOUT:
            if name is None:
                continue
            value = getattr(self, name)
            if isinstance(code, type) and issubclass(code, KernelStruct):
                values.extend(value._values())
            else:
                values.append(value)
        return values

    @classmethod
    def _from_values(cls, values: Iterator[Any]) -> "KernelStruct":
        kwargs = {}
        for name, code in cls._LAYOUT:
            if name is None:
                continue
            if isinstance(code, type) and issubclass(code, KernelStruct):
                kwargs[name] = code._from_values(values)
            else:
                kwargs[name] = next(values)
        return cls(**kwargs)

    @classmethod
    def _offset_of(cls, name: str) -> int:
        prefix = ""
        for entry_name, code in cls._LAYOUT:
            if entry_name == name:
                return struct.calcsize("=" + prefix)
            prefix += _piece_format(entry_name, code)
        raise KeyError(f"{cls.__name__} has no field {name!r}")

    def pack(self) -> bytes:
        """Encode the structure in its wire layout."""
        try:
            return _compiled(type(self)).pack(*self._values())
        except struct.error as exc:
            raise ValueError(f"cannot pack {type(self).__name__}: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "KernelStruct":
        """Decode a structure from the start of ``data``."""
        layout = _compiled(cls)
        if len(data) < layout.size:
            raise ValueError(
                f"{cls.__name__} needs {layout.size} bytes, got {len(data)}"
            )
        return cls._from_values(iter(layout.unpack_from(data)))

    @classmethod
    def size(cls) -> int:
        """The number of bytes the structure occupies on the wire."""
        return _compiled(cls).size


@dataclass
class InHeader(KernelStruct):
    """The header leading every request read from the kernel."""

    length: int = 0
    opcode: int = 0
    unique: int = 0
    nodeid: int = 0
    uid: int = 0
    gid: int = 0
    pid: int = 0

    _LAYOUT = (
        ("length", "I"),
        ("opcode", "I"),
        ("unique", "Q"),
        ("nodeid", "Q"),
        ("uid", "I"),
        ("gid", "I"),
        ("pid", "I"),
        (None, "I"),
    )


@dataclass
class OutHeader(KernelStruct):
    """The header leading every reply written to the kernel."""

    length: int = 0
    error: int = 0
    unique: int = 0

    _LAYOUT = (
        ("length", "I"),
        ("error", "i"),
        ("unique", "Q"),
    )


_ATTR_LINUX: _Layout = (
    ("ino", "Q"),
    ("size", "Q"),
    ("blocks", "Q"),
    ("atime", "Q"),
    ("mtime", "Q"),
    ("ctime", "Q"),
    ("atime_nsec", "I"),
    ("mtime_nsec", "I"),
    ("ctime_nsec", "I"),
    ("mode", "I"),
    ("nlink", "I"),
    ("uid", "I"),
    ("gid", "I"),
    ("rdev", "I"),
    ("blksize", "I"),
    (None, "I"),
)

_ATTR_DARWIN: _Layout = (
    ("ino", "Q"),
    ("size", "Q"),
    ("blocks", "Q"),
    ("atime", "Q"),
    ("mtime", "Q"),
    ("ctime", "Q"),
    ("crtime", "Q"),
    ("atime_nsec", "I"),
    ("mtime_nsec", "I"),
    ("ctime_nsec", "I"),
    ("crtime_nsec", "I"),
    ("mode", "I"),
    ("nlink", "I"),
    ("uid", "I"),
    ("gid", "I"),
    ("rdev", "I"),
    ("flags", "I"),
    ("blksize", "I"),
    (None, "I"),
)


@dataclass
class Attr(KernelStruct):
    """Inode attributes. Creation time and flags travel only on macOS."""

    ino: int = 0
    size: int = 0
    blocks: int = 0
    atime: int = 0
    mtime: int = 0
    ctime: int = 0
    crtime: int = 0
    atime_nsec: int = 0
    mtime_nsec: int = 0
    ctime_nsec: int = 0
    crtime_nsec: int = 0
    mode: int = 0
    nlink: int = 0
    uid: int = 0
    gid: int = 0
    rdev: int = 0
    flags: int = 0
    blksize: int = 0

    _LAYOUT = _ATTR_DARWIN if _IS_DARWIN else _ATTR_LINUX

    # The dataclass field "size" shadows the classmethod; restore it.
    @classmethod
    def _wire_size(cls) -> int:
        return _compiled(cls).size


# Attr has a data field called "size"; keep the class-level size() usable.
Attr.size = classmethod(lambda cls: _compiled(cls).size)  # type: ignore[assignment]


@dataclass
class EntryOut(KernelStruct):
    """Reply to a lookup: a child inode with its cached attributes."""

    nodeid: int = 0
    generation: int = 0
    entry_valid: int = 0
    attr_valid: int = 0
    entry_valid_nsec: int = 0
    attr_valid_nsec: int = 0
    attr: Attr = field(default_factory=Attr)

    _LAYOUT = (
        ("nodeid", "Q"),
        ("generation", "Q"),
        ("entry_valid", "Q"),
        ("attr_valid", "Q"),
        ("entry_valid_nsec", "I"),
        ("attr_valid_nsec", "I"),
        ("attr", Attr),
    )


@dataclass
class AttrOut(KernelStruct):
    """Reply to getattr and setattr."""

    attr_valid: int = 0
    attr_valid_nsec: int = 0
    attr: Attr = field(default_factory=Attr)

    _LAYOUT = (
        ("attr_valid", "Q"),
        ("attr_valid_nsec", "I"),
        (None, "I"),
        ("attr", Attr),
    )


@dataclass
class InitIn(KernelStruct):
    """The kernel's side of the init exchange."""

    major: int = 0
    minor: int = 0
    max_readahead: int = 0
    flags: int = 0

    _LAYOUT = (
        ("major", "I"),
        ("minor", "I"),
        ("max_readahead", "I"),
        ("flags", "I"),
    )


@dataclass
class InitOut(KernelStruct):
    """The file system's side of the init exchange."""

    major: int = 0
    minor: int = 0
    max_readahead: int = 0
    flags: int = 0
    max_write: int = 0

    _LAYOUT = (
        ("major", "I"),
        ("minor", "I"),
        ("max_readahead", "I"),
        ("flags", "I"),
        (None, "I"),
        ("max_write", "I"),
    )


@dataclass
class OpenIn(KernelStruct):
    """An open request."""

    flags: int = 0

    _LAYOUT = (
        ("flags", "I"),
        (None, "I"),
    )


@dataclass
class OpenOut(KernelStruct):
    """Reply to an open request."""

    fh: int = 0
    open_flags: int = 0

    _LAYOUT = (
        ("fh", "Q"),
        ("open_flags", "I"),
        (None, "I"),
    )


@dataclass
class ReadIn(KernelStruct):
    """A read request."""

    fh: int = 0
    offset: int = 0
    size: int = 0
    read_flags: int = 0
    lock_owner: int = 0
    flags: int = 0

    _LAYOUT = (
        ("fh", "Q"),
        ("offset", "Q"),
        ("size", "I"),
        ("read_flags", "I"),
        ("lock_owner", "Q"),
        ("flags", "I"),
        (None, "I"),
    )


ReadIn.size = classmethod(lambda cls: _compiled(cls).size)  # type: ignore[assignment]


@dataclass
class WriteIn(KernelStruct):
    """A write request; the data follows it."""

    fh: int = 0
    offset: int = 0
    size: int = 0
    write_flags: int = 0
    lock_owner: int = 0
    flags: int = 0

    _LAYOUT = (
        ("fh", "Q"),
        ("offset", "Q"),
        ("size", "I"),
        ("write_flags", "I"),
        ("lock_owner", "Q"),
        ("flags", "I"),
        (None, "I"),
    )


WriteIn.size = classmethod(lambda cls: _compiled(cls).size)  # type: ignore[assignment]


@dataclass
class WriteOut(KernelStruct):
    """Reply to a write request."""

    size: int = 0

    _LAYOUT = (
        ("size", "I"),
        (None, "I"),
    )


WriteOut.size = classmethod(lambda cls: _compiled(cls).size)  # type: ignore[assignment]


@dataclass
class Dirent(KernelStruct):
    """The fixed part of a directory entry; the name follows it."""

    ino: int = 0
    off: int = 0
    namelen: int = 0
    type: int = 0

    _LAYOUT = (
        ("ino", "Q"),
        ("off", "Q"),
        ("namelen", "I"),
        ("type", "I"),
    )


@dataclass
class _MknodIn(KernelStruct):
    mode: int = 0
    rdev: int = 0
    umask: int = 0

    _LAYOUT = (("mode", "I"), ("rdev", "I"), ("umask", "I"), (None, "I"))


@dataclass
class _MkdirIn(KernelStruct):
    mode: int = 0
    umask: int = 0

    _LAYOUT = (("mode", "I"), ("umask", "I"))


@dataclass
class _CreateIn(KernelStruct):
    flags: int = 0
    mode: int = 0
    umask: int = 0

    _LAYOUT = (("flags", "I"), ("mode", "I"), ("umask", "I"), (None, "I"))


@dataclass
class _FileLock(KernelStruct):
    start: int = 0
    end: int = 0
    type: int = 0
    pid: int = 0

    _LAYOUT = (("start", "Q"), ("end", "Q"), ("type", "I"), ("pid", "I"))


@dataclass
class _LkIn(KernelStruct):
    fh: int = 0
    owner: int = 0
    lk: _FileLock = field(default_factory=_FileLock)
    lk_flags: int = 0

    _LAYOUT = (
        ("fh", "Q"),
        ("owner", "Q"),
        ("lk", _FileLock),
        ("lk_flags", "I"),
        (None, "I"),
    )


_V7_9 = Protocol(7, 9)
_V7_12 = Protocol(7, 12)


def entry_out_size(protocol: Protocol) -> int:
    """Bytes of EntryOut the kernel speaking ``protocol`` expects."""
    if protocol.lt(_V7_9):
        return EntryOut._offset_of("attr") + Attr._offset_of("blksize")
    return EntryOut.size()


def attr_out_size(protocol: Protocol) -> int:
    """Bytes of AttrOut the kernel speaking ``protocol`` expects."""
    if protocol.lt(_V7_9):
        return AttrOut._offset_of("attr") + Attr._offset_of("blksize")
    return AttrOut.size()


def mknod_in_size(protocol: Protocol) -> int:
    """Bytes of a mknod request body sent under ``protocol``."""
    if protocol.lt(_V7_12):
        return _MknodIn._offset_of("umask")
    return _MknodIn.size()


def mkdir_in_size(protocol: Protocol) -> int:
    """Bytes of a mkdir request body sent under ``protocol``."""
    if protocol.lt(_V7_12):
        return _MkdirIn._offset_of("umask") + 4
    return _MkdirIn.size()


def create_in_size(protocol: Protocol) -> int:
    """Bytes of a create request body sent under ``protocol``."""
    if protocol.lt(_V7_12):
        return _CreateIn._offset_of("umask")
    return _CreateIn.size()


def read_in_size(protocol: Protocol) -> int:
    """Bytes of a read request body sent under ``protocol``."""
    if protocol.lt(_V7_9):
        return ReadIn._offset_of("read_flags") + 4
    return ReadIn.size()


def write_in_size(protocol: Protocol) -> int:
    """Bytes of a write request body sent under ``protocol``."""
    if protocol.lt(_V7_9):
        return WriteIn._offset_of("lock_owner")
    return WriteIn.size()


def lk_in_size(protocol: Protocol) -> int:
    """Bytes of a lock request body sent under ``protocol``."""
    if protocol.lt(_V7_9):
        return _LkIn._offset_of("lk_flags")
    return _LkIn.size()