"""Mounting on Linux: directly as a privileged user, else through fusermount."""

from __future__ import annotations

import io
import logging
import os
import socket
import subprocess
from concurrent.futures import Future
from typing import Dict, List, Mapping, Tuple

from .config import MountConfig, map_to_options_string

__all__ = [
    "MS_RDONLY",
    "MS_NOSUID",
    "MS_NODEV",
    "MS_NOEXEC",
    "MS_SYNCHRONOUS",
    "MS_DIRSYNC",
    "MS_NOATIME",
    "MOUNT_FLAG_OPTIONS",
    "split_mount_flags",
    "fusermount",
    "mount_device",
]

_log = logging.getLogger(__name__)

MS_RDONLY = 1
MS_NOSUID = 2
MS_NODEV = 4
MS_NOEXEC = 8
MS_SYNCHRONOUS = 16
MS_DIRSYNC = 128
MS_NOATIME = 1024

# Option name -> (mount flag, whether the option sets it or clears it).
MOUNT_FLAG_OPTIONS: Dict[str, Tuple[int, bool]] = {
    "rw": (MS_RDONLY, True),
    "ro": (MS_RDONLY, False),
    "suid": (MS_NOSUID, False),
    "nosuid": (MS_NOSUID, True),
    "dev": (MS_NODEV, False),
    "nodev": (MS_NODEV, True),
    "exec": (MS_NOEXEC, False),
    "noexec": (MS_NOEXEC, True),
    "async": (MS_SYNCHRONOUS, False),
    "sync": (MS_SYNCHRONOUS, True),
    "atime": (MS_NOATIME, False),
    "noatime": (MS_NOATIME, True),
    "dirsync": (MS_DIRSYNC, True),
}

_FLAG_WORDS = (
    (MS_NOSUID, "nosuid"),
    (MS_NODEV, "nodev"),
    (MS_NOEXEC, "noexec"),
    (MS_SYNCHRONOUS, "sync"),
    (MS_NOATIME, "noatime"),
    (MS_DIRSYNC, "dirsync"),
)


class _Fallback(Exception):
    """Direct mounting is not possible; fusermount must be used instead."""


def split_mount_flags(opts: Mapping[str, str]) -> Tuple[int, Dict[str, str]]:
    """Turn flag options into mount(2) flags; return them with the rest.

    The result always starts from nodev and nosuid. The fsname option is
    dropped, since it travels as the mount source instead.
    """
    flags = MS_NODEV | MS_NOSUID
    remaining: Dict[str, str] = {}
    for key, value in opts.items():
        entry = MOUNT_FLAG_OPTIONS.get(key)
        if entry is None:
            remaining[key] = value
            continue
        bit, enable = entry
        flags = flags | bit if enable else flags & ~bit
    remaining.pop("fsname", None)
    return flags, remaining


def _mount_data(fd: int, opts: Mapping[str, str]) -> str:
    data = (
        f"fd={fd},rootmode=40000,user_id={os.getuid()},group_id={os.getgid()}"
    )
    return data + "," + map_to_options_string(opts)


def _flag_words(flags: int) -> List[str]:
    words = ["ro" if flags & MS_RDONLY else "rw"]
    words.extend(word for bit, word in _FLAG_WORDS if flags & bit)
    return words


def _direct_mount(directory: str, config: MountConfig) -> io.FileIO:
    try:
        fd = os.open("/dev/fuse", os.O_RDWR)
    except OSError as exc:
        raise _Fallback() from exc
    device = io.FileIO(fd, "r+b")

    if os.geteuid() != 0:
        device.close()
        raise _Fallback()

    flags, opts = split_mount_flags(config.to_map())
    options = ",".join(_flag_words(flags) + [_mount_data(fd, opts)])
    command = [
        "mount", "-i", "-t", "fuse", "-o", options,
        config.fs_name or "fuse", directory,
    ]
    try:
        result = subprocess.run(
            command, pass_fds=(fd,), capture_output=True, text=True
        )
    except OSError as exc:
        device.close()
        raise OSError(f"mount: {exc}") from exc

    if result.returncode != 0:
        device.close()
        message = result.stderr.strip()
        lowered = message.lower()
        if "permission denied" in lowered or "only root" in lowered:
            raise _Fallback()
        raise OSError(message or f"mount exited with status {result.returncode}")
    return device


def fusermount(directory: str, config: MountConfig) -> io.FileIO:
    """Mount through fusermount(1) and return the device it hands back."""
    options = config.to_options_string()
    _log.debug("cfg options string %s", options)

    parent, child = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    with parent, child:
        child_fd = child.fileno()
        env = dict(os.environ, _FUSE_COMMFD=str(child_fd))
        try:
            result = subprocess.run(
                ["fusermount", "-o", options, "--", directory],
                env=env,
                pass_fds=(child_fd,),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise OSError(f"running fusermount: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", "replace")
            raise OSError(
                f"running fusermount: exit status {result.returncode}"
                f"\n\nstderr:\n{stderr}"
            )

        try:
            _, fds, _, _ = socket.recv_fds(parent, 32, 4)
        except OSError as exc:
            raise OSError(f"ReadMsgUnix: {exc}") from exc

    if len(fds) != 1:
        for fd in fds:
            os.close(fd)
        raise OSError(f"wanted 1 fd; got {fds!r}")
    return io.FileIO(fds[0], "r+b")


def mount_device(directory: str, config: MountConfig) -> Tuple[io.FileIO, Future]:
    """Mount at ``directory`` and return the device with a ready future.

    On Linux mounting is never delayed, so the future is already resolved.
    """
    ready: Future = Future()
    ready.set_result(None)
    try:
        device = _direct_mount(directory, config)
    except _Fallback:
        device = fusermount(directory, config)
    return device, ready