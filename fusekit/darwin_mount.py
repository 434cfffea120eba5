"""Mounting on macOS through an installed osxfuse."""

from __future__ import annotations

import errno
import io
import itertools
import os
import subprocess
import sys
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import List, Tuple

from .config import MountConfig
from .in_message import MAX_WRITE_SIZE

__all__ = [
    "NoAvailableDevicesError",
    "OsxfuseNotLoadedError",
    "OsxfuseNotFoundError",
    "OsxfuseInstallation",
    "OSXFUSE_INSTALLATIONS",
    "load_osxfuse",
    "open_osxfuse_dev",
    "check_darwin_options",
    "call_mount",
    "mount_device",
]


class NoAvailableDevicesError(OSError):
    """Every fuse device is in use."""


class OsxfuseNotLoadedError(OSError):
    """No fuse device exists, so the kernel extension is not loaded."""


class OsxfuseNotFoundError(OSError):
    """No osxfuse installation was found."""


@dataclass(frozen=True)
class OsxfuseInstallation:
    """The paths used by one installed osxfuse version."""

    device_prefix: str
    load: str
    mount: str
    daemon_var: str


OSXFUSE_INSTALLATIONS: List[OsxfuseInstallation] = [
    OsxfuseInstallation(
        device_prefix="/dev/osxfuse",
        load="/Library/Filesystems/osxfuse.fs/Contents/Resources/load_osxfuse",
        mount="/Library/Filesystems/osxfuse.fs/Contents/Resources/mount_osxfuse",
        daemon_var="MOUNT_OSXFUSE_DAEMON_PATH",
    ),
    OsxfuseInstallation(
        device_prefix="/dev/osxfuse",
        load="/Library/Filesystems/osxfusefs.fs/Support/load_osxfusefs",
        mount="/Library/Filesystems/osxfusefs.fs/Support/mount_osxfusefs",
        daemon_var="MOUNT_FUSEFS_DAEMON_PATH",
    ),
]


def load_osxfuse(binary: str) -> None:
    """Run the load helper from the root directory; raise if it fails."""
    subprocess.run([binary], cwd="/", check=True)


def open_osxfuse_dev(prefix: str) -> io.FileIO:
    """Open the first free device named ``prefix`` followed by a number."""
    for i in itertools.count():
        path = f"{prefix}{i}"
        try:
            return open(path, "r+b", buffering=0)
        except FileNotFoundError:
            if i == 0:
                raise OsxfuseNotLoadedError("osxfuse is not loaded") from None
            raise NoAvailableDevicesError("no available fuse devices") from None
        except OSError as exc:
            if exc.errno == errno.EBUSY:
                continue
            raise
    raise AssertionError("unreachable")


def check_darwin_options(config: MountConfig) -> None:
    """Reject options with commas, which the mount helper cannot escape."""
    for key, value in config.to_map().items():
        if "," in key or "," in value:
            raise ValueError(
                f"mount options cannot contain commas on darwin: {key!r}={value!r}"
            )


def call_mount(
    binary: str,
    daemon_var: str,
    directory: str,
    config: MountConfig,
    device,
) -> Future:
    """Start the mount helper on ``device``; the future resolves when it exits."""
    check_darwin_options(config)

    fd = device.fileno()
    command = [
        binary,
        "-o", config.to_options_string(),
        # The kext splits writes larger than this; it ignores max_write.
        "-o", f"iosize={MAX_WRITE_SIZE}",
        str(fd),
        directory,
    ]
    env = dict(os.environ)
    env["MOUNT_FUSEFS_CALL_BY_LIB"] = ""
    env["MOUNT_OSXFUSE_CALL_BY_LIB"] = ""
    if daemon_var:
        env[daemon_var] = sys.argv[0]

    process = subprocess.Popen(
        command,
        env=env,
        pass_fds=(fd,),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
    )

    ready: Future = Future()

    def wait() -> None:
        output, _ = process.communicate()
        code = process.returncode
        if code == 0:
            ready.set_result(None)
            return
        text = output.rstrip(b"\n").decode("utf-8", "replace")
        message = f"exit status {code}"
        if text:
            message = f"{message}: {text}"
        ready.set_exception(OSError(message))

    threading.Thread(target=wait, daemon=True).start()
    return ready


def mount_device(directory: str, config: MountConfig) -> Tuple[io.FileIO, Future]:
    """Mount through the first osxfuse installation found.

    Returns the device and a future that resolves once mounting completes.
    """
    for loc in OSXFUSE_INSTALLATIONS:
        if not os.path.exists(loc.mount):
            continue

        try:
            device = open_osxfuse_dev(loc.device_prefix)
        except OsxfuseNotLoadedError:
            try:
                load_osxfuse(loc.load)
            except (OSError, subprocess.SubprocessError) as exc:
                raise OSError(f"loadOSXFUSE: {exc}") from exc
            try:
                device = open_osxfuse_dev(loc.device_prefix)
            except OSError as exc:
                raise OSError(f"openOSXFUSEDev: {exc}") from exc
        except OSError as exc:
            raise OSError(f"openOSXFUSEDev: {exc}") from exc

        try:
            ready = call_mount(loc.mount, loc.daemon_var, directory, config, device)
        except (OSError, ValueError) as exc:
            device.close()
            raise OSError(f"callMount: {exc}") from exc
        return device, ready

    raise OsxfuseNotFoundError("cannot locate OSXFUSE")