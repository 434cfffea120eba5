"""Mounting a file system served by a Server."""

from __future__ import annotations

import abc
import logging
import os
import stat
import sys
import threading
from typing import Optional

from .config import MountConfig
from .mounted import MountedFileSystem

__all__ = ["Server", "check_mount_point", "mount"]

_log = logging.getLogger(__name__)


class Server(abc.ABC):
    """Anything that can serve ops read from a kernel device."""

    @abc.abstractmethod
    def serve_ops(self, device) -> None:
        """Serve ops from ``device`` until EOF, answering every one.

        Must not be called more than once.
        """


def check_mount_point(directory: str) -> None:
    """Make sure ``directory`` exists and is a directory."""
    try:
        info = os.stat(directory)
    except FileNotFoundError:
        raise
    except OSError as exc:
        raise OSError(f"Statting mount point: {exc}") from exc
    if not stat.S_ISDIR(info.st_mode):
        raise NotADirectoryError(f"Mount point {directory} is not a directory")


def _mount_device(directory: str, config: MountConfig):
    if sys.platform == "darwin":
        from .darwin_mount import mount_device
    elif sys.platform.startswith("linux"):
        from .linux_mount import mount_device
    else:
        raise OSError(f"mounting is not supported on {sys.platform}")
    return mount_device(directory, config)


def mount(
    directory: str,
    server: Server,
    config: Optional[MountConfig] = None,
) -> MountedFileSystem:
    """Mount a file system at ``directory`` served by ``server``.

    Blocks until the mount has completed. Serving runs in the background;
    join the returned MountedFileSystem to wait for unmounting.
    """
    config = config if config is not None else MountConfig()
    _log.info("start mounting: %s", config.options)

    check_mount_point(directory)
    mounted = MountedFileSystem(directory)

    try:
        device, ready = _mount_device(directory, config)
    except OSError as exc:
        raise OSError(f"mount: {exc}") from exc

    def serve() -> None:
        error: Optional[BaseException] = None
        try:
            server.serve_ops(device)
        except Exception as exc:  # recorded for whoever joins
            error = exc
        finally:
            try:
                device.close()
            except OSError as exc:
                error = error or exc
        mounted.finish(error)

    threading.Thread(target=serve, name=f"serve {directory}", daemon=True).start()

    try:
        ready.result()
    except Exception as exc:
        raise OSError(f"mount (background): {exc}") from exc
    return mounted