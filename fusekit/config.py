"""Options accepted when mounting a file system, and their mount-helper form."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

__all__ = [
    "MountConfig",
    "escape_options_key",
    "map_to_options_string",
]

# Without an explicit name, some systemd versions unmount the file system
# on their own, so Linux mounts always carry one.
_DEFAULT_LINUX_FSNAME = "some_fuse_file_system"

_SKIPPED_KEY_PARTS = ("shm_fname", "shm_msg_concurrency")


@dataclass
class MountConfig:
    """Optional configuration for a mount.

    ``fs_name`` is the name shown by ``mount``; ``read_only`` mounts the file
    system read-only; ``disable_writeback_caching`` (Linux) makes every
    write(2) reach the file system before returning;
    ``enable_vnode_caching`` (macOS) drops the ``novncache`` option;
    ``volume_name`` (macOS) names the volume in the Finder; ``options`` are
    extra key=value mount options passed through unchanged; ``subtype`` sets
    the type shown as ``fuse.<subtype>``.
    """

    fs_name: str = ""
    read_only: bool = False
    error_logger: Optional[logging.Logger] = None
    debug_logger: Optional[logging.Logger] = None
    disable_writeback_caching: bool = False
    enable_vnode_caching: bool = False
    volume_name: str = ""
    options: Dict[str, str] = field(default_factory=dict)
    subtype: str = ""

    def to_map(self) -> Dict[str, str]:
        """All key=value mount options to give to the mount helper."""
        platform = sys.platform
        is_darwin = platform == "darwin"

        # Enable permission checking in the kernel.
        opts: Dict[str, str] = {"default_permissions": ""}

        fsname = self.fs_name
        if platform.startswith("linux") and not fsname:
            fsname = _DEFAULT_LINUX_FSNAME
        if fsname:
            opts["fsname"] = fsname

        if self.subtype:
            opts["subtype"] = self.subtype

        if self.read_only:
            opts["ro"] = ""

        if is_darwin:
            if not self.enable_vnode_caching:
                opts["novncache"] = ""
            if self.volume_name:
                opts["volname"] = self.volume_name
            # Keep "Apple Double" files out of the file system.
            opts["noappledouble"] = ""

        opts.update(self.options)
        return opts

    def to_options_string(self) -> str:
        """The options as a single string suitable for the mount helper."""
        return map_to_options_string(self.to_map())


def escape_options_key(key: str) -> str:
    """Escape backslashes and commas in an option key."""
    return key.replace("\\", "\\\\").replace(",", "\\,")


def map_to_options_string(opts: Mapping[str, str]) -> str:
    """Join options as ``key`` or ``key=value``, separated by commas."""
    components = []
    for key, value in opts.items():
        key = escape_options_key(key)
        if any(part in key for part in _SKIPPED_KEY_PARTS):
            continue
        components.append(f"{key}={value}" if value else key)
    return ",".join(components)