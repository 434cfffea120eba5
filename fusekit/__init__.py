"""Building blocks for FUSE file systems: kernel protocol structures, message buffers and mounting."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "darwin_mount",
    "flags",
    "freelist",
    "in_message",
    "linux_mount",
    "mount",
    "mounted",
    "ops",
    "out_message",
    "protocol",
    "structs",
]