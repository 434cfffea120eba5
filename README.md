# fusekit

Low-level building blocks for writing FUSE file systems in Python.

fusekit handles the plumbing between a user-space file system and the
kernel.

## What is in it

### Kernel protocol

- `fusekit.protocol.Protocol` is a protocol version `(major, minor)`. It
  compares with `lt` and `ge` and reports features with
  `has_attr_block_size`, `has_read_write_flags`, `has_getattr_flags`,
  `has_open_non_seekable`, `has_umask` and `has_invalidate`.
  `PROTO_VERSION_MIN` and `PROTO_VERSION_MAX` are 7.8 and 7.12.
- `fusekit.flags` holds the `Opcode` enum and the flag types
  `GetattrFlags`, `SetattrValid`, `OpenFlags`, `OpenResponseFlags`,
  `InitFlags`, `ReleaseFlags`, `ReadFlags` and `WriteFlags`. Their `str()`
  lists the set bits by name, joined with `+`, with leftover bits in hex
  (see `flag_string`). `OpenFlags` has `is_read_only`, `is_write_only` and
  `is_read_write`; `open_flags` converts raw kernel flags, dropping
  `O_LARGEFILE` on Linux.
- `fusekit.structs` packs and unpacks the native-endian structures
  `InHeader`, `OutHeader`, `Attr`, `EntryOut`, `AttrOut`, `InitIn`,
  `InitOut`, `OpenIn`, `OpenOut`, `ReadIn`, `WriteIn`, `WriteOut` and
  `Dirent` through `pack()`, `unpack(data)` and `size()`. `Attr` follows
  the macOS layout on macOS and the Linux layout elsewhere. The functions
  `entry_out_size`, `attr_out_size`, `mknod_in_size`, `mkdir_in_size`,
  `create_in_size`, `read_in_size`, `write_in_size` and `lk_in_size` give
  the shorter sizes that older protocol versions use.

### Message buffers

- `fusekit.in_message.InMessage.read_from(reader)` takes one request with
  a single `read`, checks that it is at least a header long and that the
  header's length matches, and then hands out the body with `consume(n)`
  and `consume_bytes(n)`; both return `None` when too few bytes remain.
- `fusekit.out_message.OutMessage` builds a reply behind an `OutHeader`
  (its `header` attribute): `reset`, `grow` (zeroed), `grow_no_zero`,
  `shrink_to`, `append`, `append_string`, `len()` and `to_bytes()`. Growing
  past `MAX_READ_SIZE` raises `BufferError`; an out-of-range `shrink_to`
  raises `ValueError`.
- `fusekit.freelist.Freelist` is a LIFO pool with `get(msg)` and
  `put(item, msg)`, logging each new high-water mark.
- `fusekit.ops` has the dataclasses `UnknownOp`, `InterruptOp` and
  `InitOp`.

### Mounting

- `fusekit.config.MountConfig` describes a mount (`fs_name`, `read_only`,
  `subtype`, `volume_name`, `enable_vnode_caching`, `options`, ...).
  `to_map()` gives the mount options for the current platform (on Linux an
  unnamed file system is called `some_fuse_file_system`) and
  `to_options_string()` joins them for the mount helper.
- `fusekit.mount.mount(directory, server, config)` checks the mount point,
  mounts, runs `server.serve_ops(device)` in a background thread and
  returns a `fusekit.mounted.MountedFileSystem`. Its `join(timeout=None)`
  waits until serving has ended and raises any error recorded while
  serving, or `TimeoutError`.
- On Linux (`fusekit.linux_mount`), when running as root the `mount`
  command is run with `/dev/fuse`; otherwise `fusermount` is used and the
  device it passes back is returned. On macOS (`fusekit.darwin_mount`) the
  first installed osxfuse is found, loaded if needed, and its mount helper
  started.

## Installing

```
pip install fusekit
```

Mounting needs FUSE on the machine: `/dev/fuse` and `fusermount` on Linux,
osxfuse on macOS.

## Example

```python
from fusekit.config import MountConfig
from fusekit.mount import Server, mount


class MyServer(Server):
    def serve_ops(self, device):
        # Read requests from `device` and answer them until EOF.
        ...


mfs = mount("/mnt/example", MyServer(), MountConfig(fs_name="examplefs"))
mfs.join()
```

Building a reply:

```python
from fusekit.out_message import OutMessage

msg = OutMessage()
msg.reset()
msg.append_string("hello")
wire = msg.to_bytes()  # zeroed header followed by b"hello"
```

## What it does not do

fusekit does not decode requests into operations, dispatch them to file
system methods or write replies for you: a `Server` receives the raw device
and must do all of that itself. There is no ready-made file system and no
unmount function; unmount with the system's tools (`fusermount -u` or
`umount`).

## Running the tests

```
pip install -e ".[test]"
pytest
```