import pytest

from fusekit.config import MountConfig
from fusekit.mount import Server, check_mount_point, mount


class _MinimalServer(Server):
    def __init__(self):
        self.calls = 0

    def serve_ops(self, device):
        self.calls += 1


def test_server_is_abstract():
    with pytest.raises(TypeError):
        Server()


def test_check_mount_point_accepts_directory(tmp_path):
    assert check_mount_point(str(tmp_path)) is None


def test_check_mount_point_missing(tmp_path):
    with pytest.raises(FileNotFoundError) as info:
        check_mount_point(str(tmp_path / "foo"))
    assert "no such file" in str(info.value).lower()


def test_check_mount_point_not_directory(tmp_path):
    target = tmp_path / "foo"
    target.write_bytes(b"")
    with pytest.raises(NotADirectoryError, match="is not a directory"):
        check_mount_point(str(target))


def test_nonexistent_mount_point(tmp_path):
    server = _MinimalServer()
    with pytest.raises(OSError) as info:
        mount(str(tmp_path / "foo"), server, MountConfig())
    assert "no such file" in str(info.value).lower()
    assert server.calls == 0


def test_file_as_mount_point(tmp_path):
    target = tmp_path / "foo"
    target.write_bytes(b"")
    server = _MinimalServer()
    with pytest.raises(NotADirectoryError):
        mount(str(target), server)
    assert server.calls == 0