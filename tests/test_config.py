from unittest import mock

from fusekit.config import MountConfig, escape_options_key, map_to_options_string


def test_linux_default_map():
    with mock.patch("sys.platform", "linux"):
        opts = MountConfig().to_map()
    assert opts == {
        "default_permissions": "",
        "fsname": "some_fuse_file_system",
    }


def test_linux_default_options_string():
    with mock.patch("sys.platform", "linux"):
        text = MountConfig().to_options_string()
    assert text == "default_permissions,fsname=some_fuse_file_system"


def test_linux_explicit_name_subtype_and_read_only():
    config = MountConfig(fs_name="myfs", subtype="sub", read_only=True)
    with mock.patch("sys.platform", "linux"):
        opts = config.to_map()
    assert opts["fsname"] == "myfs"
    assert opts["subtype"] == "sub"
    assert opts["ro"] == ""
    assert "novncache" not in opts
    assert "noappledouble" not in opts


def test_darwin_defaults():
    with mock.patch("sys.platform", "darwin"):
        opts = MountConfig().to_map()
    assert "fsname" not in opts
    assert opts["novncache"] == ""
    assert opts["noappledouble"] == ""
    assert opts["default_permissions"] == ""


def test_darwin_vnode_caching_and_volume_name():
    config = MountConfig(enable_vnode_caching=True, volume_name="Vol")
    with mock.patch("sys.platform", "darwin"):
        opts = config.to_map()
    assert "novncache" not in opts
    assert opts["volname"] == "Vol"


def test_user_options_override():
    config = MountConfig(options={"fsname": "override", "allow_other": ""})
    with mock.patch("sys.platform", "linux"):
        opts = config.to_map()
    assert opts["fsname"] == "override"
    assert opts["allow_other"] == ""


def test_escape_options_key():
    assert escape_options_key("a,b") == "a\\,b"
    assert escape_options_key("a\\b") == "a\\\\b"
    assert escape_options_key("plain") == "plain"


def test_map_to_options_string_forms():
    assert map_to_options_string({"a": "", "b": "c"}) == "a,b=c"
    assert map_to_options_string({}) == ""


def test_map_to_options_string_escapes_keys_only():
    assert map_to_options_string({"x,y": "v,w"}) == "x\\,y=v,w"


def test_map_to_options_string_skips_shm_keys():
    opts = {"shm_fname": "f", "shm_msg_concurrency": "4", "keep": ""}
    assert map_to_options_string(opts) == "keep"