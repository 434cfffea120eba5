import os

import pytest

from fusekit.flags import (
    GetattrFlags,
    InitFlags,
    Opcode,
    OpenFlags,
    OpenResponseFlags,
    ReadFlags,
    ReleaseFlags,
    SetattrValid,
    WriteFlags,
    flag_string,
    open_flags,
)


def test_flag_string_zero():
    assert flag_string(0, [(1, "A")]) == "0"


def test_flag_string_names_in_given_order():
    names = [(2, "Second"), (1, "First")]
    assert flag_string(3, names).split("+") == ["Second", "First"]


def test_flag_string_leftover_bits_in_hex():
    assert flag_string(0x40, []) == "0x40"
    assert flag_string(0x41, [(1, "One")]) == "One+0x40"


def test_init_flags_single_name():
    assert str(InitFlags(1)) == "InitAsyncRead"
    assert str(InitFlags(1 << 31)) == "InitXtimes"


def test_init_flags_combined():
    value = InitFlags((1 << 0) | (1 << 5))
    assert str(value).split("+") == ["InitAsyncRead", "InitBigWrites"]


def test_init_flags_zero():
    assert str(InitFlags(0)) == "0"


def test_init_flags_unknown_bit_keeps_hex_suffix():
    text = str(InitFlags(InitFlags.ASYNC_READ | (1 << 20)))
    assert text.startswith("InitAsyncRead+0x")
    assert int(text.split("+")[1], 16) == 1 << 20


@pytest.mark.parametrize(
    "flag, name",
    [
        (GetattrFlags.FH, "GetattrFh"),
        (SetattrValid.MODE, "SetattrMode"),
        (SetattrValid.FLAGS, "SetattrFlags"),
        (OpenResponseFlags.DIRECT_IO, "OpenDirectIO"),
        (OpenResponseFlags.PURGE_UBC, "OpenPurgeUBC"),
        (ReleaseFlags.FLUSH, "ReleaseFlush"),
        (ReadFlags.LOCK_OWNER, "ReadLockOwner"),
        (WriteFlags.CACHE, "WriteCache"),
        (WriteFlags.LOCK_OWNER, "WriteLockOwner"),
    ],
)
def test_single_flag_names(flag, name):
    assert str(flag) == name


def test_setattr_valid_bit_values():
    assert SetattrValid(1 << 9) == SetattrValid.LOCK_OWNER
    assert SetattrValid(1 << 31) == SetattrValid.FLAGS
    valid = SetattrValid((1 << 0) | (1 << 3))
    assert (valid & SetattrValid.SIZE) == SetattrValid.SIZE
    assert int(valid & SetattrValid.UID) == 0


def test_open_flags_access_mode_names():
    assert str(open_flags(os.O_RDONLY)) == "OpenReadOnly"
    assert str(open_flags(os.O_WRONLY)) == "OpenWriteOnly"
    assert str(open_flags(os.O_RDWR)) == "OpenReadWrite"


def test_open_flags_with_extra_flags():
    value = open_flags(os.O_WRONLY | os.O_CREAT)
    assert str(value) == "OpenWriteOnly+OpenCreate"


def test_open_flags_extra_flag_order():
    value = open_flags(os.O_RDWR | os.O_APPEND | os.O_CREAT)
    assert str(value).split("+") == ["OpenReadWrite", "OpenCreate", "OpenAppend"]


@pytest.mark.parametrize(
    "flag, ro, wo, rw",
    [
        (OpenFlags.READ_ONLY, True, False, False),
        (OpenFlags.WRITE_ONLY, False, True, False),
        (OpenFlags.READ_WRITE, False, False, True),
        (OpenFlags.WRITE_ONLY | OpenFlags.TRUNCATE, False, True, False),
    ],
)
def test_open_flags_access_mode_predicates(flag, ro, wo, rw):
    assert flag.is_read_only() is ro
    assert flag.is_write_only() is wo
    assert flag.is_read_write() is rw


def test_open_flags_conversion_keeps_access_mode():
    raw = int(OpenFlags.READ_WRITE | OpenFlags.CREATE)
    converted = open_flags(raw)
    assert converted.is_read_write()
    assert bool(converted & OpenFlags.CREATE)


def test_open_flags_conversion_handles_largefile_bit():
    converted = open_flags(int(OpenFlags.WRITE_ONLY) | 0x8000)
    assert converted.is_write_only()


def test_opcode_values():
    assert Opcode.INIT == 26
    assert Opcode(1) is Opcode.LOOKUP
    assert Opcode(43) is Opcode.FALLOCATE
    with pytest.raises(ValueError):
        Opcode(7)