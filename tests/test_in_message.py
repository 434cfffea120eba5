import io

import pytest

from fusekit.in_message import BUF_SIZE, MAX_WRITE_SIZE, PAGE_SIZE, InMessage
from fusekit.structs import InHeader


def _message(payload: bytes, **fields) -> bytes:
    header = InHeader(length=InHeader.size() + len(payload), **fields)
    return header.pack() + payload


def _loaded(payload: bytes, **fields) -> InMessage:
    msg = InMessage()
    msg.read_from(io.BytesIO(_message(payload, **fields)))
    return msg


def test_header_size_is_fixed_by_the_wire_format():
    assert InHeader.size() == 40


def test_buffer_holds_a_full_write_request():
    assert BUF_SIZE == PAGE_SIZE + MAX_WRITE_SIZE
    assert MAX_WRITE_SIZE in (1 << 17, 1 << 20)
    msg = InMessage()
    msg.read_from(io.BytesIO(_message(bytes(MAX_WRITE_SIZE), opcode=16)))
    assert len(msg) == MAX_WRITE_SIZE
    assert msg.header().opcode == 16


def test_read_from_parses_header():
    msg = _loaded(b"hello", opcode=15, unique=7, nodeid=1, uid=1000, gid=100, pid=42)
    header = msg.header()
    assert header == InHeader(
        length=InHeader.size() + 5,
        opcode=15,
        unique=7,
        nodeid=1,
        uid=1000,
        gid=100,
        pid=42,
    )
    assert len(msg) == 5


def test_read_requests_whole_buffer():
    class Reader:
        requested = None

        def read(self, size):
            Reader.requested = size
            return _message(b"")

    msg = InMessage()
    msg.read_from(Reader())
    assert Reader.requested == BUF_SIZE
    assert len(msg) == 0


def test_consume_walks_through_body():
    msg = _loaded(b"hello")
    assert msg.consume(2) == b"he"
    assert len(msg) == 3
    assert msg.consume_bytes(3) == b"llo"
    assert len(msg) == 0


def test_consume_too_much_returns_none_without_advancing():
    msg = _loaded(b"abc")
    assert msg.consume(4) is None
    assert msg.consume_bytes(4) is None
    assert len(msg) == 3
    assert msg.consume(3) == b"abc"


def test_consume_on_empty_body_returns_none_even_for_zero():
    msg = _loaded(b"")
    assert msg.consume(0) is None
    assert msg.consume_bytes(0) == b""


def test_short_read_raises():
    msg = InMessage()
    with pytest.raises(ValueError, match="read only 3 bytes"):
        msg.read_from(io.BytesIO(b"abc"))


def test_length_mismatch_raises():
    header = InHeader(length=InHeader.size() + 10)
    msg = InMessage()
    with pytest.raises(ValueError, match="Header says"):
        msg.read_from(io.BytesIO(header.pack() + b"xy"))


def test_empty_read_raises_eof():
    msg = InMessage()
    with pytest.raises(EOFError):
        msg.read_from(io.BytesIO(b""))


def test_reuse_resets_position():
    msg = _loaded(b"first")
    assert msg.consume(5) == b"first"
    msg.read_from(io.BytesIO(_message(b"second", opcode=3)))
    assert msg.header().opcode == 3
    assert msg.consume_bytes(6) == b"second"