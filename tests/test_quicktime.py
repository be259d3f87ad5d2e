import io
import struct
from datetime import datetime, timedelta, timezone

import pytest

from photoflow.quicktime import (
    EPOCH_OFFSET,
    convert_time32,
    convert_time64,
    decode_mvhd_atom,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_convert_time32_epoch():
    assert convert_time32(EPOCH_OFFSET) == EPOCH


def test_convert_time32_offset():
    assert convert_time32(EPOCH_OFFSET + 1_600_000_000) == EPOCH + timedelta(seconds=1_600_000_000)


def test_convert_time64_uses_high_word():
    assert convert_time64((EPOCH_OFFSET + 10) << 32) == EPOCH + timedelta(seconds=10)
    assert convert_time64(((EPOCH_OFFSET + 10) << 32) | 0xFFFF) == EPOCH + timedelta(seconds=10)


def test_decode_version0():
    modification = EPOCH_OFFSET + 100
    creation = EPOCH_OFFSET + 200
    data = b"mvhd" + b"\x00" + b"\x00\x00\x00" + struct.pack(">II", modification, creation)
    atom = decode_mvhd_atom(io.BytesIO(data))
    assert atom.marker == b"mvhd"
    assert atom.version == 0
    assert atom.flags == b"\x00\x00\x00"
    assert atom.modification_time == convert_time32(modification)
    assert atom.creation_time == convert_time32(creation)


def test_decode_version1():
    modification = (EPOCH_OFFSET + 300) << 32
    creation = (EPOCH_OFFSET + 400) << 32
    data = b"mvhd" + b"\x01" + b"\x00\x00\x01" + struct.pack(">QQ", modification, creation)
    atom = decode_mvhd_atom(io.BytesIO(data))
    assert atom.version == 1
    assert atom.flags == b"\x00\x00\x01"
    assert atom.modification_time == convert_time64(modification)
    assert atom.creation_time == convert_time64(creation)


def test_decode_truncated_raises():
    with pytest.raises(EOFError):
        decode_mvhd_atom(io.BytesIO(b"mvhd\x00\x00\x00\x00\x00\x01"))