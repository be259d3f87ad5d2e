"""Decode the creation dates of a QuickTime/MP4 movie header (mvhd atom)."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import BinaryIO

from .search import SliceReader

# Seconds between 1904-01-01 and 1970-01-01.
EPOCH_OFFSET = 2082844800

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class MvhdAtom:
    """The leading fields of an mvhd atom."""

    marker: bytes
    version: int
    flags: bytes
    creation_time: datetime
    modification_time: datetime


def convert_time32(timestamp: int) -> datetime:
    """Convert a 32 bit time counted from 1904 to a UTC datetime."""
    return _UNIX_EPOCH + timedelta(seconds=timestamp - EPOCH_OFFSET)


def convert_time64(timestamp: int) -> datetime:
    """Convert a 64 bit time field, whose high word holds the seconds from 1904."""
    return _UNIX_EPOCH + timedelta(seconds=(timestamp >> 32) - EPOCH_OFFSET)


def decode_mvhd_atom(reader: BinaryIO | SliceReader) -> MvhdAtom:
    """Decode an mvhd atom starting at its marker; raise EOFError when truncated."""
    r = reader if isinstance(reader, SliceReader) else SliceReader(reader)
    marker = r.read_slice(4)
    version = r.read_slice(1)[0]
    flags = r.read_slice(3)
    if version == 0:
        (modification,) = struct.unpack(">I", r.read_slice(4))
        (creation,) = struct.unpack(">I", r.read_slice(4))
        modification_time = convert_time32(modification)
        creation_time = convert_time32(creation)
    else:
        (modification,) = struct.unpack(">Q", r.read_slice(8))
        (creation,) = struct.unpack(">Q", r.read_slice(8))
        modification_time = convert_time64(modification)
        creation_time = convert_time64(creation)
    return MvhdAtom(
        marker=marker,
        version=version,
        flags=flags,
        creation_time=creation_time,
        modification_time=modification_time,
    )