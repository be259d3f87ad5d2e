"""Read the capture date and GPS position embedded in photo and video files."""

from __future__ import annotations

import io
import re
import struct
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, BinaryIO

from .assets import Metadata
from .quicktime import decode_mvhd_atom
from .search import SEARCH_BUFFER_SIZE, search_pattern

_TAG_DATE_TIME = 0x0132
_TAG_EXIF_IFD = 0x8769
_TAG_GPS_IFD = 0x8825
_TAG_DATE_TIME_ORIGINAL = 0x9003
_TAG_SUB_SEC_TIME = 0x9290
_TAG_SUB_SEC_TIME_ORIGINAL = 0x9291
_GPS_LATITUDE_REF = 1
_GPS_LATITUDE = 2
_GPS_LONGITUDE_REF = 3
_GPS_LONGITUDE = 4

_TYPE_SIZES = {1: 1, 2: 1, 3: 2, 4: 4, 5: 8, 6: 1, 7: 1, 8: 2, 9: 4, 10: 8, 11: 4, 12: 8}
_INT_FORMATS = {3: "H", 4: "I", 8: "h", 9: "i"}

_DATE_RE = re.compile(r"(\d{4}):(\d{2}):(\d{2}) (\d{2}):(\d{2}):(\d{2})")


class _ExifError(ValueError):
    """The Exif structure itself cannot be decoded."""


@dataclass
class _Exif:
    tags: dict[int, Any] = field(default_factory=dict)
    gps: dict[int, Any] = field(default_factory=dict)

    def get_string(self, tag: int, gps: bool = False) -> str:
        value = (self.gps if gps else self.tags).get(tag)
        if not isinstance(value, str):
            raise ValueError(f"exif tag {tag:#06x} not present")
        return value

    def lat_long(self) -> tuple[float, float]:
        lon = _degrees(self.gps.get(_GPS_LONGITUDE))
        lat = _degrees(self.gps.get(_GPS_LATITUDE))
        if self.get_string(_GPS_LONGITUDE_REF, gps=True) == "W":
            lon = -lon
        if self.get_string(_GPS_LATITUDE_REF, gps=True) == "S":
            lat = -lat
        return lat, lon


def _degrees(value: Any) -> float:
    if not isinstance(value, list) or len(value) < 3:
        raise ValueError("invalid GPS coordinate")
    parts = []
    for item in value[:3]:
        if not isinstance(item, tuple) or item[1] == 0:
            raise ValueError("invalid GPS coordinate")
        parts.append(item[0] / item[1])
    return parts[0] + parts[1] / 60 + parts[2] / 3600


def _convert(typ: int, count: int, raw: bytes, endian: str) -> Any:
    if typ == 2:
        return raw.split(b"\x00", 1)[0].decode("utf-8", errors="replace")
    if typ in (5, 10):
        fmt = "I" if typ == 5 else "i"
        values = struct.unpack(f"{endian}{2 * count}{fmt}", raw)
        return list(zip(values[0::2], values[1::2]))
    if typ in _INT_FORMATS:
        return list(struct.unpack(f"{endian}{count}{_INT_FORMATS[typ]}", raw))
    return raw


def _read_ifd(t: bytes, endian: str, offset: int) -> dict[int, Any]:
    if offset + 2 > len(t):
        raise _ExifError("IFD offset out of range")
    (count,) = struct.unpack_from(endian + "H", t, offset)
    end = offset + 2 + 12 * count
    if end > len(t):
        raise _ExifError("truncated IFD")
    tags: dict[int, Any] = {}
    for pos in range(offset + 2, end, 12):
        tag, typ, n = struct.unpack_from(endian + "HHI", t, pos)
        size = _TYPE_SIZES.get(typ)
        if size is None:
            continue
        length = size * n
        if length <= 4:
            raw = t[pos + 8 : pos + 8 + length]
        else:
            (value_offset,) = struct.unpack_from(endian + "I", t, pos + 8)
            if value_offset + length > len(t):
                continue
            raw = t[value_offset : value_offset + length]
        tags[tag] = _convert(typ, n, raw, endian)
    return tags


def _sub_ifd(t: bytes, endian: str, pointer: Any) -> dict[int, Any]:
    if not isinstance(pointer, list) or not pointer:
        return {}
    try:
        return _read_ifd(t, endian, pointer[0])
    except _ExifError:
        return {}


def _parse_tiff(t: bytes) -> _Exif:
    if len(t) < 8:
        raise _ExifError("TIFF header too short")
    endian = {b"II": "<", b"MM": ">"}.get(t[:2])
    if endian is None:
        raise _ExifError("invalid TIFF byte order")
    magic, ifd0 = struct.unpack_from(endian + "HI", t, 2)
    if magic != 42:
        raise _ExifError("invalid TIFF magic number")
    tags = _read_ifd(t, endian, ifd0)
    exif = _Exif(tags=dict(tags))
    exif.tags.update(_sub_ifd(t, endian, tags.get(_TAG_EXIF_IFD)))
    exif.gps = _sub_ifd(t, endian, tags.get(_TAG_GPS_IFD))
    return exif


def _jpeg_exif(data: bytes) -> bytes:
    if not data.startswith(b"\xff\xd8"):
        raise _ExifError("not a JPEG file")
    pos = 2
    while pos + 4 <= len(data):
        if data[pos] != 0xFF:
            raise _ExifError("invalid JPEG marker")
        marker = data[pos + 1]
        if marker == 0xFF:
            pos += 1
            continue
        if marker == 0x01 or 0xD0 <= marker <= 0xD8:
            pos += 2
            continue
        if marker in (0xD9, 0xDA):
            break
        (length,) = struct.unpack_from(">H", data, pos + 2)
        payload = data[pos + 4 : pos + 2 + length]
        if marker == 0xE1 and payload.startswith(b"Exif\x00\x00"):
            return payload[6:]
        pos += 2 + length
    raise _ExifError("exif: failed to find exif intro marker")


def _decode_exif(data: bytes) -> _Exif:
    head = data[:4]
    if head in (b"II*\x00", b"MM\x00*"):
        return _parse_tiff(data)
    if head == b"Exif":
        if not data.startswith(b"Exif\x00\x00"):
            raise _ExifError("exif: failed to find exif intro marker")
        return _parse_tiff(data[6:])
    return _parse_tiff(_jpeg_exif(data))


def _attach_tz(naive: datetime, tz: tzinfo | None) -> datetime:
    return naive.astimezone() if tz is None else naive.replace(tzinfo=tz)


def _read_date_time(x: _Exif, date_tag: int, sub_sec_tag: int, tz: tzinfo | None) -> datetime:
    date = x.get_string(date_tag).strip('"')
    match = _DATE_RE.fullmatch(date)
    if match is None:
        raise ValueError(f"invalid exif date: {date!r}")
    naive = datetime(*(int(g) for g in match.groups()))
    try:
        sub_sec = x.get_string(sub_sec_tag).strip('"')
    except ValueError:
        return _attach_tz(naive, tz)
    millis = (sub_sec + "000")[:3]
    if not millis.isdigit():
        raise ValueError(f"invalid exif sub-second value: {sub_sec!r}")
    return _attach_tz(naive.replace(microsecond=int(millis) * 1000), tz)


def _metadata_from_exif(x: _Exif, tz: tzinfo | None) -> Metadata:
    try:
        date = _read_date_time(x, _TAG_DATE_TIME_ORIGINAL, _TAG_SUB_SEC_TIME_ORIGINAL, tz)
    except ValueError:
        date = _read_date_time(x, _TAG_DATE_TIME, _TAG_SUB_SEC_TIME, tz)
    md = Metadata(date_taken=date)
    try:
        md.latitude, md.longitude = x.lat_long()
    except ValueError:
        pass
    return md


def _read_exif_metadata(reader: BinaryIO, tz: tzinfo | None) -> Metadata:
    data = reader.read()
    try:
        x = _decode_exif(data)
    except _ExifError:
        r = search_pattern(io.BytesIO(data), b"Exif\x00\x00", SEARCH_BUFFER_SIZE)
        x = _decode_exif(r.read())
    return _metadata_from_exif(x, tz)


def _read_heif_metadata(reader: BinaryIO, tz: tzinfo | None) -> Metadata:
    r = search_pattern(reader, b"Exif\x00\x00MM", SEARCH_BUFFER_SIZE)
    r.read_slice(6)
    return _metadata_from_exif(_decode_exif(r.read()), tz)


def _read_mp4_metadata(reader: BinaryIO) -> Metadata:
    r = search_pattern(reader, b"mvhd", SEARCH_BUFFER_SIZE)
    atom = decode_mvhd_atom(r)
    t = atom.creation_time
    if t.year < 2000:
        t = atom.modification_time
    return Metadata(date_taken=t)


def _read_cr3_metadata(reader: BinaryIO, tz: tzinfo | None) -> Metadata:
    r = search_pattern(reader, b"CMT1", SEARCH_BUFFER_SIZE)
    r.read_slice(4)
    return _metadata_from_exif(_decode_exif(r.read()), tz)


def _extension(name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    i = base.rfind(".")
    return base[i:] if i >= 0 else ""


def metadata_from_direct_read(reader: BinaryIO, name: str, local_tz: tzinfo | None) -> Metadata:
    """Read the metadata of the file name from reader.

    Dates without a time zone are taken in local_tz, or local time when it is
    None. Raise ValueError for unsupported formats and unreadable files.
    """
    ext = _extension(name).lower()
    try:
        if ext in (".heic", ".heif"):
            return _read_heif_metadata(reader, local_tz)
        if ext in (".jpg", ".jpeg", ".dng", ".cr2", ".arw", ".raf", ".nef"):
            return _read_exif_metadata(reader, local_tz)
        if ext in (".mp4", ".mov"):
            return _read_mp4_metadata(reader)
        if ext == ".cr3":
            return _read_cr3_metadata(reader, local_tz)
    except (ValueError, EOFError, struct.error) as exc:
        raise ValueError(f"can't read metadata: {exc}") from exc
    raise ValueError(f"can't read metadata for this format '{ext}'")


def get_metadata(reader: BinaryIO, name: str, local_tz: tzinfo | None) -> Metadata:
    """Read the metadata embedded in the asset file."""
    return metadata_from_direct_read(reader, name, local_tz)