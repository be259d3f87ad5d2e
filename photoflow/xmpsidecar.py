"""Read metadata from XMP sidecar files, with the value conversions XMP needs."""

from __future__ import annotations

import math
import re
import xml.etree.ElementTree as ET
from datetime import datetime, tzinfo
from typing import Any, BinaryIO, TextIO

from .assets import Metadata, Tag

_DESCRIPTION_RE = re.compile(r"/xmpmeta/RDF/Description\[\d+\]/")
_GPS_RE = re.compile(
    r"\s*([+-]?\d+),\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)"
)
_INT_RE = re.compile(r"[+-]?\d+")
_TIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:[.,](\d+))?Z"
)


def bool_to_string(value: bool) -> str:
    return "True" if value else "False"


def string_to_bool(value: str) -> bool:
    return value.lower() == "true"


def gps_float_to_string(coordinate: float, is_latitude: bool) -> str:
    """Format a coordinate as ``DDD,MM.mmmmmk``, k being N, S, E or W."""
    negative = coordinate < 0
    coordinate = abs(coordinate)
    degrees = int(math.floor(coordinate))
    minutes = (coordinate - degrees) * 60
    if is_latitude:
        direction = "S" if negative else "N"
    else:
        direction = "W" if negative else "E"
    return f"{degrees},{minutes:08.5f}{direction}"


def gps_string_to_float(coordinate: str) -> float:
    """Parse a ``DDD,MM.mmk`` coordinate; raise ValueError when malformed."""
    direction = ""
    if coordinate:
        direction = coordinate[-1]
        coordinate = coordinate[:-1]
    match = _GPS_RE.match(coordinate)
    if match is None:
        raise ValueError(f"invalid GPS coordinate: {coordinate!r}")
    decimal = int(match.group(1)) + float(match.group(2)) / 60
    if direction in ("S", "W"):
        decimal = -decimal
    return decimal


def int_to_string(value: int) -> str:
    return str(value)


def string_to_int(value: str) -> int:
    """Parse a decimal integer; anything invalid gives 0."""
    if _INT_RE.fullmatch(value) is None:
        return 0
    return int(value)


def string_to_byte(value: str) -> int:
    """Parse an integer between 0 and 255; anything else gives 0."""
    i = string_to_int(value)
    if i < 0 or i > 255:
        return 0
    return i


def time_string_to_time(value: str, tz: tzinfo | None) -> datetime:
    """Parse ``YYYY-MM-DDThh:mm:ssZ`` in the zone tz (local time when None)."""
    match = _TIME_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"invalid XMP time: {value!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = match.group(7) or ""
    micro = int((fraction + "000000")[:6]) if fraction else 0
    naive = datetime(year, month, day, hour, minute, second, micro)
    if tz is None:
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def time_to_string(value: datetime) -> str:
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}Z"
    )


def _local_name(name: str) -> str:
    return name.rsplit("}", 1)[-1].split(":")[-1]


def _to_node(elem: ET.Element) -> Any:
    node: dict[str, Any] = {}
    for key, value in elem.attrib.items():
        node["-" + _local_name(key)] = value
    texts = [elem.text or ""]
    for child in elem:
        texts.append(child.tail or "")
        if not isinstance(child.tag, str):
            continue
        key = _local_name(child.tag)
        value = _to_node(child)
        if key in node:
            existing = node[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[key] = [existing, value]
        else:
            node[key] = value
    text = "".join(texts).strip()
    if not node:
        return text
    if text:
        node["#text"] = text
    return node


def _walk(node: dict[str, Any], md: Metadata, path: str) -> None:
    for key, value in node.items():
        p = f"{path}/{key}"
        if isinstance(value, dict):
            _walk(value, md, p)
        elif isinstance(value, list):
            for i, item in enumerate(value):
                item_path = f"{p}[{i}]"
                if isinstance(item, dict):
                    _walk(item, md, item_path)
                else:
                    _filter(md, item_path, item)
        else:
            _filter(md, p, value)


def _path_base(p: str) -> str:
    if p == "":
        return "."
    stripped = p.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _filter(md: Metadata, path: str, value: str) -> None:
    path = _DESCRIPTION_RE.sub("", path)
    if path == "DateTimeOriginal":
        try:
            md.date_taken = time_string_to_time(value, _utc())
        except ValueError:
            pass
    elif path == "ImageDescription/Alt/li/#text":
        md.description = value
    elif path == "Rating":
        md.rating = string_to_byte(value)
    elif path == "TagsList/Seq/li":
        md.tags.append(Tag(name=_path_base(value), value=value))
    elif path == "/xmpmeta/RDF/Description/GPSLatitude":
        try:
            md.latitude = gps_string_to_float(value)
        except ValueError:
            pass
    elif path == "/xmpmeta/RDF/Description/GPSLongitude":
        try:
            md.longitude = gps_string_to_float(value)
        except ValueError:
            pass


def _utc() -> tzinfo:
    from datetime import timezone

    return timezone.utc


def read_xmp(stream: BinaryIO | TextIO, md: Metadata) -> Metadata:
    """Fill md with the values found in an XMP document; raise ValueError on bad XML."""
    try:
        root = ET.parse(stream).getroot()
    except ET.ParseError as exc:
        raise ValueError(f"invalid XMP document: {exc}") from exc
    _walk({_local_name(root.tag): _to_node(root)}, md, "")
    return md