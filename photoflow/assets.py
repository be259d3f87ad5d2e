"""Assets, albums, tags, metadata and asset groups."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _path_base(p: str) -> str:
    """Return the last element of a slash separated path."""
    if p == "":
        return "."
    stripped = p.rstrip("/")
    if stripped == "":
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _format_time(t: datetime) -> str:
    text = t.isoformat()
    offset = t.utcoffset()
    if offset is not None and offset.total_seconds() == 0:
        text = text[: -len("+00:00")] + "Z"
    return text


def _parse_time(value: Any, key: str) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"invalid time for {key!r}: {value!r}")
    text = value
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"invalid time for {key!r}: {value!r}") from exc


@dataclass
class Album:
    """An album an asset belongs to."""

    id: str = ""
    title: str = ""
    description: str = ""
    latitude: float = 0.0
    longitude: float = 0.0

    def log_value(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.title:
            out["title"] = self.title
        if self.description:
            out["description"] = self.description
        if self.latitude:
            out["latitude"] = self.latitude
        if self.longitude:
            out["longitude"] = self.longitude
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "Album":
        if not isinstance(data, dict):
            raise ValueError(f"invalid album: {data!r}")
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            latitude=float(data.get("latitude") or 0.0),
            longitude=float(data.get("longitude") or 0.0),
        )


@dataclass
class Tag:
    """A tag: value is the full path, name its leaf."""

    id: str = ""
    name: str = ""
    value: str = ""

    def log_value(self) -> str:
        return self.value

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value} if self.value else {}

    @classmethod
    def from_dict(cls, data: Any) -> "Tag":
        if not isinstance(data, dict):
            raise ValueError(f"invalid tag: {data!r}")
        return cls(value=str(data.get("value") or ""))


def _new_tag(tag: str) -> Tag:
    return Tag(name=_path_base(tag), value=tag)


@dataclass
class Metadata:
    """Metadata of an asset, from a sidecar, the file itself or an application."""

    file: Any = None
    file_name: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    file_date: datetime | None = None
    date_taken: datetime | None = None
    description: str = ""
    albums: list[Album] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    rating: int = 0
    trashed: bool = False
    archived: bool = False
    favorited: bool = False
    from_partner: bool = False

    def log_value(self) -> dict[str, Any]:
        gps = None
        if self.latitude != 0 or self.longitude != 0:
            gps = {
                "latitude": f"{self.latitude:.0f}.xxxx",
                "longitude": f"{self.longitude:.0f}.xxxx",
            }
        return {
            "GPS coordinates": gps,
            "fileName": self.file,
            "dateTaken": self.date_taken,
            "description": self.description,
            "rating": int(self.rating),
            "trashed": self.trashed,
            "archived": self.archived,
            "favorited": self.favorited,
            "fromPartner": self.from_partner,
            "albums": [a.log_value() for a in self.albums],
            "tags": [t.log_value() for t in self.tags],
        }

    def is_set(self) -> bool:
        return (
            self.description != ""
            or self.date_taken is not None
            or self.latitude != 0
            or self.longitude != 0
        )

    def add_tag(self, tag: str) -> None:
        if any(t.value == tag for t in self.tags):
            return
        self.tags.append(_new_tag(tag))

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON representation, leaving out empty fields."""
        out: dict[str, Any] = {}
        if self.file_name:
            out["fileName"] = self.file_name
        if self.latitude:
            out["latitude"] = self.latitude
        if self.longitude:
            out["longitude"] = self.longitude
        if self.file_date is not None:
            out["fileDate"] = _format_time(self.file_date)
        if self.date_taken is not None:
            out["dateTaken"] = _format_time(self.date_taken)
        if self.description:
            out["description"] = self.description
        if self.albums:
            out["albums"] = [a.to_dict() for a in self.albums]
        if self.tags:
            out["tags"] = [t.to_dict() for t in self.tags]
        if self.rating:
            out["rating"] = int(self.rating)
        if self.trashed:
            out["trashed"] = True
        if self.archived:
            out["archived"] = True
        if self.favorited:
            out["favorited"] = True
        if self.from_partner:
            out["fromPartner"] = True
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "Metadata":
        if not isinstance(data, dict):
            raise ValueError("metadata must be a JSON object")
        md = cls()
        md.file_name = str(data.get("fileName") or "")
        md.latitude = float(data.get("latitude") or 0.0)
        md.longitude = float(data.get("longitude") or 0.0)
        if data.get("fileDate") is not None:
            md.file_date = _parse_time(data["fileDate"], "fileDate")
        if data.get("dateTaken") is not None:
            md.date_taken = _parse_time(data["dateTaken"], "dateTaken")
        md.description = str(data.get("description") or "")
        md.albums = [Album.from_dict(a) for a in data.get("albums") or []]
        md.tags = [Tag.from_dict(t) for t in data.get("tags") or []]
        rating = data.get("rating") or 0
        if isinstance(rating, bool) or not isinstance(rating, int) or not 0 <= rating <= 255:
            raise ValueError(f"invalid rating: {rating!r}")
        md.rating = rating
        md.trashed = bool(data.get("trashed", False))
        md.archived = bool(data.get("archived", False))
        md.favorited = bool(data.get("favorited", False))
        md.from_partner = bool(data.get("fromPartner", False))
        return md


def unmarshal_metadata(data: bytes | str) -> Metadata:
    """Decode metadata from its JSON form; raise ValueError when invalid."""
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid metadata JSON: {exc}") from exc
    return Metadata.from_dict(raw)


class Kind(enum.IntEnum):
    """Probable kind of series an image belongs to."""

    NONE = 0
    BURST = 1
    EDITED = 2
    PORTRAIT = 3
    NIGHT = 4
    MOTION = 5
    LONG_EXPOSURE = 6


@dataclass
class NameInfo:
    """Information inferred from the original file name."""

    base: str = ""
    ext: str = ""
    radical: str = ""
    type: str = ""
    kind: Kind = Kind.NONE
    index: int = 0
    taken: datetime | None = None
    is_cover: bool = False
    is_modified: bool = False


@dataclass(eq=False)
class Asset:
    """A file to be handled as a photo or video asset."""

    file: Any = None
    file_date: datetime | None = None
    id: str = ""
    checksum: str = ""
    original_file_name: str = ""
    description: str = ""
    file_size: int = 0
    capture_date: datetime | None = None
    trashed: bool = False
    archived: bool = False
    from_partner: bool = False
    favorite: bool = False
    rating: int = 0
    albums: list[Album] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    name_info: NameInfo = field(default_factory=NameInfo)
    from_side_car: Metadata | None = None
    from_source_file: Metadata | None = None
    from_application: Metadata | None = None
    latitude: float = 0.0
    longitude: float = 0.0

    def set_name_info(self, name_info: NameInfo) -> None:
        self.name_info = name_info

    def use_metadata(self, md: Metadata | None) -> Metadata | None:
        """Copy the metadata fields onto the asset and return the metadata."""
        if md is None:
            return None
        self.description = md.description
        self.latitude = md.latitude
        self.longitude = md.longitude
        self.capture_date = md.date_taken
        self.from_partner = md.from_partner
        self.trashed = md.trashed
        self.archived = md.archived
        self.favorite = md.favorited
        self.rating = int(md.rating)
        self.merge_albums(md.albums)
        self.merge_tags(md.tags)
        return md

    def device_asset_id(self) -> str:
        return f"{_path_base(self.original_file_name)}-{self.file_size}"

    def log_value(self) -> dict[str, Any]:
        return {
            "FileName": self.file,
            "FileDate": self.file_date,
            "Description": self.description,
            "Title": self.original_file_name,
            "FileSize": self.file_size,
            "ID": self.id,
            "CaptureDate": self.capture_date,
            "Trashed": self.trashed,
            "Archived": self.archived,
            "FromPartner": self.from_partner,
            "Favorite": self.favorite,
            "Stars": self.rating,
            "Latitude": f"{self.latitude:.0f}.xxxxx",
            "Longitude": f"{self.longitude:.0f}.xxxxx",
        }

    def merge_albums(self, albums: list[Album]) -> None:
        for album in albums:
            if not any(existing.title == album.title for existing in self.albums):
                self.albums.append(album)

    def merge_tags(self, tags: list[Tag]) -> None:
        for tag in tags:
            if not any(existing.name == tag.name for existing in self.tags):
                self.tags.append(tag)

    def add_tag(self, tag: str) -> None:
        if any(t.value == tag for t in self.tags):
            return
        self.tags.append(_new_tag(tag))


class GroupBy(enum.IntEnum):
    """How the assets of a group were gathered."""

    NONE = 0
    BURST = 1
    RAW_JPG = 2
    HEIC_JPG = 3
    OTHER = 4


@dataclass
class RemovedAsset:
    """An asset taken out of a group, with the reason."""

    asset: Asset
    reason: str


@dataclass
class Group:
    """A set of assets that belong together, with one cover."""

    grouping: GroupBy = GroupBy.NONE
    assets: list[Asset | None] = field(default_factory=list)
    removed: list[RemovedAsset] = field(default_factory=list)
    cover_index: int = 0

    def add_asset(self, asset: Asset) -> None:
        self.assets.append(asset)

    def remove_asset(self, asset: Asset, reason: str) -> None:
        for i, a in enumerate(self.assets):
            if a is asset:
                self.removed.append(RemovedAsset(asset=a, reason=reason))
                del self.assets[i]
                return

    def set_cover(self, index: int) -> "Group":
        self.cover_index = index
        return self

    def validate(self) -> None:
        """Raise ValueError when the group is not usable."""
        if not self.assets:
            raise ValueError("empty group")
        if any(a is None for a in self.assets):
            raise ValueError("nil asset in group")
        if self.cover_index < 0 or self.cover_index > len(self.assets):
            raise ValueError("cover index out of range")