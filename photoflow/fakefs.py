"""A simulated file system built from the listings of archive files.

A listing is the output of ``unzip -l`` (or ``tar -tvz``) for one or more
archives, each introduced by an ``Archive:`` or ``Part:`` line. Files can be
walked and opened: JSON files yield plausible photo or album metadata, other
files yield random bytes of the listed size.
"""

from __future__ import annotations

import dataclasses
import io
import os
import posixpath
import re
import stat as stat_mod
import zipfile
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Iterable, TextIO

_DIR_MODE = stat_mod.S_IFDIR | 0o777
_FILE_MODE = 0o777

# Unix time of the zero time value used when a date is unknown.
_ZERO_UNIX = -62135596800

_ALBUM_METADATA_NAMES = frozenset(
    {"métadonnées.json", "metadata.json", "metadati.json", "metadáta.json", "Metadaten.json"}
)
_PLAIN_JSON_NAMES = frozenset(
    {"print-subscriptions.json", "shared_album_comments.json", "user-generated-memory-titles.json"}
)

_ALBUM_TEMPLATE = """{
  "title": "%(title)s",
  "description": "",
  "access": "",
  "date": {
    "timestamp": "0",
    "formatted": "1 janv. 1970, 00:00:00 UTC"
  },
  "geoData": {
    "latitude": 0.0,
    "longitude": 0.0,
    "altitude": 0.0,
    "latitudeSpan": 0.0,
    "longitudeSpan": 0.0
  }
}"""

_PICTURE_TEMPLATE = """{
  "title": "%(title)s",
  "description": "",
  "imageViews": "50",
  "creationTime": {
    "timestamp": "%(ts)d"
  },
  "photoTakenTime": {
    "timestamp": "%(ts)d"
  },
  "geoData": {
    "latitude": 48.0,
    "longitude": 1.0,
    "altitude": 102.86,
    "latitudeSpan": 0.0,
    "longitudeSpan": 0.0
  },
  "geoDataExif": {
    "latitude": 48.0,
    "longitude": 1.0,
    "altitude": 102.86,
    "latitudeSpan": 0.0,
    "longitudeSpan": 0.0
  },
  "url": "https://photos.example.com/photo/placeholder",
  "googlePhotosOrigin": {
    "webUpload": {
      "computerUpload": {
      }
    }
  }
}"""

_FAKE_JSON = """{
  "Nothing": ""
}"""

_ZIP_LIST_RE = re.compile(r"(-rw-r--r-- 0/0\s+)?(\d+)\s+(.{16})\s+(.*)$")
_FILES_LINE_RE = re.compile(r"^(\d+)\s+(\d+)\s+files$")
_LAYOUT_TOKEN_RE = re.compile(r"2006|01|02|15|04|05")
_LAYOUT_TOKENS = {"2006": "%Y", "01": "%m", "02": "%d", "15": "%H", "04": "%M", "05": "%S"}


@dataclass(frozen=True)
class FakeDirEntry:
    """A file or directory of a fake file system."""

    path: str
    size: int = 0
    mode: int = _FILE_MODE
    mod_time: datetime | None = None

    @property
    def name(self) -> str:
        return posixpath.basename(self.path) or self.path

    @property
    def is_dir(self) -> bool:
        return stat_mod.S_ISDIR(self.mode)


class FakeFile:
    """An opened fake file: reads stop after the listed size."""

    def __init__(self, info: FakeDirEntry, reader: BinaryIO | None) -> None:
        self._info = info
        self._reader = reader
        self._pos = 0

    def stat(self) -> FakeDirEntry:
        return self._info

    def read(self, size: int = -1) -> bytes:
        remaining = self._info.size - self._pos
        if remaining <= 0:
            return b""
        n = remaining if size is None or size < 0 else min(size, remaining)
        data = os.urandom(n) if self._reader is None else self._reader.read(n)
        self._pos += len(data)
        return data

    def close(self) -> None:
        self._pos = 0

    def __enter__(self) -> "FakeFile":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _normalize_name(name: str) -> str:
    if name != "." and not name.startswith("./"):
        return "./" + name
    return name


def _split(name: str) -> tuple[str, str]:
    i = name.rfind("/")
    return name[: i + 1], name[i + 1 :]


def _unix(d: datetime | None) -> int:
    if d is None:
        return _ZERO_UNIX
    return int(d.timestamp())


def _now() -> datetime:
    return datetime.now().astimezone()


class FakeFS:
    """A file system holding the files listed for one archive."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._files: dict[str, dict[str, FakeDirEntry]] = {}

    def stat(self, name: str) -> FakeDirEntry:
        """Return the entry of name; raise FileNotFoundError when missing."""
        name = _normalize_name(name).replace(os.sep, "/")
        directory, base = _split(name)
        directory = directory.removesuffix("/") or "."
        entries = self._files.get(directory)
        if not entries:
            raise FileNotFoundError(f"{self.name}:{name}: file does not exist")
        try:
            return entries[base]
        except KeyError:
            raise FileNotFoundError(f"{self.name}:{name}: file does not exist") from None

    def open(self, name: str) -> FakeFile:
        """Open a file; JSON files get generated content, others random bytes."""
        name = _normalize_name(name)
        info = self.stat(name)
        base = posixpath.basename(name)
        ext = posixpath.splitext(base)[1]
        if ext.lower() != ".json":
            return FakeFile(info, None)
        if base in _ALBUM_METADATA_NAMES:
            album = posixpath.basename(posixpath.dirname(name))
            text = _ALBUM_TEMPLATE % {"title": album}
        elif base in _PLAIN_JSON_NAMES:
            text = _FAKE_JSON
        else:
            title = base.removesuffix(ext)
            text = _PICTURE_TEMPLATE % {"title": title, "ts": _unix(info.mod_time)}
        data = text.encode("utf-8")
        return FakeFile(dataclasses.replace(info, size=len(data)), io.BytesIO(data))

    def read_dir(self, name: str) -> list[FakeDirEntry]:
        """List a directory, sorted by name."""
        name = _normalize_name(name)
        info = self.stat(name)
        if not info.is_dir:
            raise FileNotFoundError(f"{self.name}:{name}: not a directory")
        entries = self._files.get(name)
        if not entries:
            raise FileNotFoundError(f"{self.name}:{name}: file does not exist")
        return [entries[k] for k in sorted(entries) if k != "."]

    def _add_file(self, name: str, size: int, mod_time: datetime | None) -> None:
        name = _normalize_name(name)
        directory, base = _split(name)
        directory = directory.removesuffix("/")
        parts = directory.split("/")
        for i, part in enumerate(parts):
            if i == 0:
                self._files.setdefault(
                    ".", {".": FakeDirEntry(".", 0, _DIR_MODE, _now())}
                )
                continue
            parent = "/".join(parts[:i])
            sub = parent + "/" + part
            self._files[parent].setdefault(part, FakeDirEntry(sub, 0, _DIR_MODE, _now()))
            self._files.setdefault(sub, {".": FakeDirEntry(sub + "/.", 0, _DIR_MODE, _now())})
        self._files[directory][base] = FakeDirEntry(name, size, _FILE_MODE, mod_time)


def _layout_to_strptime(layout: str) -> str:
    escaped = layout.replace("%", "%%")
    return _LAYOUT_TOKEN_RE.sub(lambda m: _LAYOUT_TOKENS[m.group(0)], escaped)


def read_file_line(line: str, date_format: str) -> tuple[str, int, datetime | None]:
    """Parse a listing line into (name, size, modification time).

    date_format is a reference layout such as ``2006-01-02 15:04``. The name
    is empty when the line lists no file; the time is None when unreadable.
    """
    if len(line) < 30:
        return "", 0, None
    m = _ZIP_LIST_RE.search(line)
    if m is None:
        return "", 0, None
    size = int(m.group(2))
    try:
        mod_time: datetime | None = datetime.strptime(
            m.group(3), _layout_to_strptime(date_format)
        ).astimezone()
    except ValueError:
        mod_time = None
    return m.group(4), size, mod_time


def _lines(stream: TextIO | BinaryIO) -> Iterable[str]:
    for raw in stream:
        line = raw.decode("utf-8", "replace") if isinstance(raw, bytes) else raw
        yield line.rstrip("\n").removesuffix("\r")


def scan_file_list_reader(stream: TextIO | BinaryIO, date_format: str) -> list[FakeFS]:
    """Build one fake file system per archive listed in stream, sorted by name."""
    systems: dict[str, FakeFS] = {}
    current: FakeFS | None = None
    for line in _lines(stream):
        header = None
        if line.startswith("Part:"):
            header = line.removeprefix("Part:")
        elif line.startswith("Archive:"):
            header = line.removeprefix("Archive:")
        if header is not None:
            archive = header.strip()
            current = systems.setdefault(archive, FakeFS(archive))
            continue
        if _FILES_LINE_RE.match(line):
            continue
        name, size, mod_time = read_file_line(line, date_format)
        if name:
            if current is None:
                raise ValueError(f"file listed before any archive: {name}")
            current._add_file(name, size, mod_time)
    return [systems[k] for k in sorted(systems)]


def scan_string_list(date_format: str, text: str) -> list[FakeFS]:
    """Build fake file systems from a listing held in a string."""
    return scan_file_list_reader(io.StringIO(text), date_format)


def scan_file_list(name: str, date_format: str) -> list[FakeFS]:
    """Build fake file systems from a listing file, or the first file of a zip."""
    if os.path.splitext(name)[1].lower() == ".zip":
        with zipfile.ZipFile(name) as z:
            members = z.infolist()
            if not members:
                raise ValueError("zip file is empty")
            with z.open(members[0]) as f:
                return scan_file_list_reader(f, date_format)
    with open(name, encoding="utf-8") as f:
        return scan_file_list_reader(f, date_format)