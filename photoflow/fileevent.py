"""Record and report the events that happen to the files being processed."""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any


class Code(enum.IntEnum):
    """Kinds of events recorded for a file."""

    NOT_HANDLED = 0
    DISCOVERED_IMAGE = 1
    DISCOVERED_VIDEO = 2
    DISCOVERED_SIDECAR = 3
    DISCOVERED_DISCARDED = 4
    DISCOVERED_UNSUPPORTED = 5
    DISCOVERED_USELESS = 6

    ANALYSIS_ASSOCIATED_METADATA = 7
    ANALYSIS_MISSING_ASSOCIATED_METADATA = 8
    ANALYSIS_LOCAL_DUPLICATE = 9

    UPLOAD_NOT_SELECTED = 10
    UPLOAD_UPGRADED = 11
    UPLOAD_SERVER_DUPLICATE = 12
    UPLOAD_SERVER_BETTER = 13
    UPLOAD_ALBUM_CREATED = 14
    UPLOAD_ADD_TO_ALBUM = 15
    UPLOAD_LI = 16
    UPLOAD_SERVER_ERROR = 17

    UPLOADED = 18
    STACKED = 19
    LIVE_PHOTO = 20
    METADATA = 21
    INFO = 22

    WRITTEN = 23

    TAGGED = 24

    ERROR = 25
    MAX_CODE = 26

    def __str__(self) -> str:
        return _DESCRIPTIONS.get(self, f"unknown event code: {int(self)}")


_DESCRIPTIONS: dict[Code, str] = {
    Code.NOT_HANDLED: "Not handled",
    Code.DISCOVERED_IMAGE: "scanned image file",
    Code.DISCOVERED_VIDEO: "scanned video file",
    Code.DISCOVERED_SIDECAR: "scanned sidecar file",
    Code.DISCOVERED_DISCARDED: "discarded file",
    Code.DISCOVERED_UNSUPPORTED: "unsupported file",
    Code.DISCOVERED_USELESS: "useless file",
    Code.ANALYSIS_ASSOCIATED_METADATA: "associated metadata file",
    Code.ANALYSIS_MISSING_ASSOCIATED_METADATA: "missing associated metadata file",
    Code.ANALYSIS_LOCAL_DUPLICATE: "file duplicated in the input",
    Code.UPLOAD_NOT_SELECTED: "file not selected",
    Code.UPLOAD_UPGRADED: "server's asset upgraded with the input",
    Code.UPLOAD_ADD_TO_ALBUM: "added to an album",
    Code.UPLOAD_SERVER_DUPLICATE: "server has same asset",
    Code.UPLOAD_SERVER_BETTER: "server has a better asset",
    Code.UPLOAD_ALBUM_CREATED: "album created/updated",
    Code.UPLOAD_SERVER_ERROR: "upload error",
    Code.UPLOADED: "uploaded",
    Code.STACKED: "Stacked",
    Code.LIVE_PHOTO: "Live photo",
    Code.METADATA: "Metadata files",
    Code.INFO: "Info",
    Code.WRITTEN: "Written",
    Code.TAGGED: "Tagged",
    Code.ERROR: "error",
}

_LOG_LEVELS: dict[Code, int] = {
    Code.DISCOVERED_IMAGE: logging.INFO,
    Code.DISCOVERED_VIDEO: logging.INFO,
    Code.DISCOVERED_DISCARDED: logging.WARNING,
    Code.DISCOVERED_UNSUPPORTED: logging.WARNING,
    Code.DISCOVERED_USELESS: logging.WARNING,
    Code.ANALYSIS_ASSOCIATED_METADATA: logging.INFO,
    Code.ANALYSIS_MISSING_ASSOCIATED_METADATA: logging.WARNING,
    Code.ANALYSIS_LOCAL_DUPLICATE: logging.WARNING,
    Code.UPLOAD_NOT_SELECTED: logging.WARNING,
    Code.UPLOAD_UPGRADED: logging.INFO,
    Code.UPLOAD_SERVER_BETTER: logging.INFO,
    Code.UPLOAD_ALBUM_CREATED: logging.INFO,
    Code.UPLOAD_SERVER_ERROR: logging.ERROR,
    Code.UPLOADED: logging.INFO,
    Code.STACKED: logging.INFO,
    Code.LIVE_PHOTO: logging.INFO,
    Code.METADATA: logging.INFO,
    Code.INFO: logging.INFO,
    Code.WRITTEN: logging.INFO,
    Code.TAGGED: logging.INFO,
    Code.ERROR: logging.ERROR,
}

_ANALYSIS_CODES = (
    Code.DISCOVERED_IMAGE,
    Code.DISCOVERED_VIDEO,
    Code.DISCOVERED_SIDECAR,
    Code.DISCOVERED_DISCARDED,
    Code.DISCOVERED_UNSUPPORTED,
    Code.ANALYSIS_LOCAL_DUPLICATE,
    Code.ANALYSIS_ASSOCIATED_METADATA,
    Code.ANALYSIS_MISSING_ASSOCIATED_METADATA,
)

_UPLOAD_CODES = (
    Code.UPLOADED,
    Code.UPLOAD_SERVER_ERROR,
    Code.UPLOAD_NOT_SELECTED,
    Code.UPLOAD_UPGRADED,
    Code.UPLOAD_SERVER_DUPLICATE,
    Code.UPLOAD_SERVER_BETTER,
)


class Counts(list):
    """A count per event code."""

    def set(self, code: Code, value: int) -> "Counts":
        self[int(code)] = value
        return self

    def value(self) -> list[int]:
        return list(self[: Code.MAX_CODE])


def new_counts() -> Counts:
    """Return a zeroed count for every code."""
    return Counts([0] * Code.MAX_CODE)


def is_equal_counts(a: list[int], b: list[int]) -> bool:
    """Tell whether two count lists hold the same values in the same order."""
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))


def _log_value(obj: Any) -> Any:
    method = getattr(obj, "log_value", None)
    return method() if callable(method) else obj


def _format_pairs(args: list[Any]) -> str:
    parts = []
    for i in range(0, len(args) - 1, 2):
        parts.append(f"{args[i]}={args[i + 1]}")
    if len(args) % 2:
        parts.append(f"!BADKEY={args[-1]}")
    return " ".join(parts)


class Recorder:
    """Counts events per code and logs them."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._counts = [0] * Code.MAX_CODE
        self._lock = threading.Lock()
        self.logger = logger

    def record(self, code: Code, file: Any, *args: Any) -> None:
        """Count one event; log it with the file and key/value arguments."""
        code = Code(code)
        with self._lock:
            self._counts[code] += 1
        if self.logger is None:
            return
        level = _LOG_LEVELS.get(code, logging.INFO)
        items = list(args)
        if file is not None:
            items = ["file", _log_value(file), *items]
        for a in items:
            if isinstance(a, str) and a == "error":
                level = logging.ERROR
                break
            if isinstance(a, str) and a == "warning":
                level = logging.WARNING
                break
        message = str(code)
        pairs = _format_pairs(items)
        if pairs:
            message = f"{message} {pairs}"
        self.logger.log(level, "%s", message)

    def set_logger(self, logger: logging.Logger | None) -> None:
        self.logger = logger

    def report(self) -> str:
        """Print and log the summary of the counts; return its text."""
        counts = self.get_counts()
        lines: list[str] = []

        count_analysis = sum(counts[c] for c in _ANALYSIS_CODES)
        if count_analysis > 0:
            lines.append("\n")
            lines.append("Input analysis:\n")
            lines.append("---------------\n")
            for c in _ANALYSIS_CODES:
                lines.append(f"{str(c):<40}: {counts[c]:7d}\n")
            lines.append("\n")

        count_upload = sum(counts[c] for c in _UPLOAD_CODES)
        if count_upload > 0:
            lines.append("Uploading:\n")
            lines.append("----------\n")
            for c in _UPLOAD_CODES:
                lines.append(f"{str(c):<40}: {counts[c]:7d}\n")
            print("".join(lines))

        text = "".join(lines)
        if (count_upload > 0 or count_analysis > 0) and self.logger is not None:
            for line in text.split("\n"):
                self.logger.info("%s", line)
        return text

    def get_counts(self) -> list[int]:
        with self._lock:
            return list(self._counts)

    def total_assets(self) -> int:
        counts = self.get_counts()
        return counts[Code.DISCOVERED_IMAGE] + counts[Code.DISCOVERED_VIDEO]

    def total_processed_gp(self) -> int:
        counts = self.get_counts()
        return (
            counts[Code.ANALYSIS_ASSOCIATED_METADATA]
            + counts[Code.ANALYSIS_MISSING_ASSOCIATED_METADATA]
            + counts[Code.DISCOVERED_DISCARDED]
        )

    def total_processed(self, forced_missing_json: bool) -> int:
        counts = self.get_counts()
        total = sum(counts[c] for c in _UPLOAD_CODES)
        total += counts[Code.DISCOVERED_DISCARDED] + counts[Code.ANALYSIS_LOCAL_DUPLICATE]
        if not forced_missing_json:
            total += counts[Code.ANALYSIS_MISSING_ASSOCIATED_METADATA]
        return total