"""Read and write metadata as a JSON sidecar file."""

from __future__ import annotations

import json
from typing import TextIO

from .assets import Metadata

SOFTWARE = "photoflow"


def write(md: Metadata, stream: TextIO) -> None:
    """Write the metadata as indented JSON, tagged with the producing software."""
    document = {"software": SOFTWARE, **md.to_dict()}
    json.dump(document, stream, indent=2, ensure_ascii=False)
    stream.write("\n")


def read(stream: TextIO) -> Metadata:
    """Read metadata from a JSON sidecar; raise ValueError when it is invalid."""
    text = stream.read()
    try:
        data, _ = json.JSONDecoder().raw_decode(text.lstrip())
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON sidecar: {exc}") from exc
    return Metadata.from_dict(data)