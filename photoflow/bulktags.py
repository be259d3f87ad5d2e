"""Tag assets on the server in batches, one batch per tag."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

BULK_BATCH_SIZE = 100


class BulkTagManager:
    """Collect asset ids per tag and send them to the server in batches.

    The client provides ``upsert_tags(tags)``, returning objects with an
    ``id`` attribute, and ``bulk_tag_assets(tag_ids, asset_ids)``.
    """

    def __init__(self, client: Any, logger: logging.Logger | None = None) -> None:
        self._client = client
        self._logger = logger or logging.getLogger(__name__)
        self._tags: dict[str, list[str]] = {}
        self._tag_ids: dict[str, str] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=4)
        self._futures: list[Future] = []
        self._closed = False

    def add_tag(self, tag: str, asset_id: str) -> None:
        """Queue the asset for the tag; empty values are ignored."""
        if not tag or not asset_id:
            return
        with self._lock:
            if self._closed:
                raise RuntimeError("bulk tag manager is closed")
            ids = self._tags.setdefault(tag, [])
            ids.append(asset_id)
            if len(ids) >= BULK_BATCH_SIZE:
                self._flush_tag(tag)

    def close(self) -> None:
        """Send every pending batch and wait for the server calls to finish."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for tag in list(self._tags):
                self._flush_tag(tag)
        wait(self._futures)
        self._executor.shutdown(wait=True)

    def _flush_tag(self, tag: str) -> None:
        if tag not in self._tags:
            return
        ids = self._tags[tag]
        self._tags[tag] = []

        tag_id = self._tag_ids.get(tag)
        if tag_id is None:
            try:
                tags = self._client.upsert_tags([tag])
            except Exception as exc:
                self._logger.error("Error upserting tag: Tag=%s error=%s", tag, exc)
                return
            if not tags or not getattr(tags[0], "id", ""):
                self._logger.error("Error upserting tag: Tag=%s error=no tag ID returned", tag)
                return
            tag_id = tags[0].id
            self._tag_ids[tag] = tag_id
        self._futures.append(self._executor.submit(self._tag_assets, tag, tag_id, ids))

    def _tag_assets(self, tag: str, tag_id: str, ids: list[str]) -> None:
        try:
            self._client.bulk_tag_assets([tag_id], ids)
        except Exception as exc:
            self._logger.error("Error tagging assets with tag: Tag=%s error=%s", tag, exc)