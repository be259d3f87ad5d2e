"""A cache of collections (albums and the like) that saves new ids in batches."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Iterable, TypeVar

T = TypeVar("T")

SaveFn = Callable[[T, list], T]

_log = logging.getLogger(__name__)


class Collection(Generic[T]):
    """A collection object with the ids it holds and those not yet saved."""

    def __init__(
        self,
        collection: T,
        max_cache_size: int,
        save_fn: Callable[[T, list[str]], T],
        initial_ids: Iterable[str] = (),
        new_ids: Iterable[str] = (),
    ) -> None:
        self.collection = collection
        self._items: dict[str, None] = dict.fromkeys(initial_ids or ())
        self._new_items: dict[str, None] = dict.fromkeys(new_ids or ())
        self._save_fn = save_fn
        self._max_cache_size = max_cache_size

    def items(self) -> list[str]:
        return list(self._items)

    def new_items(self) -> list[str]:
        return list(self._new_items)

    def _add_id(self, asset_id: str) -> bool:
        if asset_id in self._items:
            return False
        self._items[asset_id] = None
        self._new_items[asset_id] = None
        if len(self._new_items) >= self._max_cache_size:
            try:
                self.collection = self._save_fn(self.collection, self.new_items())
            except Exception as exc:
                _log.debug("saving collection failed: %s", exc)
            else:
                self._new_items = {}
        return True

    def _close(self) -> None:
        try:
            self._save_fn(self.collection, self.new_items())
        except Exception as exc:
            _log.debug("saving collection failed: %s", exc)


class CollectionCache(Generic[T]):
    """Collections by key; new ids are saved once max_cache_size of them are pending."""

    def __init__(self, max_cache_size: int, save_fn: Callable[[T, list[str]], T]) -> None:
        self._max_cache_size = max_cache_size
        self._save_fn = save_fn
        self._collections: dict[str, Collection[T]] = {}
        self._lock = threading.Lock()
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("collection cache is closed")

    def new_collection(self, key: str, coll: T, ids: Iterable[str] | None) -> None:
        """Register a collection with its ids, or add the ids to an existing one."""
        with self._lock:
            self._check_open()
            existing = self._collections.get(key)
            if existing is None:
                self._collections[key] = Collection(
                    coll, self._max_cache_size, self._save_fn, ids or ()
                )
            else:
                for asset_id in ids or ():
                    existing._add_id(asset_id)

    def add_id_to_collection(self, key: str, coll: T, asset_id: str) -> bool:
        """Add an id to the collection key; return whether it was new."""
        with self._lock:
            self._check_open()
            c = self._collections.get(key)
            if c is None:
                c = Collection(coll, self._max_cache_size, self._save_fn)
                self._collections[key] = c
            return c._add_id(asset_id)

    def get_collections(self) -> dict[str, Collection[T]]:
        with self._lock:
            return dict(self._collections)

    def get_collection(self, key: str) -> tuple[T, list[str]] | None:
        """Return the collection object and its ids, or None when unknown."""
        with self._lock:
            c = self._collections.get(key)
            if c is None:
                return None
            return c.collection, c.items()

    def close(self) -> None:
        """Save the pending ids of every collection."""
        with self._lock:
            if self._closed:
                return
            for c in self._collections.values():
                c._close()
            self._closed = True