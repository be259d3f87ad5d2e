import logging
import threading

import pytest

from photoflow.assets import Tag
from photoflow.bulktags import BulkTagManager


class MockClient:
    def __init__(self, upsert_result=None, upsert_error=None):
        self.lock = threading.Lock()
        self.assets = {}
        self.upsert_count = {}
        self.calls = []
        self.duplicates = []
        self.upsert_result = upsert_result
        self.upsert_error = upsert_error

    def upsert_tags(self, tags):
        if self.upsert_error is not None:
            raise self.upsert_error
        if self.upsert_result is not None:
            return self.upsert_result
        with self.lock:
            out = []
            for tag in tags:
                tag_id = tag + "ID"
                self.upsert_count[tag_id] = self.upsert_count.get(tag_id, 0) + 1
                out.append(Tag(id=tag_id, name=tag, value=tag))
            return out

    def bulk_tag_assets(self, tag_ids, asset_ids):
        with self.lock:
            self.calls.append((list(tag_ids), list(asset_ids)))
            for tag_id in tag_ids:
                existing = self.assets.setdefault(tag_id, [])
                for asset_id in asset_ids:
                    if asset_id in existing:
                        self.duplicates.append((tag_id, asset_id))
                    existing.append(asset_id)
        return {"count": len(asset_ids)}


def test_add_tag():
    client = MockClient()
    bm = BulkTagManager(client, logging.getLogger("test.bulktags"))
    bm.add_tag("tag1", "asset1")
    bm.add_tag("tag2", "asset2")
    assert client.calls == []
    bm.close()
    assert sorted(client.calls) == [(["tag1ID"], ["asset1"]), (["tag2ID"], ["asset2"])]


def test_tag_1000_assets_with_5_tags():
    client = MockClient()
    bm = BulkTagManager(client)
    n = 1000
    for i in range(1, n + 1):
        for j in range(1, 6):
            if i % j == 0:
                bm.add_tag(f"tag{j}", f"asset{i}")
    bm.close()

    assert client.duplicates == []
    assert all(v == 1 for v in client.upsert_count.values())
    assert len(client.assets["tag1ID"]) == n
    assert len(client.assets["tag2ID"]) == n // 2
    assert len(client.assets["tag3ID"]) == n // 3
    assert len(client.assets["tag4ID"]) == n // 4
    assert len(client.assets["tag5ID"]) == n // 5


def test_no_tags_submitted():
    client = MockClient(upsert_result=[])
    bm = BulkTagManager(client)
    bm.close()
    assert client.assets == {}
    assert client.calls == []


def test_empty_values_ignored():
    client = MockClient()
    bm = BulkTagManager(client)
    bm.add_tag("", "asset1")
    bm.add_tag("tag1", "")
    bm.close()
    assert client.calls == []


def test_upsert_error_is_logged(caplog):
    logger = logging.getLogger("test.bulktags.error")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    client = MockClient(upsert_error=RuntimeError("server down"))
    bm = BulkTagManager(client, logger)
    bm.add_tag("tag1", "asset1")
    bm.close()
    assert client.calls == []
    assert any(r.levelno == logging.ERROR and "server down" in r.getMessage() for r in caplog.records)


def test_upsert_without_id_tags_nothing():
    client = MockClient(upsert_result=[])
    bm = BulkTagManager(client)
    bm.add_tag("tag1", "asset1")
    bm.close()
    assert client.calls == []


def test_add_after_close_raises():
    bm = BulkTagManager(MockClient())
    bm.close()
    with pytest.raises(RuntimeError):
        bm.add_tag("tag1", "asset1")