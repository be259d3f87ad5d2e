import threading

import pytest

from photoflow.collection import CollectionCache


def mock_save_fn(coll, ids):
    if not ids:
        raise ValueError("no new items")
    return coll + "|" + ",".join(ids)


def test_new_collection():
    cc = CollectionCache(5, mock_save_fn)
    cc.new_collection("key1", "coll1", ["id1", "id2"])
    c = cc.get_collections()["key1"]
    assert c.collection == "coll1"
    assert len(c.items()) == 2
    cc.close()


def test_add_items_by_repeated_calls():
    called = []

    def wrapped(coll, ids):
        called.append(ids)
        return mock_save_fn(coll, ids)

    cc = CollectionCache(2, wrapped)
    cc.new_collection("key1", "coll1", None)
    added = [
        cc.add_id_to_collection("key1", "coll1", "id1"),
        cc.add_id_to_collection("key1", "coll1", "id2"),
        cc.add_id_to_collection("key1", "coll1", "id3"),
    ]
    assert added == [True, True, True]
    _, ids = cc.get_collection("key1")
    assert ids == ["id1", "id2", "id3"]
    cc.close()
    assert len(called) >= 1


def test_multiple_collections_exceeding_cache_size():
    calls = {}

    def wrapped(coll, ids):
        calls[coll] = calls.get(coll, 0) + 1
        return coll

    cc = CollectionCache(2, wrapped)
    cc.new_collection("key1", "coll1", ["id1", "id2"])
    cc.new_collection("key2", "coll2", ["id3", "id4"])

    cc.add_id_to_collection("key1", "coll1", "id5")
    assert calls.get("coll1", 0) == 0
    cc.add_id_to_collection("key1", "coll1", "id6")
    assert calls.get("coll1", 0) == 1
    cc.add_id_to_collection("key1", "coll1", "id7")
    assert calls.get("coll1", 0) == 1
    cc.add_id_to_collection("key2", "coll2", "id8")
    assert calls.get("coll2", 0) == 0
    cc.close()

    coll1, ids1 = cc.get_collection("key1")
    assert coll1 == "coll1"
    assert len(ids1) == 5
    coll2, ids2 = cc.get_collection("key2")
    assert coll2 == "coll2"
    assert len(ids2) == 3
    assert calls["coll1"] >= 2
    assert calls["coll2"] >= 1


def test_concurrent_access():
    cc = CollectionCache(10, lambda coll, ids: coll)
    cc.new_collection("testKey", "testColl", None)
    threads = [
        threading.Thread(target=cc.add_id_to_collection, args=("testKey", "testColl", f"asset{n}"))
        for n in range(50)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    _, ids = cc.get_collection("testKey")
    assert len(ids) == 50
    cc.close()


def test_duplicate_id_not_added():
    cc = CollectionCache(10, lambda coll, ids: coll)
    assert cc.add_id_to_collection("k", "c", "a") is True
    assert cc.add_id_to_collection("k", "c", "a") is False
    assert cc.get_collection("k") == ("c", ["a"])


def test_save_updates_collection_object():
    cc = CollectionCache(2, mock_save_fn)
    cc.add_id_to_collection("k", "c", "a")
    cc.add_id_to_collection("k", "c", "b")
    coll, _ = cc.get_collection("k")
    assert coll == "c|a,b"
    assert cc.get_collections()["k"].new_items() == []


def test_new_collection_merges_existing():
    cc = CollectionCache(10, lambda coll, ids: coll)
    cc.new_collection("k", "c", ["a"])
    cc.new_collection("k", "other", ["a", "b"])
    assert cc.get_collection("k") == ("c", ["a", "b"])
    assert cc.get_collections()["k"].new_items() == ["b"]


def test_close_saves_pending_ids():
    saved = []
    cc = CollectionCache(10, lambda coll, ids: saved.append((coll, ids)) or coll)
    cc.add_id_to_collection("k", "c", "a")
    cc.close()
    assert saved == [("c", ["a"])]


def test_missing_collection_and_closed_cache():
    cc = CollectionCache(10, lambda coll, ids: coll)
    assert cc.get_collection("nope") is None
    cc.close()
    with pytest.raises(RuntimeError):
        cc.add_id_to_collection("k", "c", "a")