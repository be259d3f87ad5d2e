import io

import pytest

from photoflow.search import SliceReader, search_pattern

BUFFER = 20


def gen_bytes(size):
    return bytes(i & 0xFF for i in range(size))


TEXT = b"this is the date:2023-08-01T20:20:00 in the middle of the buffer"

CASES = [
    ("notin", gen_bytes(BUFFER * 3), bytes([5, 4, 3, 2]), False),
    ("at end of reader", gen_bytes(BUFFER * 3), bytes([56, 57, 58, 59]), True),
    ("at 1st buffer boundary", gen_bytes(BUFFER * 3), bytes([18, 19, 20, 21]), True),
    ("at 2nd buffer boundary", gen_bytes(BUFFER * 3), bytes([34, 35, 36, 37]), True),
    ("not in real", gen_bytes(BUFFER // 3) + TEXT, b"nothere", False),
    ("middle", gen_bytes(BUFFER // 3) + TEXT, b"date:", True),
    ("beginning", b"date:2023-08-01T20:20:00 in the middle of the buffer", b"date:", True),
    ("2ndbuffer", gen_bytes(3 * BUFFER) + TEXT, b"date:", True),
    (
        "crossing buffer boundaries",
        gen_bytes(2 * BUFFER - 10)
        + b"date:2023-08-01T20:20:00 in the middle of the buffer"
        + gen_bytes(BUFFER - 10),
        b"date:",
        True,
    ),
]


@pytest.mark.parametrize("name,data,pattern,found", CASES, ids=[c[0] for c in CASES])
def test_search_pattern(name, data, pattern, found):
    if not found:
        with pytest.raises(EOFError):
            search_pattern(io.BytesIO(data), pattern, BUFFER)
    else:
        r = search_pattern(io.BytesIO(data), pattern, BUFFER)
        assert r.read_slice(len(pattern)) == pattern


def test_reader_continues_after_pattern():
    data = gen_bytes(BUFFER // 3) + TEXT
    r = search_pattern(io.BytesIO(data), b"date:", BUFFER)
    rest = r.read()
    assert rest == TEXT[TEXT.index(b"date:"):]


def test_slice_reader_prefix_then_stream():
    r = SliceReader(io.BytesIO(b"world"), b"hello ")
    assert r.read_slice(8) == b"hello wo"
    assert r.read() == b"rld"


def test_read_slice_short_raises():
    r = SliceReader(io.BytesIO(b"ab"))
    with pytest.raises(EOFError):
        r.read_slice(3)


def test_empty_pattern_rejected():
    with pytest.raises(ValueError):
        search_pattern(io.BytesIO(b"abc"), b"", BUFFER)