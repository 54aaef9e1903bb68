import sys
from bisect import insort
from pathlib import Path
sys.path.append(str(Path(__file__).resolve().parents[1]))

import numpy as np
import pytest

from ihda.errors import DuplicateError, EmptyError, HeapOrderError, NotFoundError
from ihda.heaps import BinaryHeap, IndexedHeap

N_OPS = 100_000


def _assert_index_map(heap):
    items = list(heap)
    for slot, item in enumerate(items):
        assert heap.contains(item)
        assert heap.slot_of(item) == slot


def test_binary_heap_sorts_random_multiset():
    rng = np.random.default_rng(0)
    values = rng.integers(-1000, 1000, size=5000).tolist()
    heap = BinaryHeap()
    for v in values:
        heap.insert(v)
    assert heap.validate()
    assert heap.count == len(values)
    out = [heap.extract_min() for _ in range(len(values))]
    assert out == sorted(values)
    assert heap.count == 0 and not heap


def test_binary_heap_custom_comparator_gives_max_heap():
    heap = BinaryHeap(lambda a, b: (a < b) - (a > b))
    for v in (3, 9, 1, 7):
        heap.insert(v)
    assert heap.min == 9
    assert [heap.extract_min() for _ in range(4)] == [9, 7, 3, 1]


def test_binary_heap_empty_errors():
    heap = BinaryHeap()
    with pytest.raises(EmptyError):
        heap.extract_min()
    with pytest.raises(EmptyError):
        _ = heap.min
    # still an IndexError for callers that expect the builtin
    with pytest.raises(IndexError):
        heap.extract_min()
    heap.insert(4)
    assert heap.extract_min() == 4
    with pytest.raises(EmptyError):
        heap.extract_min()


def test_binary_heap_fuzz_keeps_order():
    rng = np.random.default_rng(1)
    heap = BinaryHeap()
    ref = []
    ops = rng.random(N_OPS)
    vals = rng.integers(-10**6, 10**6, size=N_OPS)
    for i in range(N_OPS):
        if ops[i] < 0.5 or not ref:
            heap.insert(int(vals[i]))
            insort(ref, int(vals[i]))
        else:
            assert heap.extract_min() == ref.pop(0)
        if i % 4999 == 0:
            assert heap.validate()
    assert heap.validate()
    assert ref == [heap.extract_min() for _ in range(len(heap))]


def test_indexed_heap_duplicate_and_missing():
    heap = IndexedHeap()
    heap.insert(5)
    with pytest.raises(DuplicateError):
        heap.insert(5)
    with pytest.raises(NotFoundError):
        heap.remove(6)
    with pytest.raises(NotFoundError):
        heap.modify_key(6, 7)
    heap.insert(7)
    with pytest.raises(DuplicateError):
        heap.modify_key(5, 7)
    with pytest.raises(KeyError):
        heap.decrease_key(42)
    assert 5 in heap and 7 in heap and 6 not in heap


def test_indexed_heap_modify_and_remove():
    heap = IndexedHeap()
    for v in (10, 20, 30, 40, 50, 60):
        heap.insert(v)
    heap.modify_key(60, 5)
    assert heap.min == 5
    heap.modify_key(5, 65)
    assert heap.min == 10
    heap.remove(10)
    assert heap.min == 20
    heap.remove(65)
    assert heap.validate()
    _assert_index_map(heap)
    assert [heap.extract_min() for _ in range(len(heap))] == [20, 30, 40, 50]


def test_indexed_heap_modify_key_same_value_is_noop():
    heap = IndexedHeap()
    for v in (4, 8, 1, 9, 3):
        heap.insert(v)
    before = list(heap)
    slots = {v: heap.slot_of(v) for v in before}
    heap.modify_key(8, 8)
    assert list(heap) == before
    assert {v: heap.slot_of(v) for v in before} == slots
    assert heap.validate()


def test_indexed_heap_external_key_changes():
    keys = {name: float(i) for i, name in enumerate("abcdefgh")}
    heap = IndexedHeap(lambda x, y: (keys[x] > keys[y]) - (keys[x] < keys[y]))
    for name in keys:
        heap.insert(name)

    keys["h"] = -1.0
    heap.decrease_key("h")
    assert heap.min == "h"

    keys["h"] = 100.0
    heap.increase_key("h")
    assert heap.min == "a"
    assert heap.validate()

    # misdirected: key went up but caller claims a decrease
    keys["a"] = 50.0
    with pytest.raises(HeapOrderError):
        heap.decrease_key("a")
    heap.increase_key("a")
    assert heap.min == "b"

    keys["g"] = -5.0
    with pytest.raises(HeapOrderError):
        heap.increase_key("g")
    heap.decrease_key("g")
    assert heap.min == "g"
    assert heap.validate()


def test_indexed_heap_fuzz_with_index_map():
    rng = np.random.default_rng(2)
    heap = IndexedHeap()
    live = set()
    ops = rng.random(N_OPS)
    vals = rng.integers(-10**9, 10**9, size=N_OPS)
    for i in range(N_OPS):
        op = ops[i]
        v = int(vals[i])
        if op < 0.4 or not live:
            if v in live:
                continue
            heap.insert(v)
            live.add(v)
        elif op < 0.6:
            got = heap.extract_min()
            live.remove(got)
        elif op < 0.8:
            victim = list(heap)[int(rng.integers(len(heap)))]
            heap.remove(victim)
            live.remove(victim)
        else:
            old = list(heap)[int(rng.integers(len(heap)))]
            if v in live:
                continue
            heap.modify_key(old, v)
            live.remove(old)
            live.add(v)
        if i % 4999 == 0:
            assert heap.validate()
            _assert_index_map(heap)
    assert heap.validate()
    assert len(heap) == len(live)
    assert [heap.extract_min() for _ in range(len(heap))] == sorted(live)
