from __future__ import annotations

from typing import Any, Callable, Dict, Generic, Hashable, Iterator, List, Optional, TypeVar

from ihda.errors import DuplicateError, EmptyError, NotFoundError

T = TypeVar("T")
Comparator = Callable[[Any, Any], int]


def natural_order(a: Any, b: Any) -> int:
    r"""
    Three-way comparison using the elements' own ``<``/``>`` operators.

    Returns a negative number, zero or a positive number when ``a`` sorts
    before, level with or after ``b``. This is the default comparator of every
    heap in :mod:`ihda.heaps`.

    Examples
    --------
    >>> natural_order(1, 2), natural_order(2, 2), natural_order(3, 2)
    (-1, 0, 1)
    """
    return (a > b) - (a < b)


class ArrayHeap(Generic[T]):
    r"""
    Dense list storage shared by the four heap variants.

    All structural writes go through three hooks, :meth:`_set`,
    :meth:`_append` and :meth:`_forget`. The plain heaps use them as thin list
    operations; :class:`IndexedMixin` overrides them to keep an
    element :math:`\rightarrow` slot map exactly in step with the storage.

    Parameters
    ----------
    comparator : callable, optional
        ``cmp(a, b) -> int`` defining a total order. Defaults to
        :func:`natural_order`.
    """

    __slots__ = ("_storage", "_cmp")

    def __init__(self, comparator: Optional[Comparator] = None) -> None:
        self._storage: List[T] = []
        self._cmp: Comparator = comparator if comparator is not None else natural_order

    # ------------------------------------------------------------------
    # Size / inspection
    @property
    def count(self) -> int:
        """Number of stored elements."""
        return len(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    def __bool__(self) -> bool:
        return bool(self._storage)

    def __iter__(self) -> Iterator[T]:
        """Iterate over a snapshot of the storage in slot order (not sorted)."""
        return iter(list(self._storage))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(count={len(self._storage)})"

    @property
    def comparator(self) -> Comparator:
        return self._cmp

    def _require_items(self, what: str) -> None:
        if not self._storage:
            raise EmptyError(f"{what} of an empty {type(self).__name__}")

    # ------------------------------------------------------------------
    # Storage hooks
    def _set(self, index: int, item: T) -> None:
        self._storage[index] = item

    def _append(self, item: T) -> None:
        self._storage.append(item)

    def _forget(self, item: T) -> None:
        """Called once an element has left the storage for good."""

    def _swap(self, i: int, j: int) -> None:
        a = self._storage[i]
        self._set(i, self._storage[j])
        self._set(j, a)

    def _take(self, index: int) -> T:
        """Remove the element at ``index``, filling the hole with the last element."""
        storage = self._storage
        result = storage[index]
        last = storage.pop()
        if index < len(storage):
            self._set(index, last)
        self._forget(result)
        return result


class IndexedMixin:
    r"""
    Element :math:`\rightarrow` slot bookkeeping for the indexed variants.

    Must precede an :class:`ArrayHeap` subclass in the bases; the concrete
    class declares the ``_index`` attribute. Elements are used as dictionary
    keys, so they must be hashable and distinct at any instant (two equal
    values cannot be tracked independently).
    """

    __slots__ = ()

    _storage: List[Any]
    _index: Dict[Hashable, int]

    def __init__(self, comparator: Optional[Comparator] = None) -> None:
        super().__init__(comparator)  # type: ignore[call-arg]
        self._index = {}

    def _set(self, index: int, item: Any) -> None:
        self._storage[index] = item
        self._index[item] = index

    def _append(self, item: Any) -> None:
        self._storage.append(item)
        self._index[item] = len(self._storage) - 1

    def _forget(self, item: Any) -> None:
        del self._index[item]

    # ------------------------------------------------------------------
    def contains(self, item: Any) -> bool:
        """``True`` if ``item`` is currently stored (O(1))."""
        return item in self._index

    def __contains__(self, item: Any) -> bool:
        return item in self._index

    def slot_of(self, item: Any) -> int:
        """Current storage slot of ``item``; :class:`NotFoundError` if absent."""
        try:
            return self._index[item]
        except KeyError:
            raise NotFoundError(item) from None

    def _require_absent(self, item: Any) -> None:
        if item in self._index:
            raise DuplicateError(item)

    def _index_consistent(self) -> bool:
        if len(self._index) != len(self._storage):
            return False
        storage = self._storage
        for item, index in self._index.items():
            if not 0 <= index < len(storage) or storage[index] != item:
                return False
        return True
