from __future__ import annotations

from typing import Optional

from ihda.errors import HeapOrderError
from ihda.heaps.base import ArrayHeap, Comparator, IndexedMixin, T


class BinaryHeap(ArrayHeap[T]):
    r"""
    Array-backed binary min-heap over an injected comparator.

    The storage is an implicit binary tree: the children of slot :math:`i`
    live at :math:`2i+1` and :math:`2i+2`, its parent at
    :math:`\lfloor (i-1)/2 \rfloor`. The heap-order invariant is

    .. math::

        \operatorname{cmp}(s_{\mathrm{parent}(i)}, s_i) \le 0
        \qquad \forall\, i \ge 1.

    Complexity
    ----------
    - :meth:`insert`, :meth:`extract_min`: :math:`\mathcal{O}(\log n)`.
    - :attr:`min`: :math:`\mathcal{O}(1)`.
    - :meth:`validate`: :math:`\mathcal{O}(n)` (diagnostic only).

    Parameters
    ----------
    comparator : callable, optional
        ``cmp(a, b) -> int``; defaults to the elements' natural order.

    Examples
    --------
    >>> heap = BinaryHeap()
    >>> for v in (5, 1, 4, 2):
    ...     heap.insert(v)
    >>> heap.min
    1
    >>> [heap.extract_min() for _ in range(len(heap))]
    [1, 2, 4, 5]
    """

    __slots__ = ()

    def __init__(self, comparator: Optional[Comparator] = None) -> None:
        super().__init__(comparator)

    # ------------------------------------------------------------------
    # Sifting
    def _sift_up(self, index: int) -> int:
        """Move the element at ``index`` toward the root; return its final slot."""
        storage, cmp = self._storage, self._cmp
        while index > 0:
            parent = (index - 1) >> 1
            if cmp(storage[index], storage[parent]) >= 0:
                break
            self._swap(index, parent)
            index = parent
        return index

    def _sift_down(self, index: int) -> int:
        """Move the element at ``index`` toward the leaves; return its final slot."""
        storage, cmp = self._storage, self._cmp
        n = len(storage)
        left = 2 * index + 1
        while left < n:
            right = left + 1
            child = left
            if right < n and cmp(storage[right], storage[left]) < 0:
                child = right
            if cmp(storage[index], storage[child]) <= 0:
                break
            self._swap(index, child)
            index = child
            left = 2 * index + 1
        return index

    def _resift(self, index: int, direction: int) -> None:
        if direction < 0:
            self._sift_up(index)
        elif direction > 0:
            self._sift_down(index)

    # ------------------------------------------------------------------
    # Public API
    @property
    def min(self) -> T:
        """Smallest element; :class:`~ihda.errors.EmptyError` when empty."""
        self._require_items("min")
        return self._storage[0]

    def insert(self, item: T) -> None:
        """Add ``item`` and restore heap order by sifting up."""
        self._append(item)
        self._sift_up(len(self._storage) - 1)

    def extract_min(self) -> T:
        """Remove and return the smallest element.

        Raises
        ------
        EmptyError
            If the heap holds no elements.
        """
        self._require_items("extract_min")
        result = self._take(0)
        if self._storage:
            self._sift_down(0)
        return result

    def validate(self) -> bool:
        """Diagnostic O(n) scan: ``True`` if every parent orders before its children."""
        storage, cmp = self._storage, self._cmp
        for i in range(1, len(storage)):
            if cmp(storage[(i - 1) >> 1], storage[i]) > 0:
                return False
        return True


class IndexedHeap(IndexedMixin, BinaryHeap[T]):
    r"""
    Binary min-heap that also tracks the slot of every element.

    An element :math:`\rightarrow` slot map is updated on every structural
    write, which allows O(1) :meth:`contains` and :math:`\mathcal{O}(\log n)`
    :meth:`remove` / :meth:`modify_key` of arbitrary elements.

    Elements double as dictionary keys, so they must be hashable and no two
    live elements may compare equal under ``==``. Floating-point values are
    poor keys (``nan != nan``, ``0.0 == -0.0``); wrap them in an identifying
    object or store integer handles and order the handles through the
    comparator, as :class:`ihda.search.IHDAStar` does with node indices.

    Raises
    ------
    DuplicateError
        Inserting (or renaming onto) a value that is already stored.
    NotFoundError
        Operating on a value that is not stored.
    HeapOrderError
        :meth:`decrease_key` / :meth:`increase_key` called against the
        direction in which the element's key actually moved.
    """

    __slots__ = ("_index",)

    def __init__(self, comparator: Optional[Comparator] = None) -> None:
        super().__init__(comparator)

    def insert(self, item: T) -> None:
        self._require_absent(item)
        super().insert(item)

    def remove(self, item: T) -> None:
        """Remove ``item`` from anywhere in the heap."""
        index = self.slot_of(item)
        self._take(index)
        if index < len(self._storage):
            self._resift(index, self._cmp(self._storage[index], item))

    def modify_key(self, item: T, new_item: T) -> None:
        r"""
        Replace ``item`` by ``new_item`` in place and restore heap order.

        The replacement sifts up if it orders strictly before ``item``, down if
        strictly after, and stays put when the two compare equal.
        ``modify_key(x, x)`` leaves both the storage and the index untouched.
        """
        index = self.slot_of(item)
        if new_item == item:
            return
        self._require_absent(new_item)
        self._forget(item)
        self._set(index, new_item)
        self._resift(index, self._cmp(new_item, item))

    def decrease_key(self, item: T) -> None:
        """Sift ``item`` up after its ordering key was lowered externally."""
        index = self.slot_of(item)
        storage, cmp = self._storage, self._cmp
        for child in (2 * index + 1, 2 * index + 2):
            if child < len(storage) and cmp(storage[index], storage[child]) > 0:
                raise HeapOrderError(f"decrease_key on {item!r}, but its key increased")
        self._sift_up(index)

    def increase_key(self, item: T) -> None:
        """Sift ``item`` down after its ordering key was raised externally."""
        index = self.slot_of(item)
        storage = self._storage
        if index > 0 and self._cmp(storage[index], storage[(index - 1) >> 1]) < 0:
            raise HeapOrderError(f"increase_key on {item!r}, but its key decreased")
        self._sift_down(index)

    def validate(self) -> bool:
        """Heap order plus ``storage[index[v]] == v`` for every tracked value."""
        return super().validate() and self._index_consistent()
