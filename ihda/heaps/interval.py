from __future__ import annotations

from typing import Optional

from ihda.errors import HeapOrderError
from ihda.heaps.base import ArrayHeap, Comparator, IndexedMixin, T


def _parent_lower(index: int) -> int:
    """Lower slot of the parent group of ``index`` (negative for the root group)."""
    return ((index >> 1) - 1) & ~1


def _parent_upper(index: int) -> int:
    """Upper slot of the parent group of ``index`` (negative for the root group)."""
    return ((index >> 1) - 1) | 1


class IntervalHeap(ArrayHeap[T]):
    r"""
    Double-ended priority queue with O(1) access to both minimum and maximum.

    Slots are grouped in pairs: group :math:`g` owns the *lower* slot
    :math:`2g` and the *upper* slot :math:`2g+1`. With an odd element count the
    final group is a single *lone* slot that acts as both its lower and upper.
    The groups form a binary tree (children of :math:`g` are :math:`2g+1` and
    :math:`2g+2`) and every group's interval encloses its descendants:

    .. math::

        s_{2p} \;\le\; s_{2g} \;\le\; s_{2g+1} \;\le\; s_{2p+1},
        \qquad p = \mathrm{parent}(g).

    Hence :attr:`min` is slot 0 and :attr:`max` is slot 1 (slot 0 when a single
    element is stored).

    Complexity
    ----------
    - :meth:`insert`, :meth:`extract_min`, :meth:`extract_max`:
      :math:`\mathcal{O}(\log n)`.
    - :attr:`min`, :attr:`max`: :math:`\mathcal{O}(1)`.

    Notes
    -----
    Lone slots take part in sifts on *both* sides: a lowered upper is compared
    against a lone child as well as against full child pairs, so a lone
    element can never end up above its parent's upper bound.

    Examples
    --------
    >>> heap = IntervalHeap()
    >>> for v in (7, 3, 9, 1, 5):
    ...     heap.insert(v)
    >>> heap.min, heap.max
    (1, 9)
    >>> heap.extract_max(), heap.extract_min(), heap.extract_max()
    (9, 1, 7)
    """

    __slots__ = ()

    def __init__(self, comparator: Optional[Comparator] = None) -> None:
        super().__init__(comparator)

    # ------------------------------------------------------------------
    # Slot helpers
    def _upper_of(self, lower: int) -> int:
        """Slot holding the upper bound of the group whose lower slot is ``lower``."""
        upper = lower + 1
        return upper if upper < len(self._storage) else lower

    def _is_lone(self, index: int) -> bool:
        return not index & 1 and index + 1 == len(self._storage)

    def _fix_pair(self, index: int) -> int:
        """Order the pair containing ``index``; return the element's new slot."""
        lower = index & ~1
        upper = lower + 1
        if upper < len(self._storage) and self._cmp(self._storage[lower], self._storage[upper]) > 0:
            self._swap(lower, upper)
            return index ^ 1
        return index

    # ------------------------------------------------------------------
    # Sifting
    def _sift_up_lower(self, index: int) -> int:
        storage, cmp = self._storage, self._cmp
        while True:
            parent = _parent_lower(index)
            if parent < 0 or cmp(storage[parent], storage[index]) <= 0:
                return index
            self._swap(parent, index)
            index = parent

    def _sift_up_upper(self, index: int) -> int:
        storage, cmp = self._storage, self._cmp
        while True:
            parent = _parent_upper(index)
            if parent < 0 or cmp(storage[index], storage[parent]) <= 0:
                return index
            self._swap(parent, index)
            index = parent

    def _sift_down_lower(self, index: int) -> None:
        storage, cmp = self._storage, self._cmp
        n = len(storage)
        while True:
            left = 2 * index + 2
            if left >= n:
                return
            child = left
            right = left + 2
            if right < n and cmp(storage[right], storage[left]) < 0:
                child = right
            if cmp(storage[child], storage[index]) >= 0:
                return
            self._swap(child, index)
            index = child
            self._fix_pair(index)

    def _sift_down_upper(self, index: int) -> None:
        storage, cmp = self._storage, self._cmp
        n = len(storage)
        # a lone slot is the last group and has no children
        while index & 1:
            first = 2 * index
            if first >= n:
                return
            child = self._upper_of(first)
            second = first + 2
            if second < n:
                other = self._upper_of(second)
                if cmp(storage[other], storage[child]) > 0:
                    child = other
            if cmp(storage[child], storage[index]) <= 0:
                return
            self._swap(child, index)
            index = child
            if index & 1:
                self._fix_pair(index)

    def _sift_up(self, index: int) -> int:
        if index & 1:
            return self._sift_up_upper(index)
        return self._sift_up_lower(index)

    def _restore(self, index: int, direction: int) -> None:
        """Repair order after the element at ``index`` moved ``direction`` (<0 / >0)."""
        if direction == 0:
            return
        index = self._fix_pair(index)
        lower = index & ~1
        upper = self._upper_of(lower)
        if direction < 0:
            self._sift_up_lower(lower)
            self._sift_down_upper(upper)
        else:
            self._sift_down_lower(lower)
            self._sift_up_upper(upper)

    # ------------------------------------------------------------------
    # Public API
    @property
    def min(self) -> T:
        """Smallest element; :class:`~ihda.errors.EmptyError` when empty."""
        self._require_items("min")
        return self._storage[0]

    @property
    def max(self) -> T:
        """Largest element; :class:`~ihda.errors.EmptyError` when empty."""
        self._require_items("max")
        return self._storage[1 if len(self._storage) > 1 else 0]

    def insert(self, item: T) -> None:
        """Add ``item``, pair it with its sibling and sift up on its side."""
        self._append(item)
        index = len(self._storage) - 1
        if index & 1:
            self._sift_up(self._fix_pair(index))
        elif self._sift_up_upper(index) == index:
            # lone slot did not exceed its parent's upper bound
            self._sift_up_lower(index)

    def extract_min(self) -> T:
        """Remove and return the smallest element (``EmptyError`` when empty)."""
        self._require_items("extract_min")
        result = self._take(0)
        if self._storage:
            self._sift_down_lower(0)
        return result

    def extract_max(self) -> T:
        """Remove and return the largest element (``EmptyError`` when empty)."""
        self._require_items("extract_max")
        index = 1 if len(self._storage) > 1 else 0
        result = self._take(index)
        if index < len(self._storage):
            self._sift_down_upper(index)
        return result

    def validate(self) -> bool:
        """Diagnostic O(n) scan of the pair and enclosing-interval invariants."""
        storage, cmp = self._storage, self._cmp
        n = len(storage)
        if n >= 2 and cmp(storage[0], storage[1]) > 0:
            return False
        for i in range(2, n):
            if i & 1 and cmp(storage[i - 1], storage[i]) > 0:
                return False
            if cmp(storage[_parent_lower(i)], storage[i]) > 0:
                return False
            if cmp(storage[i], storage[_parent_upper(i)]) > 0:
                return False
        return True


class IndexedIntervalHeap(IndexedMixin, IntervalHeap[T]):
    r"""
    Interval heap with element :math:`\rightarrow` slot tracking.

    Supports changing an element's key from either end of the order.
    Because re-pairing a group can move the tracked element between its lower
    and upper slot, every key change repairs *both* slots of the group:

    ============  ======================  ======================
    change        lower slot              upper slot
    ============  ======================  ======================
    decrease      sift up                 sift down
    increase      sift down               sift up
    ============  ======================  ======================

    Element requirements and error kinds are those of
    :class:`ihda.heaps.binary.IndexedHeap`.
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
            self._restore(index, self._cmp(self._storage[index], item))

    def modify_key(self, item: T, new_item: T) -> None:
        """Replace ``item`` by ``new_item`` and repair the order around it."""
        index = self.slot_of(item)
        if new_item == item:
            return
        self._require_absent(new_item)
        self._forget(item)
        self._set(index, new_item)
        self._restore(index, self._cmp(new_item, item))

    def decrease_key(self, item: T) -> None:
        """Repair the order after ``item``'s key was lowered externally."""
        index = self.slot_of(item)
        storage, cmp = self._storage, self._cmp
        if not index & 1:
            first = 2 * index + 2
            for child in (first, first + 2):
                if child < len(storage) and cmp(storage[index], storage[child]) > 0:
                    raise HeapOrderError(f"decrease_key on {item!r}, but its key increased")
        if index & 1 or self._is_lone(index):
            parent = _parent_upper(index)
            if parent >= 0 and cmp(storage[index], storage[parent]) > 0:
                raise HeapOrderError(f"decrease_key on {item!r}, but its key increased")
        self._restore(index, -1)

    def increase_key(self, item: T) -> None:
        """Repair the order after ``item``'s key was raised externally."""
        index = self.slot_of(item)
        storage, cmp = self._storage, self._cmp
        if not index & 1:
            parent = _parent_lower(index)
            if parent >= 0 and cmp(storage[index], storage[parent]) < 0:
                raise HeapOrderError(f"increase_key on {item!r}, but its key decreased")
        if index & 1 or self._is_lone(index):
            first = 2 * (index | 1)
            for lower in (first, first + 2):
                if lower < len(storage) and cmp(storage[index], storage[self._upper_of(lower)]) < 0:
                    raise HeapOrderError(f"increase_key on {item!r}, but its key decreased")
        self._restore(index, 1)

    def validate(self) -> bool:
        """Interval order plus ``storage[index[v]] == v`` for every tracked value."""
        return super().validate() and self._index_consistent()
