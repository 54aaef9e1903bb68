__all__ = [
    "natural_order",
    "BinaryHeap", "IndexedHeap",
    "IntervalHeap", "IndexedIntervalHeap",
]

from .base import natural_order
from .binary import BinaryHeap, IndexedHeap
from .interval import IntervalHeap, IndexedIntervalHeap
