__all__ = [
    "BinaryHeap", "IndexedHeap", "IntervalHeap", "IndexedIntervalHeap",
    "natural_order",
    "HeapError", "EmptyError", "DuplicateError", "NotFoundError",
    "HeapOrderError", "InvalidDimensionError",
    "IHDAStar", "SearchNode", "SearchState", "approx_compare",
    "unit_vector_from_uv", "uv_from_unit_vector",
    "ArmJoint", "JointedArm", "ArmReachPlanner",
]

# Priority queues
from .heaps import (
    BinaryHeap,
    IndexedHeap,
    IntervalHeap,
    IndexedIntervalHeap,
    natural_order,
)

# Errors
from .errors import (
    HeapError,
    EmptyError,
    DuplicateError,
    NotFoundError,
    HeapOrderError,
    InvalidDimensionError,
)

# Incremental search
from .search import IHDAStar, SearchNode, SearchState, approx_compare

# Arm host (plotting is imported lazily by the CLI)
from .spherical import unit_vector_from_uv, uv_from_unit_vector
from .arm import ArmJoint, JointedArm, ArmReachPlanner
