r"""
Incremental A* over a discretized N-dimensional unit hypercube.

The search space is :math:`[0,1)^N` cut into ``subdivisions`` cells per axis.
A cell with integer position :math:`p\in\{0,\dots,S-1\}^N` is represented by
its centre

.. math::

    c(p) = \frac{p + \tfrac12}{S},

and a continuous point :math:`x` belongs to the cell :math:`\lfloor xS \rfloor`.
Every cell has up to :math:`2N` neighbours, one step of :math:`\pm 1` along a
single axis. Axes flagged as wrapping connect cell :math:`0` with cell
:math:`S-1`; on the other axes there is no edge off the boundary.

The host supplies five pure callbacks (see :class:`IHDAStar`) and drives the
search one expansion at a time with :meth:`IHDAStar.step_search`, so the
amount of work per host tick can be bounded by capping the number of steps.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Set, Tuple, TypeVar

import numpy as np

from ihda.errors import InvalidDimensionError
from ihda.heaps.binary import IndexedHeap

logger = logging.getLogger(__name__)

P = TypeVar("P")
Position = Tuple[int, ...]

PayloadFn = Callable[[np.ndarray], Any]
StepCostFn = Callable[[Any, np.ndarray, Any, np.ndarray], float]
HeuristicFn = Callable[[Any, np.ndarray], float]
PredicateFn = Callable[[Any, np.ndarray], bool]


def approx_compare(a: float, b: float, rel_tol: float = 1e-6, abs_tol: float = 1e-12) -> int:
    r"""
    Three-way float comparison that treats nearly equal values as ties.

    Returns ``0`` when :func:`math.isclose` considers ``a`` and ``b`` equal,
    otherwise ``-1``/``1`` by their ordinary order. Used for the open-set
    ordering so that round-off in :math:`f=g+h` does not decide between
    equally good cells.
    """
    if math.isclose(a, b, rel_tol=rel_tol, abs_tol=abs_tol):
        return 0
    return -1 if a < b else 1


class SearchState(Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class SearchNode(Generic[P]):
    r"""
    One discovered grid cell.

    Attributes
    ----------
    position : tuple[int, ...]
        Grid position of the cell.
    parent : int or None
        Index of the node this one was reached from; ``None`` for the start.
    payload : P
        Host data computed once from the cell centre.
    g : float
        Best known cost from the start.
    h : float
        Heuristic estimate to a goal, computed once at creation.
    """

    __slots__ = ("position", "parent", "payload", "g", "h")

    def __init__(self, position: Position, parent: Optional[int], payload: P, g: float, h: float) -> None:
        self.position = position
        self.parent = parent
        self.payload = payload
        self.g = g
        self.h = h

    @property
    def f(self) -> float:
        return self.g + self.h

    def __repr__(self) -> str:
        return f"SearchNode(position={self.position}, parent={self.parent}, g={self.g:.6g}, h={self.h:.6g})"


class IHDAStar(Generic[P]):
    r"""
    Incremental hyper-dimensional A* with per-axis wraparound.

    State machine::

        IDLE --begin_search--> SEARCHING --step_search--> SUCCEEDED | EXHAUSTED

    Each call to :meth:`step_search` pops the open node with the smallest
    :math:`f=g+h`. A goal node ends the search and the path is rebuilt by
    walking parent links. Any other node is *expanded*: each of its
    :math:`2N` neighbours that exists and is traversible is relaxed with

    .. math::

        g' = g(\text{node}) + \mathrm{cost}(\text{node}, \text{neighbour}).

    A new neighbour gets a node (payload and :math:`h` computed once) and
    enters the open set; a known neighbour with :math:`g' < g` adopts the new
    cost and parent, and its open-set entry is repaired with a true
    decrease-key (or it is re-inserted if it had already been expanded).
    The open set therefore never holds the same node twice.

    With an admissible heuristic and a cost obeying the triangle inequality
    the first path found is a cheapest path on the grid.

    Parameters
    ----------
    dimensions : int
        Number of axes :math:`N > 0`.
    subdivisions : int
        Cells per axis :math:`S > 1`.
    wrapping : sequence of bool
        Per-axis wrap flags, length :math:`N`.
    compute_payload : callable
        ``compute_payload(coords) -> payload``.
    compute_step_cost : callable
        ``compute_step_cost(from_payload, from_coords, to_payload, to_coords) -> float >= 0``.
    compute_heuristic : callable
        ``compute_heuristic(payload, coords) -> float >= 0``.
    is_traversible : callable
        ``is_traversible(payload, coords) -> bool``.
    is_goal : callable
        ``is_goal(payload, coords) -> bool``.
    rel_tol, abs_tol : float, optional
        Tolerances of the :math:`f` tie test, see :func:`approx_compare`.

    Raises
    ------
    InvalidDimensionError
        If ``dimensions`` or ``subdivisions`` is not an integer,
        ``dimensions <= 0``, ``subdivisions <= 1`` or
        ``len(wrapping) != dimensions``.

    Notes
    -----
    Callbacks receive read-only ``float64`` arrays of cell-centre coordinates
    and are never called with points outside :math:`[0,1)^N`. Exceptions
    raised by callbacks propagate unchanged out of :meth:`step_search`.
    Cells rejected by ``is_traversible`` are remembered for the session and
    not evaluated again.

    Examples
    --------
    >>> target = 0.9
    >>> search = IHDAStar(
    ...     1, 4, [False],
    ...     compute_payload=lambda c: float(c[0]),
    ...     compute_step_cost=lambda a, ac, b, bc: abs(b - a),
    ...     compute_heuristic=lambda p, c: abs(target - p),
    ...     is_traversible=lambda p, c: True,
    ...     is_goal=lambda p, c: abs(target - p) < 0.03,
    ... )
    >>> search.begin_search([0.1])
    >>> search.run()
    4
    >>> [float(c[0]) for c in search.path]
    [0.125, 0.375, 0.625, 0.875]
    """

    __slots__ = (
        "_dimensions", "_subdivisions", "_wrapping",
        "_compute_payload", "_compute_step_cost", "_compute_heuristic",
        "_is_traversible", "_is_goal", "_rel_tol", "_abs_tol",
        "_nodes", "_by_position", "_blocked", "_open", "_path", "_state",
        "_expansions",
    )

    def __init__(self,
                 dimensions: int,
                 subdivisions: int,
                 wrapping: Sequence[bool],
                 compute_payload: PayloadFn,
                 compute_step_cost: StepCostFn,
                 compute_heuristic: HeuristicFn,
                 is_traversible: PredicateFn,
                 is_goal: PredicateFn,
                 *,
                 rel_tol: float = 1e-6,
                 abs_tol: float = 1e-12) -> None:
        if int(dimensions) != dimensions or int(subdivisions) != subdivisions:
            raise InvalidDimensionError(
                f"dimensions and subdivisions must be integers, got {dimensions!r} and {subdivisions!r}"
            )
        if int(dimensions) <= 0:
            raise InvalidDimensionError(f"dimensions must be > 0, got {dimensions}")
        if int(subdivisions) <= 1:
            raise InvalidDimensionError(f"subdivisions must be > 1, got {subdivisions}")
        wrapping = tuple(bool(w) for w in wrapping)
        if len(wrapping) != int(dimensions):
            raise InvalidDimensionError(
                f"wrapping has {len(wrapping)} flags for {dimensions} dimensions"
            )

        self._dimensions = int(dimensions)
        self._subdivisions = int(subdivisions)
        self._wrapping: Tuple[bool, ...] = wrapping

        self._compute_payload = compute_payload
        self._compute_step_cost = compute_step_cost
        self._compute_heuristic = compute_heuristic
        self._is_traversible = is_traversible
        self._is_goal = is_goal
        self._rel_tol = float(rel_tol)
        self._abs_tol = float(abs_tol)

        self._nodes: List[SearchNode[P]] = []
        self._by_position: Dict[Position, int] = {}
        self._blocked: Set[Position] = set()
        self._open: IndexedHeap[int] = IndexedHeap(self._compare_nodes)
        self._path: Optional[List[np.ndarray]] = None
        self._state = SearchState.IDLE
        self._expansions = 0

    # ------------------------------------------------------------------
    # Read-only views
    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def subdivisions(self) -> int:
        return self._subdivisions

    @property
    def wrapping(self) -> Tuple[bool, ...]:
        return self._wrapping

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def searching(self) -> bool:
        """``True`` while a goal has not been found and the open set is not empty."""
        return self._state is SearchState.SEARCHING

    @property
    def path(self) -> Optional[List[np.ndarray]]:
        """Cell-centre coordinates from start to goal; ``None`` until a goal is reached."""
        if self._path is None:
            return None
        return [c.copy() for c in self._path]

    @property
    def expansions(self) -> int:
        """Number of nodes expanded (popped without being a goal) this session."""
        return self._expansions

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def open_count(self) -> int:
        return len(self._open)

    @property
    def nodes(self) -> Tuple[SearchNode[P], ...]:
        return tuple(self._nodes)

    # ------------------------------------------------------------------
    # Grid <-> unit cube
    def coordinates_to_position(self, coords: Sequence[float]) -> Position:
        r"""
        Grid cell containing ``coords``.

        Wrapping axes are reduced modulo ``subdivisions``; the others are
        clamped to the grid, so :math:`x = 1` lands in the last cell.

        Raises
        ------
        InvalidDimensionError
            If ``len(coords) != dimensions`` or a coordinate is not finite.
        """
        values = np.asarray(coords, dtype=np.float64).reshape(-1)
        if values.size != self._dimensions:
            raise InvalidDimensionError(
                f"expected {self._dimensions} coordinates, got {values.size}"
            )
        if not np.isfinite(values).all():
            raise InvalidDimensionError(f"coordinates must be finite, got {values.tolist()}")
        cells = np.floor(values * self._subdivisions).astype(np.int64)
        wrap = np.asarray(self._wrapping, dtype=bool)
        cells = np.where(wrap, np.mod(cells, self._subdivisions),
                         np.clip(cells, 0, self._subdivisions - 1))
        return tuple(int(c) for c in cells)

    def position_to_coordinates(self, position: Sequence[int]) -> np.ndarray:
        """Read-only array of the cell centre ``(position + 0.5) / subdivisions``."""
        if len(position) != self._dimensions:
            raise InvalidDimensionError(
                f"expected {self._dimensions} grid indices, got {len(position)}"
            )
        coords = (np.asarray(position, dtype=np.float64) + 0.5) / self._subdivisions
        coords.flags.writeable = False
        return coords

    def _neighbour(self, position: Position, direction: int) -> Optional[Position]:
        """Cell one step from ``position``; even directions step -1, odd +1 along ``direction // 2``."""
        axis = direction >> 1
        moved = position[axis] + (1 if direction & 1 else -1)
        if moved < 0 or moved >= self._subdivisions:
            if not self._wrapping[axis]:
                return None
            moved %= self._subdivisions
        return position[:axis] + (moved,) + position[axis + 1:]

    # ------------------------------------------------------------------
    # Node bookkeeping
    def _compare_nodes(self, i: int, j: int) -> int:
        return approx_compare(self._nodes[i].f, self._nodes[j].f, self._rel_tol, self._abs_tol)

    def _allocate(self, position: Position, parent: Optional[int], g: float,
                  payload: Any, coords: np.ndarray) -> int:
        h = float(self._compute_heuristic(payload, coords))
        self._nodes.append(SearchNode(position, parent, payload, g, h))
        index = len(self._nodes) - 1
        self._by_position[position] = index
        return index

    def _build_path(self, index: Optional[int]) -> List[np.ndarray]:
        path: List[np.ndarray] = []
        while index is not None:
            node = self._nodes[index]
            path.append(self.position_to_coordinates(node.position))
            index = node.parent
        path.reverse()
        return path

    # ------------------------------------------------------------------
    # Public API
    def begin_search(self, start: Sequence[float]) -> None:
        """Discard any previous session and start a new one at ``start``."""
        position = self.coordinates_to_position(start)

        self._nodes = []
        self._by_position = {}
        self._blocked = set()
        self._open = IndexedHeap(self._compare_nodes)
        self._path = None
        self._expansions = 0

        coords = self.position_to_coordinates(position)
        payload = self._compute_payload(coords)
        self._open.insert(self._allocate(position, None, 0.0, payload, coords))
        self._state = SearchState.SEARCHING
        logger.debug("Search begun at cell %s (%d-D, %d subdivisions)",
                     position, self._dimensions, self._subdivisions)

    def step_search(self) -> SearchState:
        """Pop and expand one open node; no-op unless :attr:`searching`. Returns the state."""
        if self._state is not SearchState.SEARCHING:
            return self._state

        index = self._open.extract_min()
        node = self._nodes[index]
        coords = self.position_to_coordinates(node.position)

        if self._is_goal(node.payload, coords):
            self._path = self._build_path(index)
            self._state = SearchState.SUCCEEDED
            logger.debug("Goal reached at cell %s: cost=%.6g, path length=%d, expansions=%d, nodes=%d",
                         node.position, node.g, len(self._path), self._expansions, len(self._nodes))
            return self._state

        self._expansions += 1
        for direction in range(2 * self._dimensions):
            position = self._neighbour(node.position, direction)
            if position is None or position in self._blocked:
                continue

            child_coords = self.position_to_coordinates(position)
            child_index = self._by_position.get(position)

            if child_index is None:
                payload = self._compute_payload(child_coords)
                if not self._is_traversible(payload, child_coords):
                    self._blocked.add(position)
                    continue
                g = node.g + float(self._compute_step_cost(node.payload, coords, payload, child_coords))
                self._open.insert(self._allocate(position, index, g, payload, child_coords))
                continue

            child = self._nodes[child_index]
            g = node.g + float(self._compute_step_cost(node.payload, coords, child.payload, child_coords))
            if g < child.g:
                child.g = g
                child.parent = index
                if child_index in self._open:
                    self._open.decrease_key(child_index)
                else:
                    self._open.insert(child_index)

        if not self._open:
            self._state = SearchState.EXHAUSTED
            logger.debug("Search exhausted after %d expansions over %d nodes",
                         self._expansions, len(self._nodes))
        return self._state

    def run(self, max_steps: Optional[int] = None) -> int:
        """Step until the search stops or ``max_steps`` steps ran; return the steps taken."""
        steps = 0
        while self._state is SearchState.SEARCHING:
            if max_steps is not None and steps >= max_steps:
                break
            self.step_search()
            steps += 1
        return steps
