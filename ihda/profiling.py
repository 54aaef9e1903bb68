from __future__ import annotations

import cProfile
import io
import logging
import pstats
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Union

_SORT_ALIASES = {
    "tottime": pstats.SortKey.TIME,
    "cumtime": pstats.SortKey.CUMULATIVE,
    "calls":   pstats.SortKey.CALLS,
    "ncalls":  pstats.SortKey.CALLS,
    "pcalls":  pstats.SortKey.PCALLS,
    "name":    pstats.SortKey.NAME,
    "file":    pstats.SortKey.FILENAME,
    "line":    pstats.SortKey.LINE,
}


def _resolve_sort_key(sort: Union[str, pstats.SortKey]) -> pstats.SortKey:
    r"""
    Map a sort alias (``"tottime"``, ``"cumtime"``, ``"calls"``, ...) to a
    :class:`pstats.SortKey`. Unknown strings fall back to ``"tottime"``;
    ``SortKey`` members pass through.
    """
    if isinstance(sort, pstats.SortKey):
        return sort
    return _SORT_ALIASES.get(str(sort).lower(), pstats.SortKey.TIME)


@contextmanager
def prof(
    enable: bool = False,
    *,
    sort: Union[str, pstats.SortKey] = "cumtime",
    limit: Optional[int] = 25,
    out_path: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> Iterator[Optional[cProfile.Profile]]:
    r"""
    Optional cProfile block around a search run.

    When ``enable`` is ``False`` the context is a no-op and yields ``None``.
    Otherwise the block is profiled and the top ``limit`` rows, sorted by
    ``sort``, are written to ``out_path``, logged through ``logger`` at INFO,
    or printed, in that order of preference. The text is headed by the
    wall-clock time :math:`\Delta t = t_1 - t_0` of the block.

    Examples
    --------
    >>> with prof(True, sort="tottime", limit=10):
    ...     planner.solve()  # doctest: +SKIP
    """
    if not enable:
        yield None
        return

    pr = cProfile.Profile()
    t0 = time.perf_counter()
    pr.enable()
    try:
        yield pr
    finally:
        pr.disable()
        t1 = time.perf_counter()

        s = io.StringIO()
        ps = pstats.Stats(pr, stream=s).strip_dirs().sort_stats(_resolve_sort_key(sort))
        ps.print_stats(limit if limit is not None else 1_000_000)
        text = f"[prof] elapsed={t1 - t0:.6f}s sort={sort} limit={limit}\n" + s.getvalue()

        if out_path:
            with open(out_path, "w", encoding="utf-8") as f:
                f.write(text)
        elif logger is not None:
            logger.info(text)
        else:
            print(text, end="")
