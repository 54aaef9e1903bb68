from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

TWO_PI = 2.0 * np.pi


def unit_vector_from_uv(u: float, v: float) -> np.ndarray:
    r"""
    Map unit-square coordinates to a direction on the unit sphere.

    With azimuth :math:`\theta = 2\pi u` (around the :math:`y` axis) and
    polar angle :math:`\varphi = \pi v` (measured from :math:`+y`),

    .. math::

        \hat{\mathbf{d}}(u, v) =
        \bigl(\cos\theta\,\sin\varphi,\; \cos\varphi,\; \sin\theta\,\sin\varphi\bigr).

    :math:`u` wraps with period 1; :math:`v=0` and :math:`v=1` are the poles.

    Parameters
    ----------
    u, v : float
        Rotation and bend fractions in :math:`[0,1)`.

    Returns
    -------
    ndarray, shape (3,)
        Unit direction, ``float64``.
    """
    theta = TWO_PI * float(u)
    phi = np.pi * float(v)
    s = np.sin(phi)
    return np.array([np.cos(theta) * s, np.cos(phi), np.sin(theta) * s], dtype=np.float64)


def uv_from_unit_vector(p: Sequence[float]) -> Tuple[float, float]:
    r"""
    Inverse of :func:`unit_vector_from_uv`.

    The input is normalized first, then

    .. math::

        \theta = \operatorname{atan2}(z, x) \in [0, 2\pi),\qquad
        \varphi = \arccos y,\qquad
        (u, v) = \bigl(\theta / 2\pi,\; \varphi / \pi\bigr).

    At the poles the azimuth is undefined and :math:`u = 0` is returned.

    Raises
    ------
    ValueError
        If ``p`` is not a 3-vector or has zero length.
    """
    d = np.asarray(p, dtype=np.float64).reshape(-1)
    if d.size != 3:
        raise ValueError(f"expected a 3-vector, got shape {np.shape(p)}")
    n = float(np.linalg.norm(d))
    if n == 0.0 or not np.isfinite(n):
        raise ValueError("cannot take the direction of a zero-length vector")
    x, y, z = d / n
    theta = float(np.arctan2(z, x))
    if theta < 0.0:
        theta += TWO_PI
    phi = float(np.arccos(np.clip(y, -1.0, 1.0)))
    u = theta / TWO_PI
    # atan2 of a tiny negative z can round up to exactly 2*pi
    return (0.0 if u >= 1.0 else u), phi / np.pi
