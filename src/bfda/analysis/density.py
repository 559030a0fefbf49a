from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.stats import norm

from bfda.analysis.schema import Density

GRID_POINTS = 512


def bandwidth_silverman(x: np.ndarray) -> float:
    """Silverman's rule of thumb: 0.9 * min(sd, IQR / 1.34) * n^(-1/5).

    Falls back to sd, then |x[0]|, then 1 when the spread is zero so that
    degenerate samples (all stopping at the same n) still get a bandwidth.
    """
    x = np.asarray(x, dtype=float)
    if len(x) < 2:
        raise ValueError("need at least 2 observations to select a bandwidth")

    hi = float(np.std(x, ddof=1))
    q75, q25 = np.percentile(x, [75, 25])
    lo = min(hi, float(q75 - q25) / 1.34)
    if not lo > 0:
        lo = hi or abs(float(x[0])) or 1.0
    return float(0.9 * lo * len(x) ** (-0.2))


def kernel_density(
    x: np.ndarray,
    lo: float,
    hi: float,
    *,
    bw: Optional[float] = None,
    grid_points: int = GRID_POINTS,
) -> Density:
    """Gaussian KDE of `x` evaluated on `grid_points` equally spaced points in [lo, hi]."""
    x = np.asarray(x, dtype=float)
    x = x[np.isfinite(x)]
    h = bandwidth_silverman(x) if bw is None else float(bw)
    if not np.isfinite(h) or h <= 0:
        raise ValueError(f"bandwidth must be positive, got {h}")

    grid = np.linspace(float(lo), float(hi), int(grid_points))
    y = norm.pdf((grid[:, None] - x[None, :]) / h).mean(axis=1) / h

    grid.setflags(write=False)
    y.setflags(write=False)
    return Density(x=grid, y=y, bw=h, n_obs=int(len(x)))


def density_or_none(x: np.ndarray, lo: float, hi: float) -> Optional[Density]:
    """KDE when there are at least two finite observations, else None."""
    x = np.asarray(x, dtype=float)
    x = x[np.isfinite(x)]
    if len(x) < 2:
        return None
    return kernel_density(x, lo, hi)
