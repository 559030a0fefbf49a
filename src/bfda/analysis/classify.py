from __future__ import annotations

from typing import Any, List, Optional, Tuple

import numpy as np
import pandas as pd

from bfda.analysis.schema import ID_COL, LOGBF_COL, N_COL, P_VALUE_COL

UPPER = "upper"
LOWER = "lower"
N_MAX = "n_max"
UNCLASSIFIED = "unclassified"


def classify_trajectory(
    ns: np.ndarray,
    logbf: np.ndarray,
    log_boundary: Tuple[float, float],
    n_max: int,
) -> Tuple[str, Optional[int]]:
    """Classify one trajectory whose rows are ordered by increasing n.

    Returns the outcome and the position of its endpoint row. The first row at
    or beyond either log-boundary is the endpoint (a sequential design stops
    there). Otherwise the trajectory survives to the ceiling if it has a row at
    exactly n_max and its evidence never left [lower, upper]. Touching a
    boundary exactly counts as a crossing, so the buckets never overlap.
    """
    lower, upper = log_boundary
    ns = np.asarray(ns)
    logbf = np.asarray(logbf, dtype=float)

    crossed = (logbf >= upper) | (logbf <= lower)
    if crossed.any():
        i = int(np.argmax(crossed))
        return (UPPER if logbf[i] >= upper else LOWER), i

    contained = bool(np.all((logbf >= lower) & (logbf <= upper)))
    at_ceiling = np.flatnonzero(ns == n_max)
    if contained and len(at_ceiling) > 0:
        return N_MAX, int(at_ceiling[0])

    return UNCLASSIFIED, None


def classify_trajectories(
    sim: pd.DataFrame,
    log_boundary: Tuple[float, float],
    n_max: int,
) -> Tuple[pd.DataFrame, List[Any]]:
    """One scan per trajectory id over the working table.

    Returns the endpoint table (one row per classified trajectory, in order of
    first appearance of the id) and the ids that could not be classified.
    """
    rows: list[dict[str, Any]] = []
    unclassified: List[Any] = []

    for tid, g in sim.groupby(ID_COL, sort=False):
        g = g.sort_values(N_COL, kind="mergesort")
        ns = g[N_COL].to_numpy()
        logbf = g[LOGBF_COL].to_numpy(dtype=float)

        outcome, i = classify_trajectory(ns, logbf, log_boundary, n_max)
        if i is None:
            unclassified.append(tid)
            continue

        rows.append(
            {
                ID_COL: tid,
                N_COL: int(ns[i]),
                LOGBF_COL: float(logbf[i]),
                P_VALUE_COL: float(g[P_VALUE_COL].iloc[i]),
                "outcome": outcome,
            }
        )

    endpoints = pd.DataFrame(rows, columns=[ID_COL, N_COL, LOGBF_COL, P_VALUE_COL, "outcome"])
    return endpoints, unclassified
