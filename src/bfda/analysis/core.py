from __future__ import annotations

import math
from typing import Any, List, Optional

import numpy as np
import pandas as pd

from bfda.analysis.classify import LOWER, N_MAX, UPPER, classify_trajectories
from bfda.analysis.density import density_or_none
from bfda.analysis.schema import (
    BOUNDARY_COL,
    ID_COL,
    LOGBF_COL,
    N_COL,
    P_VALUE_COL,
    TRAJECTORY_COLUMNS,
    AnalysisConfig,
    AnalysisResult,
    BoundaryLike,
    Density,
    ensure_columns,
    log_boundary,
    resolve_boundary,
)

# conventional evidence categories for trajectories that end at n_max
LOG_BF_H1 = math.log(3)
LOG_BF_H0 = math.log(1 / 3)


def _frac(k: int, total: int) -> float:
    return float(k) / float(total) if total > 0 else np.nan


def _frozen(x: Any, dtype=float) -> np.ndarray:
    arr = np.array(x, dtype=dtype)
    arr.setflags(write=False)
    return arr


def _stopping_density(ns: np.ndarray, n_floor: float) -> Optional[Density]:
    if len(ns) < 2:
        return None
    return density_or_none(ns, n_floor, float(np.max(ns)))


def run_analysis(table: pd.DataFrame, cfg: AnalysisConfig = AnalysisConfig()) -> AnalysisResult:
    """Classify simulated trajectories and summarize their stopping behaviour.

    The table holds one row per (trajectory id, sample size) with columns
    id, n, logBF, boundary, p_value. Parameter problems raise ValueError; data
    coverage problems are reported in `AnalysisResult.warnings`.
    """
    warnings: List[str] = []
    ensure_columns(table, TRAJECTORY_COLUMNS)
    if len(table) == 0:
        raise ValueError("trajectory table is empty")

    alpha = float(cfg.alpha)
    if not (0.0 < alpha < 1.0):
        raise ValueError(f"alpha must be in (0, 1), got {cfg.alpha}")

    sim = table.loc[:, TRAJECTORY_COLUMNS].copy()
    for c in [N_COL, LOGBF_COL, BOUNDARY_COL, P_VALUE_COL]:
        sim[c] = pd.to_numeric(sim[c], errors="coerce")

    n_max = int(cfg.n_max) if cfg.n_max is not None else int(np.nanmax(sim[N_COL]))
    n_min = int(cfg.n_min) if cfg.n_min is not None else int(np.nanmin(sim[N_COL]))
    if n_min > n_max:
        raise ValueError(f"n_min ({n_min}) must not exceed n_max ({n_max})")

    boundary_in = cfg.boundary if cfg.boundary is not None else float(np.nanmax(sim[BOUNDARY_COL]))
    boundary = resolve_boundary(boundary_in)
    log_b = log_boundary(boundary)

    sim_boundary_min = float(np.nanmin(sim[BOUNDARY_COL]))
    if boundary[1] > sim_boundary_min:
        warnings.append(
            f"The selected boundary ({boundary[1]:.6g}) is larger than the smallest stopping boundary "
            f"({sim_boundary_min:.6g}) used in the simulation. Trajectories may have been stopped before "
            "reaching it, so boundary hits can be undercounted."
        )
    sim_n_max = int(np.nanmax(sim[N_COL]))
    if n_max > sim_n_max:
        warnings.append(
            f"The selected n_max ({n_max}) is larger than the largest n ({sim_n_max}) in the simulation. "
            "Trajectories cannot survive to n_max, so the analysis is not meaningful."
        )
    if sim.duplicated([ID_COL, N_COL]).any():
        warnings.append("Duplicate (id, n) rows found. Trajectory ids may not be unique.")

    # reduce simulation to the relevant sample sizes
    sim = sim[(sim[N_COL] >= n_min) & (sim[N_COL] <= n_max)].reset_index(drop=True)
    if len(sim) == 0:
        warnings.append(f"No rows with {n_min} <= n <= {n_max}. Nothing to analyze.")

    endpoints, unclassified = classify_trajectories(sim, log_b, n_max)

    is_upper = endpoints["outcome"] == UPPER
    is_lower = endpoints["outcome"] == LOWER
    is_ceiling = endpoints["outcome"] == N_MAX

    all_traj_n = int(sim[ID_COL].nunique())
    upper_hit_n = int(is_upper.sum())
    lower_hit_n = int(is_lower.sum())
    n_max_hit_n = int(is_ceiling.sum())
    boundary_hit_n = upper_hit_n + lower_hit_n

    # sanity checks: all outcomes should sum to the overall number of trajectories
    if all_traj_n != boundary_hit_n + n_max_hit_n or all_traj_n != n_max_hit_n + upper_hit_n + lower_hit_n:
        sample = ", ".join(str(x) for x in unclassified[:5])
        warnings.append(
            f"Outcomes do not sum up to 100%: {len(unclassified)} of {all_traj_n} trajectories neither hit a "
            f"boundary nor reached n_max={n_max} (e.g. id {sample})."
        )

    upper_ns = endpoints.loc[is_upper, N_COL].to_numpy(dtype=float)
    lower_ns = endpoints.loc[is_lower, N_COL].to_numpy(dtype=float)
    endpoint_ns = endpoints[N_COL].to_numpy(dtype=float)
    right_logbf = endpoints.loc[is_ceiling, LOGBF_COL].to_numpy(dtype=float)

    n_floor = float(sim[N_COL].min()) if len(sim) else np.nan
    d_top = _stopping_density(upper_ns, n_floor)
    d_bottom = _stopping_density(lower_ns, n_floor)
    d_right = None
    if len(right_logbf) >= 2:
        d_right = density_or_none(right_logbf, float(np.min(right_logbf)), float(np.max(right_logbf)))

    asn = int(math.ceil(float(np.mean(endpoint_ns)))) if len(endpoint_ns) > 0 else None

    # a fixed-n design has no optional stopping: plain frequentist power applies
    p_value_power: Optional[float] = None
    if len(sim) > 0 and sim[N_COL].nunique() == 1:
        sig = int(sim.loc[sim[P_VALUE_COL] < alpha, ID_COL].nunique())
        p_value_power = sig / all_traj_n

    return AnalysisResult(
        n_min=n_min,
        n_max=n_max,
        boundary=boundary,
        log_boundary=log_b,
        alpha=alpha,
        upper_hit_ids=tuple(endpoints.loc[is_upper, ID_COL]),
        lower_hit_ids=tuple(endpoints.loc[is_lower, ID_COL]),
        n_max_hit_ids=tuple(endpoints.loc[is_ceiling, ID_COL]),
        unclassified_ids=tuple(unclassified),
        all_traj_n=all_traj_n,
        boundary_hit_n=boundary_hit_n,
        upper_hit_n=upper_hit_n,
        lower_hit_n=lower_hit_n,
        n_max_hit_n=n_max_hit_n,
        boundary_hit_frac=_frac(boundary_hit_n, all_traj_n),
        upper_hit_frac=_frac(upper_hit_n, all_traj_n),
        lower_hit_frac=_frac(lower_hit_n, all_traj_n),
        n_max_hit_frac=_frac(n_max_hit_n, all_traj_n),
        upper_hit_ns=_frozen(upper_ns),
        lower_hit_ns=_frozen(lower_ns),
        endpoint_ns=_frozen(endpoint_ns),
        n_max_hit_logbf=_frozen(right_logbf),
        d_top=d_top,
        d_bottom=d_bottom,
        d_right=d_right,
        asn=asn,
        n_max_hit_h1=_frac(int(np.sum(right_logbf > LOG_BF_H1)), all_traj_n),
        n_max_hit_inconclusive=_frac(
            int(np.sum((right_logbf < LOG_BF_H1) & (right_logbf > LOG_BF_H0))), all_traj_n
        ),
        n_max_hit_h0=_frac(int(np.sum(right_logbf < LOG_BF_H0)), all_traj_n),
        p_value_power=p_value_power,
        endpoints=endpoints,
        warnings=tuple(warnings),
    )


def analyze(
    table: pd.DataFrame,
    n_min: Optional[int] = None,
    n_max: Optional[int] = None,
    boundary: Optional[BoundaryLike] = None,
    alpha: float = 0.05,
) -> AnalysisResult:
    return run_analysis(table, AnalysisConfig(n_min=n_min, n_max=n_max, boundary=boundary, alpha=alpha))
