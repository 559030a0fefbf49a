from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

ID_COL = "id"
N_COL = "n"
LOGBF_COL = "logBF"
BOUNDARY_COL = "boundary"
P_VALUE_COL = "p_value"

TRAJECTORY_COLUMNS = [ID_COL, N_COL, LOGBF_COL, BOUNDARY_COL, P_VALUE_COL]

BoundaryLike = Union[float, Sequence[float]]


@dataclass(frozen=True)
class AnalysisConfig:
    """Parameters of one design analysis.

    `boundary` is either a single threshold b (giving the pair 1/b, b) or an
    explicit (lower, upper) pair on the Bayes-factor scale. Unset values are
    filled in from the trajectory table.
    """

    n_min: Optional[int] = None
    n_max: Optional[int] = None
    boundary: Optional[BoundaryLike] = None
    alpha: float = 0.05


@dataclass(frozen=True)
class Density:
    """Gaussian kernel density estimate evaluated on an equally spaced grid."""

    x: np.ndarray
    y: np.ndarray
    bw: float
    n_obs: int

    @property
    def support(self) -> Tuple[float, float]:
        return float(self.x[0]), float(self.x[-1])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"x": self.x, "density": self.y})


@dataclass(frozen=True)
class AnalysisResult:
    # resolved parameters
    n_min: int
    n_max: int
    boundary: Tuple[float, float]
    log_boundary: Tuple[float, float]
    alpha: float

    # outcome buckets (disjoint)
    upper_hit_ids: Tuple[Any, ...]
    lower_hit_ids: Tuple[Any, ...]
    n_max_hit_ids: Tuple[Any, ...]
    unclassified_ids: Tuple[Any, ...]

    all_traj_n: int
    boundary_hit_n: int
    upper_hit_n: int
    lower_hit_n: int
    n_max_hit_n: int

    boundary_hit_frac: float
    upper_hit_frac: float
    lower_hit_frac: float
    n_max_hit_frac: float

    # stopping points
    upper_hit_ns: np.ndarray
    lower_hit_ns: np.ndarray
    endpoint_ns: np.ndarray
    n_max_hit_logbf: np.ndarray

    d_top: Optional[Density]
    d_bottom: Optional[Density]
    d_right: Optional[Density]

    asn: Optional[int]

    # evidence categories at n_max, as fractions of all trajectories
    n_max_hit_h1: float
    n_max_hit_inconclusive: float
    n_max_hit_h0: float

    # only for fixed-n designs
    p_value_power: Optional[float]

    endpoints: pd.DataFrame
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_fixed_design(self) -> bool:
        return self.p_value_power is not None

    def to_dict(self) -> Dict[str, Any]:
        def _density(d: Optional[Density]) -> Optional[Dict[str, Any]]:
            if d is None:
                return None
            return {"bw": d.bw, "n_obs": d.n_obs, "support": list(d.support)}

        def _num(x: float) -> Optional[float]:
            return float(x) if np.isfinite(x) else None

        return {
            "n_min": self.n_min,
            "n_max": self.n_max,
            "boundary": list(self.boundary),
            "log_boundary": list(self.log_boundary),
            "alpha": self.alpha,
            "all_traj_n": self.all_traj_n,
            "boundary_hit_n": self.boundary_hit_n,
            "upper_hit_n": self.upper_hit_n,
            "lower_hit_n": self.lower_hit_n,
            "n_max_hit_n": self.n_max_hit_n,
            "unclassified_n": len(self.unclassified_ids),
            "boundary_hit_frac": _num(self.boundary_hit_frac),
            "upper_hit_frac": _num(self.upper_hit_frac),
            "lower_hit_frac": _num(self.lower_hit_frac),
            "n_max_hit_frac": _num(self.n_max_hit_frac),
            "n_max_hit_h1": _num(self.n_max_hit_h1),
            "n_max_hit_inconclusive": _num(self.n_max_hit_inconclusive),
            "n_max_hit_h0": _num(self.n_max_hit_h0),
            "asn": self.asn,
            "p_value_power": self.p_value_power,
            "d_top": _density(self.d_top),
            "d_bottom": _density(self.d_bottom),
            "d_right": _density(self.d_right),
            "warnings": list(self.warnings),
        }


def ensure_columns(df: pd.DataFrame, cols: List[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}. Present columns: {list(df.columns)}")


def resolve_boundary(boundary: BoundaryLike) -> Tuple[float, float]:
    """Return the sorted (lower, upper) boundary pair on the Bayes-factor scale."""
    if np.ndim(boundary) == 0:
        b = float(boundary)  # type: ignore[arg-type]
        if not np.isfinite(b) or b <= 0:
            raise ValueError(f"boundary must be a positive number, got {boundary!r}")
        pair = sorted([b, 1.0 / b])
    else:
        vals = [float(x) for x in boundary]  # type: ignore[union-attr]
        if len(vals) != 2:
            raise ValueError(f"boundary must be a number or a (lower, upper) pair, got {boundary!r}")
        if any((not np.isfinite(v)) or v <= 0 for v in vals):
            raise ValueError(f"boundary values must be positive, got {boundary!r}")
        pair = sorted(vals)

    lower, upper = float(pair[0]), float(pair[1])
    if lower == upper:
        raise ValueError(f"boundary pair collapses to a single value ({lower}); use b != 1")
    return lower, upper


def log_boundary(boundary: Tuple[float, float]) -> Tuple[float, float]:
    return math.log(boundary[0]), math.log(boundary[1])
