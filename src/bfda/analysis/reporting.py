from __future__ import annotations

from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from bfda.analysis.schema import AnalysisResult

STOPPING_N_PROBS = (0.50, 0.80, 0.90, 0.95)


def stopping_n_quantiles(result: AnalysisResult, probs: Sequence[float] = STOPPING_N_PROBS) -> Dict[str, int]:
    """Quantiles of the stopping sample size, rounded up.

    Uses numpy's default linear interpolation (Hyndman & Fan type 7).
    """
    ns = np.asarray(result.endpoint_ns, dtype=float)
    if len(ns) == 0:
        return {}
    qs = np.quantile(ns, list(probs))
    return {f"{int(round(p * 100))}%": int(np.ceil(q)) for p, q in zip(probs, qs)}


def _pct(x: float, digits: int) -> str:
    if x is None or not np.isfinite(x):
        return "n/a"
    # no trailing zeros: 25.0 -> "25"
    return f"{np.format_float_positional(round(x * 100, digits), trim='-')}%"


def outcome_table(result: AnalysisResult, digits: int = 1) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "outcome": [
                "Studies terminating at n.max",
                "Studies terminating at a boundary",
                "--> Terminating at H1 boundary",
                "--> Terminating at H0 boundary",
            ],
            "percentage": [
                _pct(result.n_max_hit_frac, digits),
                _pct(result.boundary_hit_frac, digits),
                _pct(result.upper_hit_frac, digits),
                _pct(result.lower_hit_frac, digits),
            ],
        }
    )


def render_analysis_text(result: AnalysisResult, digits: int = 1) -> str:
    """Human-readable summary of a design analysis (console output)."""
    parts: list[str] = [outcome_table(result, digits).to_string(index=False)]

    if result.n_max_hit_n > 0:
        parts.append(
            f"\nOf {_pct(result.n_max_hit_frac, digits)} of studies terminating at n.max:\n"
            f"{_pct(result.n_max_hit_h1, digits)} showed evidence for H1 (BF > 3)\n"
            f"{_pct(result.n_max_hit_inconclusive, digits)} were inconclusive (3 > BF > 1/3)\n"
            f"{_pct(result.n_max_hit_h0, digits)} showed evidence for H0 (BF < 1/3)"
        )

    if result.boundary_hit_n > 0:
        q = stopping_n_quantiles(result)
        q_line = "  ".join(f"{k}: {v}" for k, v in q.items())
        parts.append(
            f"\nAverage sample number (ASN) at stopping point (both boundary hits and n.max): n = {result.asn}\n"
            f"\nSample number quantiles (50/80/90/95%) at stopping point:\n{q_line}"
        )

    if result.p_value_power is not None:
        parts.append(
            "\nFor fixed-n designs:\n--------------------\n"
            f"Frequentist power estimate (studies with p < {result.alpha}) = {_pct(result.p_value_power, digits)}"
        )

    return "\n".join(parts) + "\n"


def _fmt_density(name: str, d) -> Optional[str]:
    if d is None:
        return None
    lo, hi = d.support
    return f"- {name}: n_obs={d.n_obs}, bw={d.bw:.4g}, support=[{lo:.6g}, {hi:.6g}]"


def render_analysis_md(result: AnalysisResult, digits: int = 1, input_path: Optional[str] = None) -> str:
    lower, upper = result.boundary
    warn_block = ("- " + "\n- ".join(result.warnings)) if result.warnings else "(none)"

    table_md = "\n".join(
        f"| {row.outcome} | {row.percentage} |" for row in outcome_table(result, digits).itertuples(index=False)
    )

    lines: list[str] = []
    if result.n_max_hit_n > 0:
        lines.append("## Evidence at n_max")
        lines.append(f"- BF > 3 (H1): {_pct(result.n_max_hit_h1, digits)}")
        lines.append(f"- 1/3 < BF < 3 (inconclusive): {_pct(result.n_max_hit_inconclusive, digits)}")
        lines.append(f"- BF < 1/3 (H0): {_pct(result.n_max_hit_h0, digits)}")
        lines.append("")
    if result.boundary_hit_n > 0:
        lines.append("## Sample size at stopping")
        lines.append(f"- ASN: {result.asn}")
        for k, v in stopping_n_quantiles(result).items():
            lines.append(f"- {k} quantile: {v}")
        lines.append("")
    if result.p_value_power is not None:
        lines.append("## Fixed-n design")
        lines.append(f"- frequentist power (p < {result.alpha}): {_pct(result.p_value_power, digits)}")
        lines.append("")

    dens = [
        _fmt_density("stopping n at H1 boundary", result.d_top),
        _fmt_density("stopping n at H0 boundary", result.d_bottom),
        _fmt_density("logBF at n_max", result.d_right),
    ]
    dens_block = "\n".join(x for x in dens if x) or "(none: fewer than 2 trajectories per outcome)"
    section_block = "\n".join(lines)

    return f"""# bfda design analysis report

## Inputs
- input: `{input_path or "(in-memory)"}`
- n range: `{result.n_min}..{result.n_max}`
- boundary: `{lower:.6g}` / `{upper:.6g}` (log: `{result.log_boundary[0]:.4f}` / `{result.log_boundary[1]:.4f}`)
- alpha: `{result.alpha}`
- trajectories: `{result.all_traj_n}`

## Outcomes
| outcome | percentage |
|---|---|
{table_md}

{section_block}
## Densities
{dens_block}

## Warnings
{warn_block}

## Artifacts
- tables/endpoints.csv
- tables/densities.csv
"""
