from __future__ import annotations

import sys
from typing import Any, Optional, Union

import pandas as pd

from bfda.analysis import AnalysisConfig, render_analysis_md, render_analysis_text, run_analysis
from bfda.analysis.reporting import stopping_n_quantiles
from bfda.cli.bundle import (
    prepare_out_dir,
    write_report_md,
    write_results_json,
    write_run_meta,
    write_table,
)
from bfda.io.reader import read_csv


def _warn(msg: str) -> None:
    print(f"[bfda][warn] {msg}", file=sys.stderr)


def _parse_number(s: str) -> float:
    s = s.strip()
    if "/" in s:
        num, den = s.split("/", 1)
        if float(den) == 0:
            raise ValueError(f"--boundary: zero denominator in {s!r}")
        return float(num) / float(den)
    return float(s)


def parse_boundary(s: Any) -> Optional[Union[float, tuple[float, float]]]:
    """Parse `6`, `1/6,6` or `0.1667,6` into a threshold or a (lower, upper) pair."""
    if s is None:
        return None
    if isinstance(s, (int, float)):
        return float(s)
    if isinstance(s, (list, tuple)):
        vals = [float(x) for x in s]
    else:
        vals = [_parse_number(p) for p in str(s).split(",") if p.strip()]
    if len(vals) == 1:
        return vals[0]
    if len(vals) == 2:
        return vals[0], vals[1]
    raise ValueError(f"--boundary expects one value or a lower,upper pair, got {s!r}")


def _opt_int(x: Any) -> Optional[int]:
    return None if x is None else int(x)


def cmd_analyze(args) -> int:
    cfg = AnalysisConfig(
        n_min=_opt_int(getattr(args, "n_min", None)),
        n_max=_opt_int(getattr(args, "n_max", None)),
        boundary=parse_boundary(getattr(args, "boundary", None)),
        alpha=float(getattr(args, "alpha", 0.05)),
    )
    digits = int(getattr(args, "digits", 1))

    df = read_csv(args.input)
    res = run_analysis(df, cfg)

    for w in res.warnings:
        _warn(w)
    print(render_analysis_text(res, digits=digits), end="")

    out = getattr(args, "out", None)
    if out is None:
        return 0

    out_dir = prepare_out_dir(out)
    write_run_meta(out_dir, vars(args), extra={"command": "analyze"})

    densities = []
    for name, d in (("top", res.d_top), ("bottom", res.d_bottom), ("right", res.d_right)):
        if d is not None:
            densities.append(d.to_frame().assign(density_name=name))
    dens_df = pd.concat(densities, ignore_index=True) if densities else pd.DataFrame(columns=["x", "density", "density_name"])

    artifacts: dict[str, Any] = {"report_md": "report.md", "plots": [], "tables": []}
    artifacts["tables"].append(write_table(out_dir, "endpoints", res.endpoints))
    artifacts["tables"].append(write_table(out_dir, "densities", dens_df))

    payload: dict[str, Any] = {
        "command": "analyze",
        "inputs": {
            "input": args.input,
            "n_min": cfg.n_min,
            "n_max": cfg.n_max,
            "boundary": cfg.boundary,
            "alpha": cfg.alpha,
        },
        "estimates": res.to_dict() | {"stopping_n_quantiles": stopping_n_quantiles(res)},
        "warnings": list(res.warnings),
        "artifacts": artifacts,
    }

    write_results_json(out_dir, payload)
    write_report_md(out_dir, render_analysis_md(res, digits=digits, input_path=args.input))
    return 0
