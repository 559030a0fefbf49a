from __future__ import annotations

import numpy as np
import pandas as pd

from bfda.io.schema import DatasetSchema

# column names used by other simulation exports
_ALIASES = {"p.value": "p_value", "pvalue": "p_value", "logbf": "logBF"}


def read_csv(path: str) -> pd.DataFrame:
    df = pd.read_csv(path)
    return df.rename(columns={c: _ALIASES[c] for c in df.columns if c in _ALIASES})


def validate_df(df: pd.DataFrame, schema: DatasetSchema) -> list[str]:
    errors: list[str] = []

    cols = set(df.columns)
    for c in schema.required:
        if c.name not in cols:
            errors.append(f"Missing required column: {c.name}")

    if errors:
        return errors

    if len(df) == 0:
        return ["Dataset has no rows"]

    for c in schema.required:
        if c.dtype == "any":
            continue
        vals = pd.to_numeric(df[c.name], errors="coerce")
        bad = int(vals.isna().sum())
        if bad:
            errors.append(f"Column `{c.name}` has missing/non-numeric values: n={bad}")
        elif c.dtype == "int" and not np.all(np.mod(vals.to_numpy(dtype=float), 1) == 0):
            errors.append(f"Column `{c.name}` must hold integers")

    if errors:
        return errors

    id_col, n_col = schema.id_col, schema.n_col
    if df[id_col].isna().any():
        errors.append(f"Column `{id_col}` has missing values: n={int(df[id_col].isna().sum())}")

    n = pd.to_numeric(df[n_col])
    if (n <= 0).any():
        errors.append(f"Column `{n_col}` must be positive: n_bad={int((n <= 0).sum())}")

    if "boundary" in cols and (pd.to_numeric(df["boundary"]) < 1).any():
        errors.append("Column `boundary` must be >= 1")

    if "p_value" in cols:
        p = pd.to_numeric(df["p_value"])
        if ((p < 0) | (p > 1)).any():
            errors.append("Column `p_value` must lie in [0, 1]")

    dup = int(df.duplicated([id_col, n_col]).sum())
    if dup:
        errors.append(f"Duplicate ({id_col}, {n_col}) rows: n={dup}. Trajectory ids must be unique per run.")

    non_monotone = df.assign(_n=n).groupby(id_col, sort=False)["_n"].apply(lambda s: not s.is_monotonic_increasing)
    k = int(non_monotone.sum())
    if k:
        errors.append(f"Rows are not ordered by increasing `{n_col}` within {k} trajectories")

    return errors
