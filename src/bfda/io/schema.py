from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    dtype: str  # "int", "float", "any"


@dataclass(frozen=True)
class DatasetSchema:
    name: str
    required: List[ColumnSpec]
    id_col: str = "id"
    n_col: str = "n"


def get_schema(name: str) -> DatasetSchema:
    name = name.strip().lower()

    if name in ("trajectories", "bfda_sim", "sim"):
        return DatasetSchema(
            name="trajectories",
            required=[
                ColumnSpec("id", "any"),
                ColumnSpec("n", "int"),
                ColumnSpec("logBF", "float"),
                ColumnSpec("boundary", "float"),
                ColumnSpec("p_value", "float"),
            ],
        )

    raise ValueError(f"Unknown schema: {name}")
