from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import yaml

from bfda.cli.commands.analyze import cmd_analyze
from bfda.cli.commands.validate import cmd_validate


def _fail(msg: str) -> int:
    print(f"[bfda][error] {msg}", file=sys.stderr)
    return 2


def _as_args(d: dict[str, Any]) -> SimpleNamespace:
    # cmd_* functions expect attribute access (args.foo)
    return SimpleNamespace(**d)


def _load_yaml(path: str) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping (YAML dict).")
    return data


def cmd_run_config(args) -> int:
    cfg_path = str(args.config)
    cfg = _load_yaml(cfg_path)

    command = str(cfg.get("command", "")).strip()
    if not command:
        return _fail("Missing required field: command")

    input_path = cfg.get("input", None)
    if input_path is None:
        return _fail(f"{command} requires `input`")

    params = cfg.get("params", {}) or {}
    if not isinstance(params, dict):
        return _fail("Field `params` must be a mapping (YAML dict).")

    base_args: dict[str, Any] = {"out": cfg.get("out", None), "input": input_path}

    if command == "analyze":
        merged = {
            **base_args,
            "n_min": params.get("n_min"),
            "n_max": params.get("n_max"),
            "boundary": params.get("boundary"),
            "alpha": float(params.get("alpha", 0.05)),
            "digits": int(params.get("digits", 1)),
        }
        return int(cmd_analyze(_as_args(merged)))

    if command == "validate":
        merged = {
            **base_args,
            "schema": params.get("schema", cfg.get("schema", "trajectories")),
        }
        return int(cmd_validate(_as_args(merged)))

    return _fail(f"Unknown command: {command}")
