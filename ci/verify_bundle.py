import json
from pathlib import Path
import sys


def _die(msg: str) -> None:
    print(f"[verify_bundle][FAIL] {msg}", file=sys.stderr)
    raise SystemExit(2)


def _ok(msg: str) -> None:
    print(f"[verify_bundle] {msg}")


def _read_json(p: Path) -> dict:
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        _die(f"Failed to read json: {p} ({e})")


def _require_file(p: Path) -> None:
    if not p.exists() or not p.is_file():
        _die(f"Missing file: {p}")
    if p.stat().st_size <= 0:
        _die(f"Empty file: {p}")


def _require_dir(p: Path) -> None:
    if not p.exists() or not p.is_dir():
        _die(f"Missing dir: {p}")


def _is_list_of_str(x) -> bool:
    return isinstance(x, list) and all(isinstance(i, str) for i in x)


def verify_bundle_common(out_dir: Path) -> dict:
    """
    Structural + integrity checks:
      - required top-level files exist and non-empty
      - results.json schema basics
      - artifacts paths exist and non-empty
    """
    _require_dir(out_dir)

    results = out_dir / "results.json"
    _require_file(results)
    _require_file(out_dir / "report.md")
    _require_file(out_dir / "run_meta.json")

    payload = _read_json(results)

    for key in ("command", "inputs", "artifacts"):
        if key not in payload:
            _die(f"{out_dir}: results.json missing '{key}'")

    tables = payload["artifacts"].get("tables", [])
    if not _is_list_of_str(tables):
        _die(f"{out_dir}: artifacts.tables must be list[str]")

    for rel in tables:
        _require_file(out_dir / str(rel).replace("\\", "/"))

    return payload


def verify_analyze(out_dir: Path, payload: dict) -> None:
    _require_file(out_dir / "tables" / "endpoints.csv")
    _require_file(out_dir / "tables" / "densities.csv")

    est = payload.get("estimates", {})
    for key in ("all_traj_n", "upper_hit_n", "lower_hit_n", "n_max_hit_n", "unclassified_n"):
        if not isinstance(est.get(key), int):
            _die(f"{out_dir}: estimates.{key} must be an int")

    # every trajectory lands in exactly one outcome, or is reported as unclassified
    total = est["upper_hit_n"] + est["lower_hit_n"] + est["n_max_hit_n"] + est["unclassified_n"]
    if total != est["all_traj_n"]:
        _die(f"{out_dir}: outcome counts ({total}) do not match all_traj_n ({est['all_traj_n']})")

    power = est.get("p_value_power")
    if power is not None and not (0.0 <= float(power) <= 1.0):
        _die(f"{out_dir}: p_value_power out of [0, 1]: {power}")


def verify_one(out_dir: Path) -> None:
    payload = verify_bundle_common(out_dir)
    cmd = str(payload.get("command", "")).strip()

    if cmd == "analyze":
        verify_analyze(out_dir, payload)
    else:
        _ok(f"{out_dir}: unknown command '{cmd}', only common checks applied")

    _ok(f"{out_dir}: OK")


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print("Usage: python ci/verify_bundle.py <out_dir> [<out_dir> ...]")
        return 2

    out_dirs = [Path(a) for a in argv[1:]]
    for d in out_dirs:
        verify_one(d)

    _ok(f"OK ({len(out_dirs)} bundles)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
