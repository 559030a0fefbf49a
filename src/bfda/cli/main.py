from __future__ import annotations

import argparse
import sys

from bfda.cli.commands.analyze import cmd_analyze
from bfda.cli.commands.run_config import cmd_run_config
from bfda.cli.commands.validate import cmd_validate
from bfda.cli.commands.version import cmd_version


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bfda", description="Design analysis of simulated sequential Bayes-factor trajectories.")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("analyze", help="Classify trajectories and report stopping outcomes.")
    sp.add_argument("--input", required=True, help="CSV with columns id, n, logBF, boundary, p_value.")
    sp.add_argument("--n-min", dest="n_min", type=int, default=None)
    sp.add_argument("--n-max", dest="n_max", type=int, default=None)
    sp.add_argument("--boundary", default=None, help="Threshold b (pair 1/b, b) or `lower,upper`, e.g. 6 or 1/6,6.")
    sp.add_argument("--alpha", type=float, default=0.05)
    sp.add_argument("--digits", type=int, default=1)
    sp.add_argument("--out", default=None, help="Write a results bundle to this directory.")
    sp.set_defaults(func=cmd_analyze)

    sp = sub.add_parser("validate", help="Validate a trajectory table.")
    sp.add_argument("--input", required=True)
    sp.add_argument("--schema", default="trajectories")
    sp.set_defaults(func=cmd_validate)

    sp = sub.add_parser("run-config", help="Run a command from a YAML config.")
    sp.add_argument("--config", required=True)
    sp.set_defaults(func=cmd_run_config)

    sp = sub.add_parser("version", help="Print installed package version.")
    sp.set_defaults(func=cmd_version)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    try:
        return int(args.func(args))
    except (ValueError, FileNotFoundError) as e:
        print(f"[bfda][error] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
