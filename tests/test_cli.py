import json

import pandas as pd
import pytest

from bfda.cli.commands.analyze import parse_boundary
from bfda.cli.main import main


def _write_sim(path):
    rows = []
    for tid, obs in {
        1: [(10, 0.5), (20, 1.3), (30, 2.0)],
        2: [(10, -0.2), (20, -1.5)],
        3: [(10, 0.1), (20, 0.2), (30, -0.4)],
        4: [(10, 0.0), (20, 0.4), (30, 0.3)],
    }.items():
        for n, lbf in obs:
            rows.append({"id": tid, "n": n, "logBF": lbf, "boundary": 3.0, "p_value": 0.2})
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


def test_parse_boundary():
    assert parse_boundary(None) is None
    assert parse_boundary("6") == 6.0
    assert parse_boundary(6) == 6.0
    assert parse_boundary("1/6,6") == (pytest.approx(1 / 6), 6.0)
    assert parse_boundary([0.1, 10]) == (0.1, 10.0)
    with pytest.raises(ValueError):
        parse_boundary("1,2,3")
    with pytest.raises(ValueError):
        parse_boundary("1/0,6")


def test_analyze_prints_report_and_writes_bundle(tmp_path, capsys):
    sim = _write_sim(tmp_path / "sim.csv")
    out = tmp_path / "bundle"

    rc = main(["analyze", "--input", str(sim), "--boundary", "3", "--out", str(out)])
    assert rc == 0

    captured = capsys.readouterr()
    assert "Studies terminating at a boundary" in captured.out

    payload = json.loads((out / "results.json").read_text(encoding="utf-8"))
    assert payload["command"] == "analyze"
    est = payload["estimates"]
    assert est["all_traj_n"] == 4
    assert est["upper_hit_n"] == 1
    assert est["lower_hit_n"] == 1
    assert est["n_max_hit_n"] == 2
    assert est["p_value_power"] is None
    assert "50%" in est["stopping_n_quantiles"]

    assert (out / "report.md").exists()
    assert (out / "run_meta.json").exists()
    endpoints = pd.read_csv(out / "tables" / "endpoints.csv")
    assert len(endpoints) == 4
    dens = pd.read_csv(out / "tables" / "densities.csv")
    assert set(dens["density_name"]) == {"right"}


def test_analyze_reports_warnings_on_stderr(tmp_path, capsys):
    sim = _write_sim(tmp_path / "sim.csv")
    rc = main(["analyze", "--input", str(sim), "--boundary", "10"])
    assert rc == 0
    assert "[bfda][warn]" in capsys.readouterr().err


def test_analyze_bad_parameters_exit_2(tmp_path, capsys):
    sim = _write_sim(tmp_path / "sim.csv")
    rc = main(["analyze", "--input", str(sim), "--n-min", "30", "--n-max", "10"])
    assert rc == 2
    assert "[bfda][error]" in capsys.readouterr().err


def test_validate(tmp_path, capsys):
    sim = _write_sim(tmp_path / "sim.csv")
    assert main(["validate", "--input", str(sim)]) == 0
    assert "OK" in capsys.readouterr().out

    bad = tmp_path / "bad.csv"
    df = pd.read_csv(sim)
    df = pd.concat([df, df.iloc[[0]]], ignore_index=True).drop(columns=["p_value"])
    df.to_csv(bad, index=False)
    assert main(["validate", "--input", str(bad)]) == 2
    assert "Missing required column: p_value" in capsys.readouterr().out


def test_validate_detects_duplicates_and_order(tmp_path, capsys):
    sim = _write_sim(tmp_path / "sim.csv")
    df = pd.read_csv(sim)
    df = pd.concat([df.iloc[::-1], df.iloc[[0]]], ignore_index=True)
    bad = tmp_path / "bad.csv"
    df.to_csv(bad, index=False)

    assert main(["validate", "--input", str(bad)]) == 2
    out = capsys.readouterr().out
    assert "Duplicate (id, n) rows" in out
    assert "not ordered by increasing `n`" in out


def test_run_config(tmp_path, capsys):
    sim = _write_sim(tmp_path / "sim.csv")
    out = tmp_path / "bundle"
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text(
        f"command: analyze\ninput: {sim}\nout: {out}\nparams:\n  boundary: [0.3333333, 3]\n  n_max: 30\n",
        encoding="utf-8",
    )
    assert main(["run-config", "--config", str(cfg)]) == 0
    payload = json.loads((out / "results.json").read_text(encoding="utf-8"))
    assert payload["estimates"]["n_max"] == 30
    assert payload["inputs"]["boundary"] == [0.3333333, 3.0]


def test_run_config_unknown_command(tmp_path, capsys):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("command: simulate\ninput: x.csv\n", encoding="utf-8")
    assert main(["run-config", "--config", str(cfg)]) == 2
    assert "Unknown command" in capsys.readouterr().err


def test_analyze_zero_denominator_boundary_exit_2(tmp_path, capsys):
    sim = _write_sim(tmp_path / "sim.csv")
    rc = main(["analyze", "--input", str(sim), "--boundary", "1/0,6"])
    assert rc == 2
    assert "zero denominator" in capsys.readouterr().err
