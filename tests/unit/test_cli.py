from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg", force=True)
import pytest

from odeity import cli

DATA = Path(__file__).resolve().parents[1] / "data" / "configs"


def test_integrators_list(capsys):
    code = cli.main(["integrators", "list"])
    captured = capsys.readouterr()
    assert code == 0
    for name in ("rk23", "rkm45", "dp45", "ck45", "rkc"):
        assert name in captured.out
    assert "aliases: dopri5, dormand_prince" in captured.out
    assert "stages=var" in captured.out


def test_integrators_list_filters(capsys):
    code = cli.main(["integrators", "list", "--family", "rkc"])
    out = capsys.readouterr().out
    assert code == 0
    assert out.splitlines() and all(line.startswith("rkc") for line in out.splitlines())

    code = cli.main(["integrators", "list", "--stiff"])
    out = capsys.readouterr().out
    assert code == 0
    assert "rkc" in out and "dp45" not in out


def test_problems_list(capsys):
    code = cli.main(["problems", "list"])
    out = capsys.readouterr().out
    assert code == 0
    names = [line.split()[0] for line in out.splitlines()]
    assert names == sorted(names)
    assert {"decay", "heat", "b1"} <= set(names)


def test_run_prints_final_state_and_stats(capsys):
    code = cli.main(["run", str(DATA / "decay_rk23.toml")])
    captured = capsys.readouterr()
    assert code == 0
    assert "integrator: rk23" in captured.out
    assert "t = 1" in captured.out
    y_line = next(line for line in captured.out.splitlines() if line.startswith("y = "))
    assert float(y_line.split()[2]) == pytest.approx(0.36787944117, abs=1e-5)
    assert "Runge-Kutta statistics" in captured.out


def test_run_writes_history_and_plot(tmp_path: Path, capsys):
    hist = tmp_path / "steps.txt"
    plot = tmp_path / "figs" / "steps.png"
    code = cli.main(["run", str(DATA / "b1_dp45.toml"), "--history", str(hist), "--plot", str(plot)])
    captured = capsys.readouterr()
    assert code == 0
    lines = hist.read_text(encoding="utf-8").splitlines()
    accepted = next(
        int(line.split()[-1]) for line in captured.out.splitlines() if line.startswith("Accepted steps")
    )
    assert len(lines) == accepted
    times = [float(line.split()[0]) for line in lines]
    assert times == sorted(times)
    assert times[-1] == 10.0
    assert plot.exists()


def test_run_missing_config(tmp_path: Path, capsys):
    code = cli.main(["run", str(tmp_path / "nope.toml")])
    captured = capsys.readouterr()
    assert code == 1
    assert "Config file not found" in captured.err
    assert captured.err.startswith("odeity: error:")


def test_run_unknown_integrator(tmp_path: Path, capsys):
    cfg = tmp_path / "bad.toml"
    cfg.write_text('[integrator]\nname = "rk99"\n[problem]\nname = "decay"\n[run]\nt_end = 1\n', encoding="utf-8")
    code = cli.main(["run", str(cfg)])
    captured = capsys.readouterr()
    assert code == 1
    assert "Unknown integrator: 'rk99'" in captured.err


def test_missing_subcommand_exits():
    with pytest.raises(SystemExit):
        cli.main([])
