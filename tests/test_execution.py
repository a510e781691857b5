import subprocess
import sys
from types import SimpleNamespace

from mandelzoom import execution
from mandelzoom.config import RenderConfig
from mandelzoom.errors import WorkerFailure


def _configs():
    return [
        RenderConfig(width=24, height=16, n_workers=2, chunk_size=3, schedule="static"),
        RenderConfig(width=24, height=16, n_workers=2, chunk_size=3, schedule="dynamic"),
    ]


def test_sweep_renders_threads_configs_in_process(capsys):
    assert execution.run_sweep(_configs(), "TESTS") == 0

    out = capsys.readouterr().out
    assert out.count("[Stats] lowest=0 highest=24") == 2
    assert "[Sweep] 2/2 renders succeeded" in out


def test_sweep_runs_only_selected_task(capsys):
    configs = _configs()
    assert execution.run_sweep(configs, task_id=1) == 0

    out = capsys.readouterr().out
    assert configs[1].run_name in out
    assert configs[0].run_name not in out
    assert "[Sweep] 1/1 renders succeeded" in out


def test_sweep_task_id_out_of_range(capsys):
    assert execution.run_sweep(_configs(), task_id=2) == 1
    assert "out of range" in capsys.readouterr().err


def test_sweep_without_configs():
    assert execution.run_sweep([]) == 1


def test_sweep_reports_failed_render(monkeypatch, capsys):
    def failing_render(config, state, verbose=False):
        raise WorkerFailure(0, RuntimeError("boom"))

    monkeypatch.setattr(execution, "render", failing_render)

    assert execution.run_sweep(_configs()) == 1
    captured = capsys.readouterr()
    assert "[Sweep] 0/2 renders succeeded" in captured.out
    assert "boom" in captured.err


def test_sweep_launches_mpi_configs_with_mpirun(monkeypatch, capsys):
    calls = []

    def fake_run(cmd, env):
        calls.append((cmd, env))
        return SimpleNamespace(returncode=3)

    monkeypatch.setattr(subprocess, "run", fake_run)
    config = RenderConfig(width=24, height=16, n_workers=3, backend="mpi")

    assert execution.run_sweep([config], "mpi") == 1

    (cmd, env), = calls
    assert cmd[:5] == ["mpirun", "-n", "3", sys.executable, sys.argv[0]]
    assert "--backend=mpi" in cmd
    assert env["MANDELZOOM_SUITE"] == "mpi"
    assert "exited with code 3" in capsys.readouterr().err
