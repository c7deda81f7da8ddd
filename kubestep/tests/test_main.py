"""Tests for the command line entry point."""

from unittest.mock import MagicMock

from kubestep.src import main as cli
from kubestep.src.models import State
from kubestep.src.services.runner import RunResult

PIPELINE = """
stages:
  - name: build
    steps:
      - name: build
        alias: build
        image: alpine
volumes:
  - name: pipeline_default
"""

def test_missing_pipeline_file(tmp_path):
    assert cli.main(["run", str(tmp_path / "missing.yml")]) == 1

def test_run_pipeline_file(tmp_path, monkeypatch):
    path = tmp_path / "pipeline.yml"
    path.write_text(PIPELINE)

    engine = MagicMock()
    from_settings = MagicMock(return_value=engine)
    monkeypatch.setattr(cli.KubernetesEngine, "from_settings", from_settings)
    monkeypatch.setattr(
        cli,
        "run_pipeline",
        lambda engine, config: RunResult(states={"build": State(exit_code=0, exited=True)}),
    )

    assert cli.main(["run", str(path), "--namespace", "ci", "--timeout", "30"]) == 0

    settings = from_settings.call_args.args[0]
    assert settings.k8s_namespace == "ci"
    assert settings.wait_timeout == 30
    engine.kube.ensure_namespace.assert_called_once()

def test_failed_pipeline_exit_code(tmp_path, monkeypatch):
    path = tmp_path / "pipeline.yml"
    path.write_text(PIPELINE)

    monkeypatch.setattr(cli.KubernetesEngine, "from_settings", MagicMock())
    monkeypatch.setattr(
        cli,
        "run_pipeline",
        lambda engine, config: RunResult(states={"build": State(exit_code=1, exited=True)}),
    )

    assert cli.main(["run", str(path)]) == 1
