"""
Tests for the fsmforge CLI.
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from fsmforge import __version__
from fsmforge.cli import app

from ..conftest import DYNAMIC_TRAFFIC_DSL, HTTP_DSL, TRAFFIC_DSL

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A working directory holding traffic.fsm and http.fsm."""
    (tmp_path / "traffic.fsm").write_text(TRAFFIC_DSL)
    (tmp_path / "http.fsm").write_text(HTTP_DSL)
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"fsmforge {__version__}" in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "generate" in result.output


class TestCheck:
    def test_valid_files(self, project: Path) -> None:
        result = runner.invoke(app, ["check", "traffic.fsm", "http.fsm"])
        assert result.exit_code == 0
        assert "traffic.fsm: 1 machine(s), 0 dynamic machine(s)" in result.output

    def test_missing_file(self, project: Path) -> None:
        result = runner.invoke(app, ["check", "nope.fsm"])
        assert result.exit_code == 1
        assert "Error: nope.fsm not found" in result.output

    def test_parse_error(self, project: Path) -> None:
        (project / "bad.fsm").write_text("machine {")
        result = runner.invoke(app, ["check", "bad.fsm"])
        assert result.exit_code == 1
        assert "Parse error:" in result.output

    def test_validation_error(self, project: Path) -> None:
        (project / "bad.fsm").write_text("machine M { A {} => { Go => B } }")
        result = runner.invoke(app, ["check", "bad.fsm"])
        assert result.exit_code == 1
        assert "Validation error:" in result.output
        assert "Unknown state 'B'" in result.output

    def test_dynamic_machine_counted(self, project: Path) -> None:
        (project / "light.fsm").write_text(DYNAMIC_TRAFFIC_DSL)
        result = runner.invoke(app, ["check", "light.fsm"])
        assert result.exit_code == 0
        assert "0 machine(s), 1 dynamic machine(s)" in result.output


class TestGenerate:
    def test_writes_modules_and_graphs(self, project: Path) -> None:
        result = runner.invoke(app, ["generate", "traffic.fsm", "--out", "gen"])
        assert result.exit_code == 0
        assert (project / "gen" / "traffic.py").is_file()
        assert (project / "gen" / "traffic.dot").is_file()
        assert "Generated into gen" in result.output

    def test_no_graph_and_imports(self, project: Path) -> None:
        result = runner.invoke(
            app,
            ["generate", "traffic.fsm", "-o", "gen", "--no-graph", "-i", "from msgs import Advance, PassCar"],
        )
        assert result.exit_code == 0
        assert not (project / "gen" / "traffic.dot").exists()
        assert "from msgs import Advance, PassCar" in (project / "gen" / "traffic.py").read_text()


class TestGraph:
    def test_prints_dot(self, project: Path) -> None:
        result = runner.invoke(app, ["graph", "traffic.fsm"])
        assert result.exit_code == 0
        assert result.output.startswith("digraph Traffic {")
        assert 'Green -> Orange [ label = "PassCar" ];' in result.output

    def test_unknown_machine(self, project: Path) -> None:
        result = runner.invoke(app, ["graph", "traffic.fsm", "--machine", "Door"])
        assert result.exit_code == 1
        assert "no machine named 'Door'" in result.output


class TestInspect:
    def test_tables(self, project: Path) -> None:
        result = runner.invoke(app, ["inspect", "traffic.fsm"])
        assert result.exit_code == 0
        assert "Traffic transitions" in result.output
        assert "PassCar" in result.output
        assert "Traffic methods" in result.output
        assert "can_pass" in result.output


class TestBuild:
    def test_build_from_manifest(self, project: Path) -> None:
        (project / "fsmforge.toml").write_text(
            '[project]\nname = "lights"\n\n[generate]\noutput_dir = "out"\ngraph = false\n'
        )
        result = runner.invoke(app, ["build"])
        assert result.exit_code == 0, result.output
        assert (project / "out" / "traffic.py").is_file()
        assert (project / "out" / "httprequest.py").is_file()
        assert not (project / "out" / "traffic.dot").exists()
        assert "Built lights: 2 file(s)" in result.output

    def test_missing_manifest(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["build", "--manifest", "absent.toml"])
        assert result.exit_code == 1
        assert "fsmforge.toml not found" in result.output

    def test_no_sources(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "fsmforge.toml").write_text('[project]\nname = "empty"\n')
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["build"])
        assert result.exit_code == 1
        assert "no *.fsm files found for project empty" in result.output
