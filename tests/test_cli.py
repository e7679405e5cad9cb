"""
Tests for the wavedag CLI.
"""

from pathlib import Path

from typer.testing import CliRunner

from wavedag import __version__
from wavedag.cli.main import app

runner = CliRunner()

PIPELINE = """
vertices:
  - id: fetch
  - id: build
    can_fail: false
  - id: lint
  - id: package
edges:
  - [fetch, build]
  - [fetch, lint]
  - [build, package]
  - [lint, package]
"""


class TestCLIBasics:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"wavedag version {__version__}" in result.output

    def test_no_command_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "check" in result.output

    def test_run_help(self):
        result = runner.invoke(app, ["run", "--help"])
        assert result.exit_code == 0
        assert "--random" in result.output


class TestCheckCommand:
    def test_valid_definition(self, write_definition):
        result = runner.invoke(app, ["check", str(write_definition(PIPELINE))])
        assert result.exit_code == 0
        assert "OK 4 vertices, 4 edges" in result.output
        assert "Layer 1: build ── lint" in result.output

    def test_tree(self, write_definition):
        result = runner.invoke(app, ["check", str(write_definition(PIPELINE)), "--tree"])
        assert result.exit_code == 0
        assert "└─ fetch" in result.output

    def test_cycle(self, write_definition):
        path = write_definition("vertices:\n  - id: a\n  - id: b\nedges:\n  - [a, b]\n  - [b, a]\n")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "Cannot add cyclic edge b -> a" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["check", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestRunCommand:
    def test_random_all_pass(self, write_definition):
        result = runner.invoke(app, ["run", str(write_definition(PIPELINE)), "--random", "--pass-rate", "1.0"])
        assert result.exit_code == 0
        assert "Graph passed - 3 waves, 4 attempts, 0 failed" in result.output

    def test_random_critical_failure(self, write_definition):
        result = runner.invoke(app, ["run", str(write_definition(PIPELINE)), "--random", "--pass-rate", "0"])
        assert result.exit_code == 1
        assert "Graph failed" in result.output

    def test_invalid_pass_rate(self, write_definition):
        result = runner.invoke(app, ["run", str(write_definition(PIPELINE)), "--random", "--pass-rate", "2"])
        assert result.exit_code == 2

    def test_invalid_max_workers(self, write_definition):
        result = runner.invoke(app, ["run", str(write_definition(PIPELINE)), "--random", "-w", "0"])
        assert result.exit_code == 2

    def test_commands(self, write_definition):
        path = write_definition(
            "vertices:\n"
            "  - id: ok\n"
            "    command: 'true'\n"
            "  - id: broken\n"
            "    can_fail: false\n"
            "    command: 'exit 1'\n"
            "edges:\n"
            "  - [ok, broken]\n"
        )
        result = runner.invoke(app, ["run", str(path)])
        assert result.exit_code == 1
        assert "Graph failed - 2 waves" in result.output

    def test_invalid_definition(self, write_definition):
        path = write_definition("vertices:\n  - id: a\n    repetitions: 0\n")
        result = runner.invoke(app, ["run", str(path), "--random"])
        assert result.exit_code == 1
        assert "repetitions must be a positive integer" in result.output

    def test_scalar_logging_section(self, write_definition):
        path = write_definition("logging: INFO\nvertices:\n  - id: a\n")
        result = runner.invoke(app, ["run", str(path), "--random"])
        assert result.exit_code == 1
        assert "'logging' must be a mapping" in result.output

    def test_empty_logging_section_verbose(self, write_definition):
        path = write_definition("logging:\nvertices:\n  - id: a\n")
        result = runner.invoke(app, ["run", str(path), "--random", "--pass-rate", "1", "-v"])
        assert result.exit_code == 0
        assert "Graph passed" in result.output


class TestExamples:
    def test_basic_example(self):
        path = Path(__file__).parent.parent / "examples" / "basic" / "graph.yaml"
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 0
        assert "Layer 3: E" in result.output

        result = runner.invoke(app, ["run", str(path), "--env", "ci"])
        assert result.exit_code == 0
        assert "Graph passed - 4 waves, 8 attempts" in result.output
