"""
Tests for the built-in execution units.
"""

import pytest

from wavedag import Status, Vertex
from wavedag.units import CommandExecutionUnit, RandomExecutionUnit


class TestRandomExecutionUnit:
    def test_always_passes(self):
        unit = RandomExecutionUnit(pass_rate=1.0)
        assert all(unit(Vertex("A")) is Status.PASSED for _ in range(50))

    def test_always_fails(self):
        unit = RandomExecutionUnit(pass_rate=0.0)
        assert all(unit(Vertex("A")) is Status.FAILED for _ in range(50))

    @pytest.mark.parametrize("pass_rate", [-0.1, 1.5])
    def test_invalid_pass_rate(self, pass_rate):
        with pytest.raises(ValueError, match="pass_rate"):
            RandomExecutionUnit(pass_rate=pass_rate)

    def test_seed_is_reproducible(self):
        first = RandomExecutionUnit(seed=42)
        second = RandomExecutionUnit(seed=42)
        vertex = Vertex("A")
        assert [first(vertex) for _ in range(20)] == [second(vertex) for _ in range(20)]


class TestCommandExecutionUnit:
    def test_zero_exit_passes(self):
        assert CommandExecutionUnit()(Vertex("A", metadata={"command": "true"})) is Status.PASSED

    def test_nonzero_exit_fails(self, caplog):
        vertex = Vertex("A", metadata={"command": "exit 3"})
        assert CommandExecutionUnit()(vertex) is Status.FAILED
        assert "exited with code 3" in caplog.text

    def test_no_command_passes(self):
        assert CommandExecutionUnit()(Vertex("A")) is Status.PASSED

    def test_timeout_fails(self, caplog):
        vertex = Vertex("A", metadata={"command": "exec sleep 5"})
        assert CommandExecutionUnit(timeout=0.2)(vertex) is Status.FAILED
        assert "timed out" in caplog.text

    def test_cwd(self, tmp_path):
        (tmp_path / "marker.txt").write_text("x")
        vertex = Vertex("A", metadata={"command": "test -f marker.txt"})
        assert CommandExecutionUnit(cwd=tmp_path)(vertex) is Status.PASSED
        assert CommandExecutionUnit(cwd=tmp_path / "..")(vertex) is Status.FAILED

    def test_env(self):
        vertex = Vertex("A", metadata={"command": 'test "$WAVEDAG_TEST" = yes'})
        assert CommandExecutionUnit(env={"WAVEDAG_TEST": "yes", "PATH": "/usr/bin:/bin"})(vertex) is Status.PASSED
        assert CommandExecutionUnit(env={"WAVEDAG_TEST": "no", "PATH": "/usr/bin:/bin"})(vertex) is Status.FAILED
