"""shell.py LocalExecutor 单元测试"""

from __future__ import annotations

import subprocess
import sys

import pytest

from zdeps.utils.shell import CommandResult, LocalExecutor


class TestCommandResult:
    def test_success(self) -> None:
        assert CommandResult(0, "", "").success
        assert not CommandResult(1, "", "").success

    def test_output_merges_streams(self) -> None:
        assert CommandResult(1, "out\n", "err\n").output == "out\n\nerr"


class TestLocalExecutor:
    def test_success(self, tmp_path) -> None:
        r = LocalExecutor().execute([sys.executable, "-c", "print('hello')"], cwd=str(tmp_path))
        assert r.returncode == 0
        assert "hello" in r.stdout

    def test_failure_returns_code(self, tmp_path) -> None:
        r = LocalExecutor().execute(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
            cwd=str(tmp_path),
        )
        assert r.returncode == 3
        assert "boom" in r.stderr

    def test_missing_command(self) -> None:
        r = LocalExecutor().execute(["zdeps-definitely-missing-binary"])
        assert r.returncode == 127

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

        monkeypatch.setattr(subprocess, "run", fake_run)
        r = LocalExecutor().execute(["git", "clone", "x"], timeout=5)
        assert r.returncode == 124
        assert "超时" in r.stderr
