"""Tests for the subprocess Python runner."""

import asyncio
import os
import sys

import pytest

from mootcourt.core.exceptions import ToolExecutionError
from mootcourt.services.tool_runner import PythonRunner, RunResult, inject_user_input


class TestInjectUserInput:
    def test_prepends_variable(self) -> None:
        code = inject_user_input("print(user_input)", "hello")
        assert code == 'user_input = """hello"""\n\nprint(user_input)'

    def test_escapes_quotes_and_backslashes(self) -> None:
        code = inject_user_input("pass", 'say "hi" \\n')
        assert code == r'user_input = """say \"hi\" \\n"""' + "\n\npass"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_input_leaves_code(self, value) -> None:
        assert inject_user_input("print(1)", value) == "print(1)"


class TestPythonRunner:
    async def test_captures_stdout(self) -> None:
        result = await PythonRunner(executable=sys.executable, timeout=10).run("print('ok')")
        assert result.ok
        assert result.exit_code == 0
        assert result.stdout.strip() == "ok"

    async def test_injected_input_round_trip(self) -> None:
        code = inject_user_input("print(user_input.upper())", 'a "quoted" """value""" C:\\path')
        result = await PythonRunner(executable=sys.executable, timeout=10).run(code)
        assert result.ok
        assert result.stdout.strip() == 'A "QUOTED" """VALUE""" C:\\PATH'

    async def test_failure_reports_stderr(self) -> None:
        result = await PythonRunner(executable=sys.executable, timeout=10).run(
            "raise ValueError('bad input')"
        )
        assert not result.ok
        assert result.exit_code == 1
        assert "ValueError: bad input" in result.stderr

    async def test_timeout_kills_process(self) -> None:
        runner = PythonRunner(executable=sys.executable, timeout=0.5)
        result = await runner.run("import time\ntime.sleep(30)")
        assert result.timed_out
        assert not result.ok
        assert result.stderr == "Execution timed out after 0.5 seconds"

    async def test_cancel_kills_process(self, tmp_path) -> None:
        """Cancelling a run reaps the child instead of leaving it running."""
        pid_file = tmp_path / "child.pid"
        code = (
            "import os, time\n"
            f"open({str(pid_file)!r}, 'w').write(str(os.getpid()))\n"
            "time.sleep(30)"
        )
        task = asyncio.create_task(PythonRunner(executable=sys.executable, timeout=60).run(code))

        for _ in range(200):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        pid = int(pid_file.read_text())

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)

    async def test_missing_interpreter(self) -> None:
        runner = PythonRunner(executable="/nonexistent/python-binary", timeout=1)
        with pytest.raises(ToolExecutionError):
            await runner.run("print(1)")

    async def test_temp_file_removed(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr("tempfile.tempdir", str(tmp_path))
        await PythonRunner(executable=sys.executable, timeout=10).run("print(1)", prefix="tool")
        assert list(tmp_path.iterdir()) == []


def test_run_result_ok_flag() -> None:
    assert RunResult(exit_code=0, stdout="", stderr="").ok
    assert not RunResult(exit_code=0, stdout="", stderr="", timed_out=True).ok
    assert not RunResult(exit_code=2, stdout="", stderr="").ok
