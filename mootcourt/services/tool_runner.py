"""Execute tool snippets in a child Python interpreter.

Each run writes the code to a temporary file, launches
``settings.python_executable`` on it and collects stdout / stderr. Runs that
exceed ``settings.tool_timeout_seconds`` are killed.
"""

import asyncio
import logging
import os
import tempfile
from dataclasses import dataclass

from mootcourt.core.config import get_settings
from mootcourt.core.exceptions import ToolExecutionError

logger = logging.getLogger(__name__)

NO_CODE_OUTPUT = "This tool doesn't have any configured functionality yet."


@dataclass(frozen=True)
class RunResult:
    """Outcome of one interpreter run."""

    exit_code: int | None
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


def inject_user_input(code: str, user_input: str | None) -> str:
    """Prepend ``user_input = \"\"\"...\"\"\"`` to *code* when input is given.

    Backslashes and double quotes are escaped so any input survives as a
    literal string.
    """
    if not user_input or not user_input.strip():
        return code
    escaped = user_input.replace("\\", "\\\\").replace('"', '\\"')
    return f'user_input = """{escaped}"""\n\n{code}'


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass  # exited between the check and the signal
    await proc.wait()


class PythonRunner:
    """Runs source code in a subprocess with a wall-clock timeout.

    Args:
        executable: Interpreter to launch (default ``settings.python_executable``).
        timeout: Seconds before the process is killed
            (default ``settings.tool_timeout_seconds``).
    """

    def __init__(self, executable: str | None = None, timeout: float | None = None) -> None:
        settings = get_settings()
        self._executable = executable or settings.python_executable
        self._timeout = timeout if timeout is not None else settings.tool_timeout_seconds

    async def run(self, code: str, prefix: str = "code") -> RunResult:
        """Execute *code* and return its exit status and output.

        Raises:
            ToolExecutionError: If the interpreter cannot be launched.
        """
        fd, path = tempfile.mkstemp(prefix=f"{prefix}_", suffix=".py")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(code)

            try:
                proc = await asyncio.create_subprocess_exec(
                    self._executable,
                    path,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as exc:
                logger.error("Failed to launch %s: %s", self._executable, exc)
                raise ToolExecutionError(f"Failed to execute Python code: {exc}") from exc

            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
            except asyncio.CancelledError:
                await _kill(proc)
                logger.warning("Python run cancelled, child %s killed", proc.pid)
                raise
            except TimeoutError:
                await _kill(proc)
                logger.warning("Python run killed after %.1fs", self._timeout)
                return RunResult(
                    exit_code=proc.returncode,
                    stdout="",
                    stderr=f"Execution timed out after {self._timeout:g} seconds",
                    timed_out=True,
                )

            return RunResult(
                exit_code=proc.returncode,
                stdout=stdout.decode("utf-8", errors="replace"),
                stderr=stderr.decode("utf-8", errors="replace"),
            )
        finally:
            try:
                os.unlink(path)
            except OSError as exc:
                logger.warning("Failed to clean up temp file %s: %s", path, exc)
