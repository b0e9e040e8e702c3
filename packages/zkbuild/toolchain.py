import logging
import shlex
import shutil
import subprocess
from typing import Protocol, Sequence

from .errors import ToolError
from .schemas import ToolResult

log = logging.getLogger(__name__)


class ToolRunner(Protocol):
    def run(self, tool: str, args: Sequence[str], capture: bool = False) -> ToolResult:
        ...


class SubprocessRunner:
    """Runs external tools as child processes, blocking until they exit."""

    def run(self, tool: str, args: Sequence[str], capture: bool = False) -> ToolResult:
        cmd = [tool, *[str(a) for a in args]]
        log.info("exec", extra={"cmd": shlex.join(cmd)})
        try:
            proc = subprocess.run(cmd, check=False, text=True, capture_output=capture)
        except OSError as exc:
            raise ToolError(tool, cmd[1:], message=f"could not start {tool}: {exc}") from exc
        return ToolResult(
            exit_code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


def run_checked(runner: ToolRunner, tool: str, args: Sequence[str], capture: bool = False) -> ToolResult:
    """Run a tool and raise ToolError on a non-zero exit."""
    args = [str(a) for a in args]
    result = runner.run(tool, args, capture=capture)
    if not result.ok:
        raise ToolError(tool, args, result)
    return result


def find_executable(name: str) -> str | None:
    return shutil.which(name)
