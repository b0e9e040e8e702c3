from typing import Optional


class ZkBuildError(Exception):
    """Base error; the CLI turns it into a message and an exit status."""

    exit_code = 1

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class UsageError(ZkBuildError):
    """Malformed, missing or repeated command-line flags."""


class PreconditionError(ZkBuildError):
    """Missing files, wrong extensions or missing executables."""


class ToolError(ZkBuildError):
    """An external tool could not be started or exited non-zero."""

    def __init__(self, tool: str, args: list[str], result=None, message: Optional[str] = None):
        self.tool = tool
        self.args_list = list(args)
        self.result = result
        if message is None:
            code = result.exit_code if result is not None else "n/a"
            message = f"{tool} failed with exit code {code}: {' '.join([tool, *args])}"
        super().__init__(message)
        if result is not None and result.exit_code > 0:
            self.exit_code = result.exit_code


class VerificationFailed(ZkBuildError):
    """The verifier ran to completion and rejected the proof."""
