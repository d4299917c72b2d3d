"""Error taxonomy shared by command handlers and the dispatcher."""

from __future__ import annotations


class PrflowError(RuntimeError):
    """Base class for failures reported to the user."""

    exit_code = 1

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class UserInputError(PrflowError):
    """Invalid or missing input: empty title, unknown flag, missing value."""


class PreconditionError(PrflowError):
    """Workspace is not in the state the command requires."""

    def __init__(self, message: str, *, detail: str | None = None, hint: str | None = None) -> None:
        super().__init__(message, hint=hint)
        self.detail = detail


class NotFoundError(PrflowError):
    """Lookup produced nothing. ``expected`` lookups are not failures."""

    def __init__(self, message: str, *, expected: bool = False) -> None:
        super().__init__(message)
        self.expected = expected
        self.exit_code = 0 if expected else 1


class ExternalToolError(PrflowError):
    """An external tool (git, GitHub API, editor) failed; its diagnostic is kept verbatim."""

    def __init__(self, tool: str, diagnostic: str, *, returncode: int | None = None) -> None:
        super().__init__(f"{tool} failed: {diagnostic}" if diagnostic else f"{tool} failed")
        self.tool = tool
        self.diagnostic = diagnostic
        self.returncode = returncode
        self.exit_code = returncode if returncode else 1
