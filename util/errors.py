"""Exception types raised by the streaming pipeline and the apply engine."""

from __future__ import annotations

from typing import Optional


class CodemancerError(Exception):
    """Base class for all errors surfaced to the CLI."""


class ConfigError(CodemancerError):
    """Invalid command line usage."""


class TransportError(CodemancerError):
    """The response stream failed before the end-of-stream sentinel."""


class APIError(CodemancerError):
    """The endpoint answered with a non-success status."""

    def __init__(self, status: int, reason: str = "", body: str = ""):
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"API error: {status} {reason}\nResponse body: {body}")


class MalformedPayload(CodemancerError):
    """An event carried data that is not valid JSON."""

    def __init__(self, payload: str, detail: Optional[str] = None):
        self.payload = payload
        msg = f"Malformed event payload: {payload!r}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class WriteFailure(CodemancerError):
    """Writing a code block failed even after picking a new path."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Error writing to file {path}: {reason}")


class CommandFailure(CodemancerError):
    """A shell block exited non-zero, could not run, or wrote to stderr."""

    def __init__(
        self,
        command: str,
        *,
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        reason: Optional[str] = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        if reason:
            msg = f"Error running command: {reason}"
        elif returncode:
            msg = f"Command exited with status {returncode}: {stderr.strip()}"
        else:
            msg = f"Command stderr: {stderr.strip()}"
        super().__init__(msg)
