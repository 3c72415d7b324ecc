"""
Shell execution for generated command blocks.

Commands run synchronously through the system shell with the caller's
environment. Any output on stderr fails the command, even when it exits 0.
"""
from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional

from util.errors import CommandFailure


@dataclass
class CommandResult:
    command: str
    returncode: int
    stdout: str
    stderr: str


class ShellExecutor:
    """Runs a code block body as a single shell command."""

    def __init__(self, cwd: Optional[str] = None, env: Optional[Mapping[str, str]] = None):
        """
        Initialize the executor.

        Args:
            cwd: Working directory for commands (defaults to the current one)
            env: Environment for commands (defaults to the inherited one)
        """
        self.cwd = cwd
        self.env = dict(env) if env is not None else None

    def run(self, command: str) -> CommandResult:
        """
        Run ``command`` and return its captured output.

        Raises:
            CommandFailure: the command could not start, exited non-zero, or
                wrote anything to stderr
        """
        try:
            proc = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                cwd=self.cwd,
                env=self.env if self.env is not None else os.environ.copy(),
            )
        except OSError as e:
            raise CommandFailure(command, reason=str(e)) from e

        if proc.returncode != 0:
            raise CommandFailure(
                command,
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        if proc.stderr:
            raise CommandFailure(command, returncode=0, stdout=proc.stdout, stderr=proc.stderr)

        return CommandResult(command=command, returncode=0, stdout=proc.stdout, stderr="")
