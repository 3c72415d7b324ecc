"""Interactive application of extracted code blocks.

Each block goes through one decision (confirm, pick another path, or skip)
and then either gets written to a file or, for shell blocks, executed.
Blocks are handled strictly one after another.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from chat.code_blocks import CodeBlock
from tools.executor import CommandResult, ShellExecutor
from util.errors import WriteFailure
from util.input_helpers import LineReader, normalize_answer

SHELL_LANGUAGE = "bash"
COMMAND_LINE_TARGET = "the command line"
UNSPECIFIED_LANGUAGE = "unspecified language"
NEW_PATH_PROMPT = "Enter the new output file path: "


class PromptState(Enum):
    PROMPTING = "prompting"
    AWAITING_PATH = "awaiting_path"
    CONFIRMED = "confirmed"
    ALTERNATE_PATH = "alternate_path"
    SKIPPED = "skipped"


_ANSWERS: Dict[str, PromptState] = {
    "yes": PromptState.CONFIRMED,
    "y": PromptState.CONFIRMED,
    "skip": PromptState.SKIPPED,
    "s": PromptState.SKIPPED,
    "o": PromptState.AWAITING_PATH,
    "enter output path": PromptState.AWAITING_PATH,
}

_TERMINAL = (PromptState.CONFIRMED, PromptState.ALTERNATE_PATH, PromptState.SKIPPED)


@dataclass
class ApplyDecision:
    state: PromptState
    path: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.state in (PromptState.CONFIRMED, PromptState.ALTERNATE_PATH)


@dataclass
class BlockOutcome:
    """What happened to one block."""
    index: int
    block: CodeBlock
    action: str  # "written" | "executed" | "skipped"
    path: Optional[str] = None
    command: Optional[CommandResult] = None


def is_shell_block(block: CodeBlock) -> bool:
    return block.language == SHELL_LANGUAGE


def candidate_target(targets: Sequence[str], index: int) -> str:
    """Target for block ``index``; blocks past the end reuse the first target."""
    if index < len(targets) and targets[index]:
        return targets[index]
    return targets[0]


def _write_file(path: str, body: str) -> None:
    Path(path).write_text(body, encoding="utf-8")


class ApplyEngine:
    """Runs the per-block decision state machine and performs the result.

    ``read_line`` is the single suspension point for the confirmation prompt;
    ``read_path`` (defaulting to ``read_line``) reads replacement paths.
    A verbosity of 0 confirms every block without reading input.
    """

    def __init__(
        self,
        *,
        read_line: LineReader,
        read_path: Optional[LineReader] = None,
        verbosity: int = 2,
        console: Optional[Console] = None,
        executor: Optional[ShellExecutor] = None,
    ):
        self.read_line = read_line
        self.read_path = read_path or read_line
        self.verbosity = verbosity
        self.console = console or Console(soft_wrap=True)
        self.executor = executor or ShellExecutor()

    # ---- decision ----
    def prompt_text(self, block: CodeBlock, target: str) -> str:
        language = escape(block.language or UNSPECIFIED_LANGUAGE)
        return (
            f"Do you want to write this [yellow]{language}[/yellow] code block to "
            f"[yellow]{escape(target)}[/yellow]? \nyes (y) / skip (s) / enter output path (o): "
        )

    def decide(self, block: CodeBlock, target: str) -> ApplyDecision:
        """Resolve the user's decision for ``block``."""
        shell = is_shell_block(block)
        label = COMMAND_LINE_TARGET if shell else target
        state = PromptState.PROMPTING if self.verbosity != 0 else PromptState.CONFIRMED
        new_path: Optional[str] = None

        while state not in _TERMINAL:
            if state is PromptState.PROMPTING:
                try:
                    answer = normalize_answer(self.read_line(self.prompt_text(block, label)))
                except EOFError:
                    answer = ""
                state = _ANSWERS.get(answer, PromptState.SKIPPED)
                # A command has no output path to replace
                if shell and state is PromptState.AWAITING_PATH:
                    state = PromptState.CONFIRMED
            else:
                new_path = self.read_path(NEW_PATH_PROMPT).strip()
                state = PromptState.ALTERNATE_PATH

        return ApplyDecision(state=state, path=new_path)

    # ---- effects ----
    def write_block(self, path: str, body: str) -> str:
        """Write ``body`` to ``path``, asking once for a new path on failure.

        Returns the path actually written. A failure of the retry raises
        :class:`WriteFailure`.
        """
        try:
            _write_file(path, body)
        except (OSError, ValueError) as e:
            self.console.print(f"[red]Error writing to file: {escape(str(e))}[/red]")
            try:
                path = self.read_path(NEW_PATH_PROMPT).strip()
            except EOFError as eof:
                raise WriteFailure(path, "no replacement path given") from eof
            try:
                _write_file(path, body)
            except (OSError, ValueError) as retry_error:
                raise WriteFailure(path, str(retry_error)) from retry_error

        if self.verbosity > 0:
            self.console.print(f"Code block written to {escape(path)}")
        return path

    def run_command(self, command: str) -> CommandResult:
        result = self.executor.run(command)
        if self.verbosity > 0:
            self.console.print(Text(f"Command stdout: {result.stdout}", style="green"), end="")
        return result

    # ---- driver ----
    def apply_block(self, index: int, block: CodeBlock, targets: Sequence[str]) -> BlockOutcome:
        target = candidate_target(targets, index)

        if self.verbosity > 1:
            self.console.print("Code block found:")
            self.console.print(Text(block.body, style="green"))

        decision = self.decide(block, target)
        if not decision.accepted:
            if self.verbosity > 0:
                self.console.print("Operation aborted by the user.")
            return BlockOutcome(index=index, block=block, action="skipped")

        if is_shell_block(block):
            result = self.run_command(block.body)
            return BlockOutcome(index=index, block=block, action="executed", command=result)

        path = decision.path if decision.state is PromptState.ALTERNATE_PATH else target
        written = self.write_block(path, block.body)
        return BlockOutcome(index=index, block=block, action="written", path=written)

    def apply_all(self, blocks: Sequence[CodeBlock], targets: Sequence[str]) -> List[BlockOutcome]:
        """Apply ``blocks`` in order against ``targets``.

        A failing command stops the run by propagating :class:`CommandFailure`.
        """
        if not targets:
            raise ValueError("at least one output target is required")
        outcomes: List[BlockOutcome] = []
        for index, block in enumerate(blocks):
            outcomes.append(self.apply_block(index, block, targets))
        return outcomes
