#!/usr/bin/env python3
"""
Tests for the interactive apply engine.
"""

import io
import sys

import pytest
from rich.console import Console

from chat.apply_engine import (
    COMMAND_LINE_TARGET,
    NEW_PATH_PROMPT,
    ApplyEngine,
    PromptState,
    candidate_target,
)
from chat.code_blocks import CodeBlock, extract_code_blocks
from util.errors import CommandFailure, WriteFailure


class ScriptedReader:
    """Answers prompts from a fixed list and records what was asked."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, message: str) -> str:
        self.prompts.append(message)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


def _console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def _engine(reader, verbosity=2, console=None):
    return ApplyEngine(read_line=reader, verbosity=verbosity, console=console or _console())


def _output(engine):
    return engine.console.file.getvalue()


def test_yes_writes_block_to_target(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    reader = ScriptedReader("yes")
    engine = _engine(reader)

    outcomes = engine.apply_all(extract_code_blocks("```js\nconsole.log(1)\n```"), ["out.js"])

    assert (tmp_path / "out.js").read_text() == "console.log(1)\n"
    assert outcomes[0].action == "written"
    assert outcomes[0].path == "out.js"
    assert "js" in reader.prompts[0] and "out.js" in reader.prompts[0]
    assert "Code block written to out.js" in _output(engine)


@pytest.mark.parametrize("answer", ["y", "Y", "  YES  "])
def test_confirm_answers_are_case_insensitive(tmp_path, answer):
    target = tmp_path / "a.txt"
    engine = _engine(ScriptedReader(answer))
    engine.apply_all([CodeBlock("", "x\n")], [str(target)])
    assert target.read_text() == "x\n"


def test_silent_mode_never_reads_input(tmp_path):
    reader = ScriptedReader()
    engine = _engine(reader, verbosity=0)
    blocks = [CodeBlock("py", "a = 1\n"), CodeBlock("py", "b = 2\n")]
    targets = [str(tmp_path / "a.py"), str(tmp_path / "b.py")]

    outcomes = engine.apply_all(blocks, targets)

    assert reader.prompts == []
    assert [o.action for o in outcomes] == ["written", "written"]
    assert (tmp_path / "a.py").read_text() == "a = 1\n"
    assert (tmp_path / "b.py").read_text() == "b = 2\n"
    assert _output(engine) == ""


@pytest.mark.parametrize("answer", ["skip", "s", "no", "", "whatever"])
def test_skip_and_unknown_answers_do_nothing(tmp_path, answer):
    target = tmp_path / "keep.txt"
    target.write_text("original")
    engine = _engine(ScriptedReader(answer))

    outcomes = engine.apply_all([CodeBlock("txt", "new\n")], [str(target)])

    assert outcomes[0].action == "skipped"
    assert target.read_text() == "original"
    assert "Operation aborted by the user." in _output(engine)


def test_end_of_input_counts_as_skip(tmp_path):
    target = tmp_path / "t.txt"
    outcomes = _engine(ScriptedReader()).apply_all([CodeBlock("", "x")], [str(target)])
    assert outcomes[0].action == "skipped"
    assert not target.exists()


@pytest.mark.parametrize("answer", ["o", "enter output path"])
def test_alternate_path(tmp_path, answer):
    default = tmp_path / "default.txt"
    other = tmp_path / "other.txt"
    reader = ScriptedReader(answer, f"  {other}  ")
    engine = _engine(reader)

    outcomes = engine.apply_all([CodeBlock("txt", "body\n")], [str(default)])

    assert other.read_text() == "body\n"
    assert not default.exists()
    assert outcomes[0].path == str(other)
    assert reader.prompts[1] == NEW_PATH_PROMPT


def test_decide_states():
    engine = _engine(ScriptedReader("o", "elsewhere.txt"))
    decision = engine.decide(CodeBlock("py", ""), "x.py")
    assert decision.state is PromptState.ALTERNATE_PATH
    assert decision.path == "elsewhere.txt"
    assert decision.accepted

    decision = _engine(ScriptedReader("s")).decide(CodeBlock("py", ""), "x.py")
    assert decision.state is PromptState.SKIPPED
    assert not decision.accepted


def test_missing_targets_fall_back_to_first(tmp_path):
    first = tmp_path / "first.txt"
    second = tmp_path / "second.txt"
    engine = _engine(ScriptedReader("y", "y", "y"))
    blocks = [CodeBlock("", "one\n"), CodeBlock("", "two\n"), CodeBlock("", "three\n")]

    engine.apply_all(blocks, [str(first), str(second)])

    assert second.read_text() == "two\n"
    # The third block reuses the first target, not the last one used
    assert first.read_text() == "three\n"


def test_candidate_target():
    assert candidate_target(["a", "b"], 1) == "b"
    assert candidate_target(["a", "b"], 5) == "a"
    assert candidate_target(["a", ""], 1) == "a"


def test_apply_all_requires_a_target():
    with pytest.raises(ValueError):
        _engine(ScriptedReader()).apply_all([CodeBlock("", "x")], [])


def test_invalid_path_reprompts_once(tmp_path):
    bad = tmp_path / "missing-dir" / "out.txt"
    good = tmp_path / "out.txt"
    reader = ScriptedReader("y", str(good))
    engine = _engine(reader)

    outcomes = engine.apply_all([CodeBlock("txt", "data\n")], [str(bad)])

    assert good.read_text() == "data\n"
    assert outcomes[0].path == str(good)
    assert reader.prompts.count(NEW_PATH_PROMPT) == 1
    assert "Error writing to file" in _output(engine)


def test_second_write_failure_is_fatal(tmp_path):
    bad = tmp_path / "missing-dir" / "a.txt"
    worse = tmp_path / "also-missing" / "b.txt"
    reader = ScriptedReader("y", str(worse))

    with pytest.raises(WriteFailure) as exc:
        _engine(reader).apply_all([CodeBlock("txt", "data")], [str(bad)])

    assert exc.value.path == str(worse)
    assert reader.prompts.count(NEW_PATH_PROMPT) == 1


def test_silent_mode_still_reprompts_on_write_failure(tmp_path):
    good = tmp_path / "ok.txt"
    reader = ScriptedReader(str(good))
    engine = _engine(reader, verbosity=0)
    engine.apply_all([CodeBlock("", "z")], [str(tmp_path / "nope" / "x.txt")])
    assert good.read_text() == "z"
    assert reader.prompts == [NEW_PATH_PROMPT]


@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell")
class TestShellBlocks:

    def test_bash_block_is_executed(self, tmp_path):
        reader = ScriptedReader("y")
        engine = _engine(reader)
        marker = tmp_path / "ran.txt"

        outcomes = engine.apply_all([CodeBlock("bash", f"echo hi > {marker}\necho hi\n")], [str(tmp_path / "unused")])

        assert marker.read_text() == "hi\n"
        assert outcomes[0].action == "executed"
        assert outcomes[0].command.stdout == "hi\n"
        assert COMMAND_LINE_TARGET in reader.prompts[0]
        assert "Command stdout: hi" in _output(engine)
        assert not (tmp_path / "unused").exists()

    def test_stderr_output_fails_even_with_zero_exit(self, tmp_path):
        engine = _engine(ScriptedReader("y"))
        with pytest.raises(CommandFailure) as exc:
            engine.apply_all([CodeBlock("bash", "echo hi 1>&2\n")], [str(tmp_path / "x")])
        assert exc.value.returncode == 0
        assert exc.value.stderr == "hi\n"

    def test_failed_command_stops_later_blocks(self, tmp_path):
        later = tmp_path / "later.txt"
        engine = _engine(ScriptedReader("y", "y"))
        with pytest.raises(CommandFailure):
            engine.apply_all(
                [CodeBlock("bash", "exit 3\n"), CodeBlock("txt", "never\n")],
                [str(later)],
            )
        assert not later.exists()

    def test_alternate_path_on_shell_block_runs_command(self, tmp_path):
        marker = tmp_path / "ran.txt"
        reader = ScriptedReader("o")
        outcomes = _engine(reader).apply_all([CodeBlock("bash", f"touch {marker}\n")], [str(tmp_path / "x")])
        assert outcomes[0].action == "executed"
        assert marker.exists()
        assert len(reader.prompts) == 1

    def test_only_exact_bash_tag_is_executed(self, tmp_path):
        target = tmp_path / "script.sh"
        outcomes = _engine(ScriptedReader("y")).apply_all([CodeBlock("sh", "echo hi\n")], [str(target)])
        assert outcomes[0].action == "written"
        assert target.read_text() == "echo hi\n"
