#!/usr/bin/env python3
"""
codemancer: ask a chat model to modify files and apply its code blocks

Features
- Bundles input files into the prompt under `### <path>:` headings
- Streams the completion live to the terminal
- Extracts fenced code blocks and, per block, writes it to a file or runs it
  as a shell command (```bash blocks) after confirmation
- Optional placeholder review of every generated block

Usage
    codemancer src/app.py "add a --verbose flag"
    codemancer -i a.py,b.py -o a.py,b.py -p "merge these" -s 1
    codemancer "write a script that prints the date" -o date.sh

Environment
- OPENAI_API_KEY: use the OpenAI endpoint directly (otherwise the public proxy)
- CODEMANCER_API_URL: override the endpoint URL
"""
from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from chat.apply_engine import ApplyEngine
from chat.code_blocks import extract_code_blocks
from chat.placeholders import review_placeholders
from chat.prompt_builder import MODIFY_INSTRUCTION, build_prompt, read_input_files
from render.live_echo import ConsoleSink
from streaming_client import StreamingClient
from util.errors import CodemancerError, ConfigError
from util.input_helpers import LineReader, make_line_reader
from util.settings import (
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_VERBOSITY,
    PROXY_WARNING,
    ApiConfig,
    resolve_api_config,
)

# ---------------- Configuration ----------------
console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


@dataclass
class Options:
    prompt: str
    input_paths: List[str] = field(default_factory=list)
    output_paths: List[str] = field(default_factory=list)
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    verbosity: int = DEFAULT_VERBOSITY
    check_placeholders: bool = True


def _split_paths(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [p.strip() for p in value.split(",")]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codemancer",
        description="Modify files with a chat model and apply the code blocks it returns",
    )
    parser.add_argument("args", nargs="*", help="[inputs] prompt words; a lone argument is the prompt")
    parser.add_argument("-p", "--prompt", help="Prompt for LLM completion")
    parser.add_argument("-i", "--input", help="Input file paths, separated by commas")
    parser.add_argument("-o", "--output", help="Output file paths, separated by commas (default: the inputs)")
    parser.add_argument("-m", "--model", default=DEFAULT_MODEL, help=f"Model name (default {DEFAULT_MODEL})")
    parser.add_argument("-t", "--temperature", type=float, default=DEFAULT_TEMPERATURE, help="Temperature (0-2)")
    parser.add_argument("-s", "--verbosity", type=int, default=DEFAULT_VERBOSITY, choices=range(0, 4),
                        metavar="{0-3}", help="Verbosity (0-3); 0 applies every block without asking")
    parser.add_argument("--no-placeholder-check", dest="check_placeholders", action="store_false",
                        help="Skip asking the model to list placeholders in each code block")
    return parser


def parse_options(argv: Optional[List[str]] = None) -> Options:
    """Parse the command line into :class:`Options`.

    With two or more positionals the first is a comma-separated input list and
    the rest form the prompt. A single positional is the prompt unless
    ``--prompt`` is given, in which case it names the inputs.
    """
    args = build_parser().parse_args(argv)
    positionals: List[str] = args.args

    inputs_arg = args.input
    if args.prompt:
        prompt = args.prompt
        if positionals and not inputs_arg:
            inputs_arg = positionals[0]
            positionals = positionals[1:]
        if positionals:
            ignored = escape(" ".join(positionals))
            err_console.print(f"[yellow]--prompt given, ignoring extra arguments: {ignored}[/yellow]")
    elif len(positionals) > 1:
        prompt = " ".join(positionals[1:])
        inputs_arg = inputs_arg or positionals[0]
    elif positionals:
        prompt = positionals[0]
        if not inputs_arg:
            err_console.print("[yellow]Received a single argument, assuming it is prompt[/yellow]")
    else:
        prompt = ""

    if not prompt.strip():
        raise ConfigError("Prompt is required.")

    input_paths = _split_paths(inputs_arg)
    output_paths = _split_paths(args.output) or list(input_paths)
    return Options(
        prompt=prompt,
        input_paths=input_paths,
        output_paths=output_paths,
        model=args.model,
        temperature=args.temperature,
        verbosity=args.verbosity,
        check_placeholders=args.check_placeholders,
    )


# ---------------- Run ----------------
def run(
    options: Options,
    *,
    config: ApiConfig,
    session: Optional[requests.Session] = None,
    read_line: Optional[LineReader] = None,
    read_path: Optional[LineReader] = None,
    out: Optional[Console] = None,
) -> int:
    """Stream one completion and apply its code blocks. Returns the exit code."""
    out = out or console
    sink = ConsoleSink(out)
    client = StreamingClient(config, session=session, sink=sink)

    contents = read_input_files(options.input_paths)
    prompt = build_prompt(options.prompt, options.input_paths, contents)
    if options.verbosity > 2:
        out.print(Text(prompt, style="cyan"))

    result = client.complete(
        MODIFY_INSTRUCTION, prompt, model=options.model, temperature=options.temperature
    )
    if result.partial:
        out.print(f"\n[dim]Stream ended early ({escape(result.error or 'unknown error')}); "
                  "using the partial response.[/dim]")

    if not options.output_paths:
        return 0

    blocks = extract_code_blocks(result.text)
    if not blocks:
        if options.verbosity > 0:
            out.print("[red]No code block found in the completion.[/red]")
        return 0

    if options.check_placeholders:
        review_placeholders(client, blocks, model=options.model, console=out, sink=sink)

    engine = ApplyEngine(
        read_line=read_line or make_line_reader(out),
        read_path=read_path or make_line_reader(out, complete_paths=True),
        verbosity=options.verbosity,
        console=out,
    )
    engine.apply_all(blocks, options.output_paths)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    try:
        options = parse_options(argv)
        config = resolve_api_config()
        if config.using_proxy:
            err_console.print(f"[red]{PROXY_WARNING}[/red]")
        return run(options, config=config)
    except (CodemancerError, OSError) as e:
        err_console.print(f"[red]{escape(str(e))}[/red]")
        return 1
    except (EOFError, KeyboardInterrupt):
        err_console.print("\n[dim]Aborted[/dim]")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
