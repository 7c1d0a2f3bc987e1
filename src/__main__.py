#!/usr/bin/env python3
"""
embedpy - render an embedded-Python template file

Reads a template, renders it with an empty data context and writes the
result. The template's own path is used as its filename, so relative
includes resolve next to it.

Usage:
    embedpy -o OUTPUT FILE
    python -m embedpy -o OUTPUT FILE

Examples:
    # Render a page
    embedpy -o site/index.html pages/index.ept

    # Trace the compile
    EMBEDPY_VERBOSITY=3 embedpy -o out.txt report.ept
"""

import sys
import asyncio
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter
from typing import List, Optional

from .config import appsettings
from .lib import render_file, LOG, verbosity_connect, TemplateError
from .models import ProgramState, pipeline


# Define CLI arguments
parser = ArgumentParser(
    prog="embedpy",
    description="embedpy - render an embedded-Python text template",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "-o", "--out", required=True, type=str, help="File the rendered output is written to"
)

parser.add_argument("file", type=str, help="Template file to render")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate the environment and resolve file paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the template
            - outputFile: Resolved output path
            - envOK: True if environment is valid

    Exits:
        1 if the template file does not exist
    """
    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    input_file = Path(state.inputFile)
    if not input_file.is_file():
        print(f"Error: Template file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.inputSourceFile = input_file.resolve()
    state.outputFile = Path(state.out)
    LOG(f"Template: {state.inputSourceFile}", level=2)

    state.envOK = True
    return state


def template_render(inputstate: ProgramState) -> ProgramState:
    """
    Render the template file.

    Args:
        inputstate: Program state with inputSourceFile set

    Returns:
        ProgramState with added field:
            - rendered: The rendered text

    Exits:
        1 if compiling or rendering fails
    """
    state = inputstate.copy()

    LOG("Rendering template...", level=1)
    try:
        state.rendered = asyncio.run(render_file(str(state.inputSourceFile)))
    except (TemplateError, SyntaxError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Render error: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Rendered {len(state.rendered)} characters", level=2)
    return state


def output_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the rendered text to the output file (terminal pipeline stage).

    Exits:
        1 if nothing was rendered or the file cannot be written
    """
    state = inputstate.copy()
    if state.rendered is None:
        print("Error: Rendering failed", file=sys.stderr)
        sys.exit(1)

    try:
        if state.outputFile.parent != Path(""):
            state.outputFile.parent.mkdir(parents=True, exist_ok=True)
        state.outputFile.write_text(state.rendered, encoding="utf-8")
    except OSError as e:
        print(f"Error writing output file: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Output: {state.outputFile}", level=1)
    return state


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point - render a template file to an output file.

    Orchestrates the pipeline:
        1. env_check: Validate paths
        2. template_render: Compile and render the template
        3. output_write: Write the result

    Args:
        argv: Command line arguments (sys.argv[1:] when None)

    Returns:
        0 on success; failures exit with status 1
    """
    options: Namespace = parser.parse_args(argv)

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, verbosity=appsettings.verbosity
    )

    # Connect verbosity to the logger for the entire pipeline
    verbosity_connect(state.verbosity)

    pipeline(state, env_check, template_render, output_write)
    return 0


if __name__ == "__main__":
    sys.exit(main())
