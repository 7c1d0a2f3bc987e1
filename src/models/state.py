"""
Program state models and pipeline helper

Defines CompilationState, the single-owner state of one compile pass,
ProgramState for the CLI's functional pipeline, and the pipeline()
helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

from .tokens import Mode

# Forward reference for type hint - avoid circular import
if TYPE_CHECKING:
    from ..lib.codegen import CodeBuilder


@dataclass
class CompilationState:
    """
    Mutable state threaded through one linear scan of a token list

    Created by a Parser for exactly one compile and discarded afterwards,
    whether the compile succeeds or raises. Never shared between compiles.

    Attributes:
        builder: Accumulates the synthesized Python source
        mode: Active tag mode, None while in plain text
        truncate: A trim-close tag asked to drop the next line break
        currentLine: 1-based template line reached so far (debug tracking)
        blocks: Indent levels to restore when open Python blocks end
    """
    builder: "CodeBuilder"
    mode: Optional[Mode] = None
    truncate: bool = False
    currentLine: int = 1
    blocks: List[int] = field(default_factory=list)


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the CLI pipeline (state bus pattern).

    Pipeline stages and their state additions:
        - Initial: inputFile, out, verbosity
        - env_check: inputSourceFile, outputFile, envOK
        - template_render: rendered
        - output_write: (no additions, terminal stage)

    Attributes:
        inputFile: Template path as given on the command line
        out: Output path as given on the command line
        verbosity: Logging verbosity level
        envOK: Environment validation passed
        inputSourceFile: Resolved path to the template
        outputFile: Resolved output path
        rendered: Rendered template text
    """

    # CLI arguments
    inputFile: str = field(default="")
    out: str = field(default="")
    verbosity: int = field(default=0)

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    outputFile: Path = field(default=Path("/"))
    rendered: Optional[str] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, **extra: Any
    ) -> "ProgramState":
        """
        Create ProgramState from an argparse Namespace.

        Only attributes that name a ProgramState field are taken over;
        keyword arguments override them.

        Args:
            options: Parsed CLI arguments (file, out)
            **extra: Additional field values (e.g. verbosity)

        Returns:
            ProgramState instance with the CLI options as attributes
        """
        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        options_dict = {k: v for k, v in vars(options).items() if k in valid_fields}
        if "file" in vars(options):
            options_dict["inputFile"] = options.file

        return cls(**{**options_dict, **extra})

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Example:
        final_state = pipeline(initial_state, env_check, template_render, output_write)

    This is equivalent to:
        output_write(template_render(env_check(initial_state)))
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
