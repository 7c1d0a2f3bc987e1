"""
Models package for embedpy

Contains the data structures shared by the compile pipeline and the CLI.
"""

from .state import CompilationState, ProgramState, pipeline
from .tokens import DelimiterSet, Mode, Tag, Token
from .options import IncluderResult, Options

__all__ = [
    "CompilationState",
    "ProgramState",
    "pipeline",
    "DelimiterSet",
    "Mode",
    "Tag",
    "Token",
    "IncluderResult",
    "Options",
]
