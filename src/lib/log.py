"""
Centralized logging using Loguru with context-aware verbosity.

This module provides a LOG() function that respects the verbosity level
connected to the current context without requiring explicit passing of a
level through the compiler.

Features:
- Context-aware logging tied to a connected verbosity level
- Rich formatting with timestamps, colors, and metadata
- Safe across threads and asyncio tasks using contextvars
- Falls back to appsettings.verbosity when nothing is connected

Usage:
    from embedpy.lib.log import LOG, verbosity_connect

    # At start of a pipeline (e.g. the CLI):
    verbosity_connect(2)

    # Anywhere in that context:
    LOG("This message appears if verbosity >= 1", level=1)
    LOG("Compile details appear if verbosity >= 2", level=2)
    LOG("Token trace appears if verbosity >= 3", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

from ..config import appsettings

# Context variable to hold the current verbosity level
_verbosity: ContextVar[Optional[int]] = ContextVar('verbosity', default=None)

# Configure loguru with embedpy-specific format
logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def verbosity_connect(level: Optional[int]) -> None:
    """
    Connect a verbosity level to the logging context.

    Call this at the start of a pipeline to make the level available to
    LOG() calls throughout that context. Passing None reverts to the
    configured default.

    Args:
        level: Verbosity level (0 silences everything)
    """
    _verbosity.set(level)


def verbosity_get() -> int:
    """Return the verbosity in effect for the current context"""
    level = _verbosity.get()
    if level is None:
        return appsettings.verbosity
    return level


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the current verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=trace)
        **kwargs: Additional loguru metadata

    Example:
        LOG("Compiled template 'page'", level=2)
        LOG("Scanned 42 tokens", level=3)
    """
    if verbosity_get() >= level:
        logger.opt(depth=1).debug(message, **kwargs)
