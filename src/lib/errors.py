"""
Template error types and render-time error contextualization

Compile-time problems raise one of the TemplateError subclasses below.
Render-time failures keep their original exception type; when a template
was compiled with compile_debug, rethrow() rewrites their message to show
the template lines around the failure before re-raising them.
"""

import functools
from typing import Any, Callable, Optional


class TemplateError(Exception):
    """Base class for errors raised by the template compiler"""
    pass


class TemplateSyntaxError(TemplateError):
    """Raised when tags or Python blocks in a template are malformed"""
    pass


class TemplateNameError(TemplateError, ValueError):
    """
    Raised when a name option is not a valid Python identifier

    Attributes:
        option: Name of the offending option (e.g. "locals_name")
    """

    def __init__(self, option: str) -> None:
        self.option = option
        super().__init__(f"{option} is not a valid Python identifier.")


class TemplateIncludeError(TemplateError, FileNotFoundError):
    """Raised when an include path cannot be resolved to a file"""
    pass


class TemplateRenderError(TemplateError):
    """
    Render failure carrying a rewritten, template-annotated message

    Used by rethrow() for exceptions whose own str() does not show their
    args (KeyError quotes its argument, OSError formats errno/strerror).
    Such failures are re-raised as a subclass of both this class and the
    original type, chained to the original, so ``except KeyError`` and
    ``except TemplateError`` both still catch them.
    """

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


@functools.lru_cache(maxsize=None)
def renderError_class(kind: type) -> type:
    """TemplateRenderError subclass that is also an instance of kind"""
    try:
        return type(kind.__name__, (TemplateRenderError, kind), {"__module__": kind.__module__})
    except TypeError:
        return TemplateRenderError


CONTEXT_LINES = 3
FALLBACK_NAME = "template"


def context_format(source: str, lineno: int) -> str:
    """
    Build a numbered excerpt of the template around a line

    Args:
        source: Full template text
        lineno: 1-based line that failed

    Returns:
        Up to three lines either side of lineno, each prefixed by its
        number; the failing line is marked with " >> "

    Example:
        >>> print(context_format("a\\nb\\nc", 2))
            1| a
         >> 2| b
            3| c
    """
    lines = source.split("\n")
    start = max(lineno - CONTEXT_LINES - 1, 0)
    end = min(len(lines), lineno + CONTEXT_LINES)

    excerpt = []
    for index, line in enumerate(lines[start:end], start=start + 1):
        marker = " >> " if index == lineno else "    "
        excerpt.append(f"{marker}{index}| {line}")
    return "\n".join(excerpt)


def rethrow(
    error: BaseException,
    source: str,
    filename: Optional[str],
    lineno: int,
    escape: Callable[[Any], str],
) -> None:
    """
    Re-raise a render failure annotated with template context

    Called from generated render functions compiled with compile_debug.
    The message becomes

        <filename>:<lineno>
        <excerpt>

        <original message>

    and the error gains a ``path`` attribute holding the escaped filename.
    The same exception object is re-raised whenever its str() shows the
    rewritten message; otherwise a TemplateRenderError subclass of its
    type is raised from it instead.

    Args:
        error: Exception raised by template code
        source: Full template text
        filename: Template filename, if known
        lineno: 1-based template line being executed
        escape: Escape function of the failing template

    Raises:
        The given error, or its TemplateRenderError counterpart
    """
    path = escape(filename) if filename else None
    message = (
        f"{path or FALLBACK_NAME}:{lineno}\n"
        f"{context_format(source, lineno)}\n"
        f"\n"
        f"{error}"
    )

    error.path = path  # type: ignore[attr-defined]
    original_args = error.args
    error.args = (message,)
    if str(error) == message:
        raise error

    try:
        decorated = renderError_class(type(error))(message)
    except TypeError:
        decorated = TemplateRenderError(message)
    error.args = original_args
    decorated.path = path  # type: ignore[attr-defined]
    raise decorated.with_traceback(error.__traceback__) from error
