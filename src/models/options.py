"""
Compile options model

Options is the configuration record read by every stage of a compile:
the lexer (delimiters, whitespace removal), the function builder
(debug flags, names, escape function) and the include resolver (filename,
root, views, includer). It is constructed once per compile call and only
ever copied, never mutated, afterwards.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Union, TYPE_CHECKING

from ..config import appsettings
from .tokens import DelimiterSet

if TYPE_CHECKING:
    from ..lib.cache import TemplateCache


@dataclass(frozen=True)
class IncluderResult:
    """
    Answer of a custom includer callback

    Exactly one of the fields is expected: ``filename`` redirects the
    include to another file, ``template`` supplies template text directly.
    """
    filename: Optional[str] = None
    template: Optional[str] = None


EscapeCallback = Callable[[Any], str]
IncluderCallback = Callable[[str, Optional[str]], Optional[IncluderResult]]


def _escape_default(value: Any) -> str:
    from ..lib.escape import escape_xml
    return escape_xml(value)


@dataclass
class Options:
    """
    Template compilation options

    Attributes:
        delimiter: Character used with open/close delimiters
        open_delimiter: Opening delimiter character
        close_delimiter: Closing delimiter character
        filename: Template filename; required for relative includes and
                  caching, used in error messages
        root: Directory (or ordered list of directories) that absolute
              include paths resolve against
        views: Ordered directories searched for relative includes
        rm_whitespace: Strip leading/trailing whitespace on every line
        compile_debug: Track line numbers and decorate render errors
        debug: Dump the generated Python source to stderr
        escape: Escape function used by escaped-output tags and filenames
        output_function_name: Name bound to the append helper inside
                              templates (e.g. "echo")
        locals_name: Name of the data-context parameter
        cache: Store the compiled template in the cache under filename
        includer: Custom include resolver
        store: Cache store to use instead of the process default
    """
    delimiter: str = "%"
    open_delimiter: str = "<"
    close_delimiter: str = ">"
    filename: Optional[str] = None
    root: Union[str, List[str]] = "/"
    views: Optional[List[str]] = None
    rm_whitespace: bool = False
    compile_debug: bool = field(default_factory=lambda: appsettings.compile_debug)
    debug: bool = field(default_factory=lambda: appsettings.debug)
    escape: EscapeCallback = _escape_default
    output_function_name: Optional[str] = None
    locals_name: str = field(default_factory=lambda: appsettings.locals_name)
    cache: bool = False
    includer: Optional[IncluderCallback] = None
    store: Optional["TemplateCache"] = None

    @classmethod
    def coerce(
        cls, options: Union["Options", Mapping[str, Any], None] = None
    ) -> "Options":
        """
        Normalize whatever the caller passed into an Options record

        Args:
            options: None, an Options instance, or a mapping of field names

        Returns:
            A fresh Options instance (callers' records are never shared)

        Raises:
            TypeError: If the mapping contains unknown option names
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return dataclasses.replace(options)
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(options) - known
        if unknown:
            raise TypeError(f"Unknown template option(s): {', '.join(sorted(unknown))}")
        return cls(**dict(options))

    def copy(self, **changes: Any) -> "Options":
        """Return a copy with the given fields replaced"""
        return dataclasses.replace(self, **changes)

    @property
    def delimiters(self) -> DelimiterSet:
        return DelimiterSet(
            open_delimiter=self.open_delimiter,
            close_delimiter=self.close_delimiter,
            delimiter=self.delimiter,
        )
