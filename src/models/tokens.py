"""
Token and delimiter models for the tag scanner

Defines the closed set of tag markers a template may contain, the
Token records the scanner produces, and the DelimiterSet that turns
the three configurable characters into marker strings and a single
scanning pattern.
"""

import re
from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional


class Tag(Enum):
    """
    Tag markers recognized by the scanner

    Each value is a marker template written with the default delimiters;
    DelimiterSet.marker() substitutes the configured characters. Member
    order is the order alternatives are tried while scanning: doubled
    delimiter escapes first, then the three-character open markers, then
    the bare open marker, then the close markers.
    """
    LITERAL_OPEN = "<%%"       # literal-escape open, renders "<%"
    LITERAL_CLOSE = "%%>"      # literal-escape close, renders "%>"
    ESCAPED_OPEN = "<%="       # output, escaped
    RAW_OPEN = "<%-"           # output, unescaped
    EVAL_OPEN_TRIM = "<%_"     # code, slurps preceding spaces/tabs
    COMMENT_OPEN = "<%#"       # discarded
    EVAL_OPEN = "<%"           # code
    CLOSE = "%>"
    CLOSE_TRIM = "-%>"         # drops the following line break
    CLOSE_SLURP = "_%>"        # drops following spaces/tabs and line break


class Mode(Enum):
    """
    Classification of the content between an open and a close tag

    Plain text outside any tag is represented by ``None`` rather than a
    member, mirroring "no mode active".
    """
    EVAL = "eval"
    ESCAPED = "escaped"
    RAW = "raw"
    COMMENT = "comment"
    LITERAL = "literal"


@dataclass(frozen=True)
class Token:
    """
    A single scanned span of template text

    Attributes:
        text: The exact characters of the span
        tag: Tag kind for marker tokens, None for literal/content spans

    Example:
        "<p><%= name %></p>" scans to
        [Token("<p>"), Token("<%=", Tag.ESCAPED_OPEN), Token(" name "),
         Token("%>", Tag.CLOSE), Token("</p>")]
    """
    text: str
    tag: Optional[Tag] = None

    @property
    def is_tag(self) -> bool:
        return self.tag is not None


@dataclass(frozen=True)
class DelimiterSet:
    """
    The three configurable tag characters

    Attributes:
        open_delimiter: Character starting a tag (default "<")
        close_delimiter: Character ending a tag (default ">")
        delimiter: Character paired with open/close (default "%")

    The characters may coincide; the scanner still builds a pattern, and
    the alternative order decides which marker wins.
    """
    open_delimiter: str = "<"
    close_delimiter: str = ">"
    delimiter: str = "%"

    def marker(self, tag: Tag) -> str:
        """
        Marker string for a tag under these delimiters

        Example:
            >>> DelimiterSet("[", "]", "#").marker(Tag.ESCAPED_OPEN)
            '[#='
        """
        table = {"<": self.open_delimiter, ">": self.close_delimiter, "%": self.delimiter}
        return "".join(table.get(ch, ch) for ch in tag.value)

    def markers(self) -> Dict[Tag, str]:
        return {tag: self.marker(tag) for tag in Tag}

    @property
    def tag_open(self) -> str:
        return self.open_delimiter + self.delimiter

    @property
    def tag_escape(self) -> str:
        return self.open_delimiter + self.delimiter + self.delimiter

    @property
    def closers(self) -> tuple:
        """The three marker strings that end a tag"""
        return (
            self.marker(Tag.CLOSE),
            self.marker(Tag.CLOSE_TRIM),
            self.marker(Tag.CLOSE_SLURP),
        )

    def pattern_build(self) -> "re.Pattern[str]":
        """
        Build the scanning pattern for these delimiters

        Every marker is matched literally (regex metacharacters escaped)
        and captured in a group named after its Tag, so a match reports
        which marker it found through ``match.lastgroup``.

        Returns:
            Compiled pattern alternating all ten markers
        """
        alternatives = [
            f"(?P<{tag.name}>{re.escape(self.marker(tag))})" for tag in Tag
        ]
        return re.compile("|".join(alternatives))
