"""
Tag scanner for embedded-Python templates

Splits raw template text into an ordered list of Tokens: literal spans
and tag markers, alternating in document order. Concatenating the text of
every token reproduces the (pre-processed) template exactly; nothing is
dropped or duplicated.

Pre-processing happens before scanning:
1. A leading byte-order mark is removed
2. With rm_whitespace, line endings collapse to "\\n" and every line is
   stripped of leading/trailing whitespace
3. Spaces/tabs before a trim-open marker (<%_) and after a slurp-close
   marker (_%>) are always removed

Example:
    >>> Lexer("<p><%= name %></p>").tokenize()
    [Token(text='<p>', tag=None), Token(text='<%=', tag=<Tag.ESCAPED_OPEN: '<%='>),
     Token(text=' name ', tag=None), Token(text='%>', tag=<Tag.CLOSE: '%>'>),
     Token(text='</p>', tag=None)]
"""

import re
from typing import List, Optional

from ..models.tokens import DelimiterSet, Tag, Token
from .log import LOG

BOM = re.compile('^\ufeff')
LINE_BREAKS = re.compile(r'[\r\n]+')
LINE_EDGES = re.compile(r'^\s+|\s+$', re.MULTILINE)


class Lexer:
    """
    Scanner turning template text into tokens

    Attributes:
        text: Template text after pre-processing
        delimiters: Tag characters in effect
        pattern: Compiled scanning pattern built from the delimiters
    """

    def __init__(
        self,
        text: str,
        delimiters: Optional[DelimiterSet] = None,
        rm_whitespace: bool = False,
    ) -> None:
        self.delimiters = delimiters or DelimiterSet()
        self.rm_whitespace = rm_whitespace
        self.pattern = self.delimiters.pattern_build()
        self.text = self.text_prepare(text)

    def text_prepare(self, text: str) -> str:
        """
        Apply whitespace pre-processing ahead of scanning

        Args:
            text: Raw template text

        Returns:
            Text with BOM removed, optional whitespace removal applied and
            horizontal whitespace slurped around trim markers
        """
        text = BOM.sub('', text)

        if self.rm_whitespace:
            # Two passes: "^"/"$" do not treat a lone "\r" as a line end
            text = LINE_BREAKS.sub('\n', text)
            text = LINE_EDGES.sub('', text)

        trim_open = re.escape(self.delimiters.marker(Tag.EVAL_OPEN_TRIM))
        slurp_close = re.escape(self.delimiters.marker(Tag.CLOSE_SLURP))
        text = re.sub(rf'[ \t]*({trim_open})', r'\1', text)
        text = re.sub(rf'({slurp_close})[ \t]*', r'\1', text)
        return text

    def tokenize(self) -> List[Token]:
        """
        Scan the prepared text into tokens

        Repeatedly takes the leftmost marker match: the literal span
        before it (if any) becomes one token, the marker another. The
        tail after the last marker becomes the final token.

        Returns:
            Tokens in document order; empty for empty text
        """
        tokens: List[Token] = []
        position = 0

        for match in self.pattern.finditer(self.text):
            if match.start() > position:
                tokens.append(Token(self.text[position:match.start()]))
            tokens.append(Token(match.group(0), Tag[match.lastgroup]))
            position = match.end()

        if position < len(self.text):
            tokens.append(Token(self.text[position:]))

        LOG(f"Scanned {len(tokens)} tokens", level=3)
        return tokens


def tokenize(
    text: str,
    delimiters: Optional[DelimiterSet] = None,
    rm_whitespace: bool = False,
) -> List[Token]:
    """Convenience wrapper: scan text with a throwaway Lexer"""
    return Lexer(text, delimiters, rm_whitespace).tokenize()
