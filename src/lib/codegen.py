"""
Python source synthesis for compiled templates

CodeBuilder accumulates indented lines of Python source. SourceSynthesizer
sits on top of it and turns each content token, classified by the mode
the Parser is in, into statements of the render function body:

    literal text      ->  __append('<text>')
    <% code %>        ->  code, re-indented to the current block level
    <%= expr %>       ->  __append(escape_fn(expr))
    <%- expr %>       ->  __append(expr)
    <%# comment %>    ->  (nothing)

Blocks:
    Embedded code is Python, so indentation is owned here. A code tag
    whose last line ends with ":" opens a block; the block stays open
    across template text until a code tag containing only "end" closes
    it. A tag starting with elif/else/except/finally closes the current
    block and opens its sibling:

        <% if user: %>Hi <%= user %><% else: %>Hi stranger<% end %>
"""

import io
import re
import textwrap
import tokenize
from typing import List, Optional, Tuple, Union

from ..models.state import CompilationState
from ..models.tokens import Mode
from .errors import TemplateSyntaxError

BLOCK_OPENER = re.compile(r':\s*$')
BLOCK_END = re.compile(r'^end\s*(#.*)?$')
BLOCK_CONTINUATION = re.compile(r'^(elif|else|except|finally)\b')
LINE_BREAK = re.compile(r'^(?:\r\n|\r|\n)')
TRAILING_SEMICOLON = re.compile(r';(\s*)$')


def comment_strip(line: str) -> str:
    """
    Remove a trailing "# comment" from one line of Python

    Uses the tokenizer so "#" inside string literals is left alone. Lines
    that do not tokenize on their own (an unclosed bracket, say) are
    returned with only trailing whitespace removed.

    Example:
        >>> comment_strip("x = 1  # note:")
        'x = 1'
        >>> comment_strip("s = '#:'")
        "s = '#:'"
    """
    try:
        tokens = list(tokenize.generate_tokens(io.StringIO(line).readline))
    except (tokenize.TokenError, SyntaxError):
        return line.rstrip()

    for token in tokens:
        if token.type == tokenize.COMMENT:
            return line[:token.start[1]].rstrip()
    return line.rstrip()


def block_opens(line: str) -> bool:
    """True when the code of line, ignoring any comment, ends with ':'"""
    return bool(BLOCK_OPENER.search(comment_strip(line)))


class CodeBuilder:
    """Build source code conveniently."""

    INDENT_STEP = 4

    def __init__(self, indent_level: int = 0) -> None:
        self.code: List[Union[str, "CodeBuilder"]] = []
        self.indent_level = indent_level

    def line_add(self, line: str) -> None:
        """
        Add a line of source to the code.

        Indentation and newline will be added for you, don't provide them.
        """
        self.code.extend([" " * self.indent_level, line, "\n"])

    def indent(self) -> None:
        """Increase the current indent for following lines."""
        self.indent_level += self.INDENT_STEP

    def dedent(self) -> None:
        """Decrease the current indent for following lines."""
        self.indent_level -= self.INDENT_STEP

    def section_add(self) -> "CodeBuilder":
        """Add a section, a sub-CodeBuilder, filled in later."""
        section = CodeBuilder(self.indent_level)
        self.code.append(section)
        return section

    def __str__(self) -> str:
        return "".join(str(c) for c in self.code)


def statements_split(content: str) -> List[Tuple[int, str]]:
    """
    Split eval-tag content into (relative indent, statement) pairs

    The first line shares its source line with the open tag, so its own
    leading whitespace is meaningless; the remaining lines are dedented
    as a group. When the first line opens a block and the following line
    is the least indented one, the following lines form that block's body
    and are shifted one step to the right.

    Example:
        >>> statements_split(" if a:\\n     b() ")
        [(0, 'if a:'), (4, 'b()')]
        >>> statements_split("\\n  x = 1\\n  y = 2\\n")
        [(0, 'x = 1'), (0, 'y = 2')]
    """
    lines = content.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    head = lines[0].strip()
    body = [line.rstrip() for line in textwrap.dedent("\n".join(lines[1:])).split("\n")]
    body = [line for line in body if line.strip()]

    statements: List[Tuple[int, str]] = []
    if head:
        statements.append((0, head))

    offset = 0
    if head and body and block_opens(head) and not body[0][0].isspace():
        offset = CodeBuilder.INDENT_STEP

    for line in body:
        stripped = line.lstrip()
        statements.append((offset + len(line) - len(stripped), stripped))
    return statements


class SourceSynthesizer:
    """
    Emit render-function statements for scanned template content

    Works on the CompilationState owned by a Parser: output goes to
    state.builder, truncation and line tracking read and update the
    state's flags.

    Args:
        state: Compilation state of the current pass
        compile_debug: Emit __line updates for error reporting
    """

    def __init__(self, state: CompilationState, compile_debug: bool = True) -> None:
        self.state = state
        self.compile_debug = compile_debug

    @property
    def builder(self) -> CodeBuilder:
        return self.state.builder

    def output_add(self, text: str) -> None:
        """
        Emit a literal-output append for plain template text

        If a trim-close tag armed truncation, exactly one leading line
        break (CRLF, CR or LF) is dropped first and the flag cleared.
        Nothing is emitted for text that ends up empty.
        """
        if self.state.truncate:
            text = LINE_BREAK.sub("", text, count=1)
            self.state.truncate = False

        if not text:
            return
        self.literal_add(text)

    def literal_add(self, text: str) -> None:
        """Emit an append of text as-is, ignoring truncation"""
        self.builder.line_add(f"__append({text!r})")

    def code_add(self, mode: Mode, content: str) -> None:
        """
        Emit the Python for the content of a code tag

        Args:
            mode: EVAL, ESCAPED, RAW or COMMENT
            content: Text between the open and close markers
        """
        if mode is Mode.COMMENT:
            return

        # A trailing "# comment" would swallow whatever is emitted after it
        if content.rfind("#") > content.rfind("\n"):
            content += "\n"

        if mode is Mode.EVAL:
            self.statements_add(content)
        elif mode is Mode.ESCAPED:
            self.builder.line_add(f"__append(escape_fn({self.expression_clean(content)}))")
        elif mode is Mode.RAW:
            self.builder.line_add(f"__append({self.expression_clean(content)})")

    @staticmethod
    def expression_clean(content: str) -> str:
        """Drop a statement-ending semicolon from an output expression"""
        return TRAILING_SEMICOLON.sub(r"\1", content)

    def statements_add(self, content: str) -> None:
        """
        Emit eval-tag statements at the current block level

        Handles the block keywords described in the module docstring:
        "end" closes the open block, elif/else/except/finally close it and
        re-open a sibling, and a trailing ":" opens a new one.

        Raises:
            TemplateSyntaxError: On "end" or a continuation keyword with no
                                 open block
        """
        statements = statements_split(content)
        if not statements:
            return

        last: Optional[Tuple[int, str]] = None
        for relative, text in statements:
            if relative == 0 and BLOCK_END.match(text):
                self.block_close(text)
                last = None
                continue
            if relative == 0 and BLOCK_CONTINUATION.match(text):
                self.block_close(text)
            self.builder.line_add(" " * relative + text)
            last = (relative, text)

        if last is not None and block_opens(last[1]):
            self.block_open(self.builder.indent_level + last[0])

    def block_open(self, header_level: int) -> None:
        """Indent following output under a block header at header_level"""
        self.state.blocks.append(self.builder.indent_level)
        self.builder.indent_level = header_level + CodeBuilder.INDENT_STEP
        self.builder.line_add("pass")

    def block_close(self, keyword_line: str) -> None:
        """Return to the indent level in effect before the open block"""
        if not self.state.blocks:
            keyword = keyword_line.split()[0].rstrip(":")
            raise TemplateSyntaxError(f"Found '{keyword}' without an open block.")
        self.builder.indent_level = self.state.blocks.pop()

    def line_track(self, text: str) -> None:
        """
        Advance the template line counter past a token

        With compile_debug on, every token containing line breaks emits an
        assignment so the render function always knows which template
        line it is executing.
        """
        newlines = text.count("\n")
        if self.compile_debug and newlines:
            self.state.currentLine += newlines
            self.builder.line_add(f"__line = {self.state.currentLine}")
