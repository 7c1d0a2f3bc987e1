"""
Mode state machine for scanned template tokens

Drives a SourceSynthesizer over the token list produced by the Lexer.

The parser operates in two phases:
1. Validation: a shallow pre-scan checking that every open tag is closed
   two tokens later (after exactly one content token)
2. Scanning: one linear pass tracking the active mode and routing each
   content token to the synthesizer

Modes:
    None      plain text, emitted as literal output
    EVAL      <% %>    code executed
    ESCAPED   <%= %>   expression output through the escape function
    RAW       <%- %>   expression output as-is
    COMMENT   <%# %>   discarded
    LITERAL   <%% and %%> escapes, emitted as text

Example:
    >>> parser = Parser(Lexer("<p><%= name %></p>").tokenize())
    >>> print(parser.parse())
    __append('<p>')
    __append(escape_fn( name ))
    __append('</p>')
"""

from typing import List, Optional

from ..models.state import CompilationState
from ..models.tokens import DelimiterSet, Mode, Tag, Token
from .codegen import CodeBuilder, SourceSynthesizer
from .errors import TemplateSyntaxError
from .log import LOG

OPEN_MODES = {
    Tag.EVAL_OPEN: Mode.EVAL,
    Tag.EVAL_OPEN_TRIM: Mode.EVAL,
    Tag.ESCAPED_OPEN: Mode.ESCAPED,
    Tag.RAW_OPEN: Mode.RAW,
    Tag.COMMENT_OPEN: Mode.COMMENT,
}

CLOSE_TAGS = (Tag.CLOSE, Tag.CLOSE_TRIM, Tag.CLOSE_SLURP)


class Parser:
    """
    Single-pass compiler from tokens to render-function body source

    Handles:
    - Open/close tag validation (shallow, fixed lookahead)
    - Mode transitions for the five tag kinds
    - Literal escapes (<%% and %%>), which need no close tag
    - Line-break truncation after -%> and _%>
    - Python blocks left open at the end of the template

    Args:
        tokens: Token list in document order
        delimiters: Tag characters the tokens were scanned with
        compile_debug: Track template line numbers in the output
        builder: Section to synthesize into (a fresh CodeBuilder if None)
    """

    def __init__(
        self,
        tokens: List[Token],
        delimiters: Optional[DelimiterSet] = None,
        compile_debug: bool = True,
        builder: Optional[CodeBuilder] = None,
    ) -> None:
        self.tokens = tokens
        self.delimiters = delimiters or DelimiterSet()
        self.state = CompilationState(builder=builder or CodeBuilder())
        self.synthesizer = SourceSynthesizer(self.state, compile_debug=compile_debug)

    def tokens_validate(self) -> None:
        """
        Check that each open tag is followed by a close tag

        Every token starting with the open marker (but not the doubled
        literal escape) must have one of the three close markers exactly
        two positions later. This is deliberately shallow: it does not
        match nesting, and some malformed sequences pass it.

        Raises:
            TemplateSyntaxError: Naming the open tag that has no close
        """
        tag_open = self.delimiters.tag_open
        tag_escape = self.delimiters.tag_escape
        closers = self.delimiters.closers

        for index, token in enumerate(self.tokens):
            if not token.text.startswith(tag_open) or token.text.startswith(tag_escape):
                continue
            closing = self.tokens[index + 2] if index + 2 < len(self.tokens) else None
            if closing is None or closing.text not in closers:
                raise TemplateSyntaxError(
                    f'Could not find matching close tag for "{token.text}".'
                )

    def parse(self) -> CodeBuilder:
        """
        Validate and scan all tokens

        Returns:
            CodeBuilder holding the synthesized body statements

        Raises:
            TemplateSyntaxError: For unmatched tags, stray block keywords or
                                 blocks never closed with "end"
        """
        self.tokens_validate()
        for token in self.tokens:
            self.token_scan(token)

        if self.state.blocks:
            raise TemplateSyntaxError(
                f"{len(self.state.blocks)} block(s) left open; close each with <% end %>."
            )

        LOG(f"Parsed {len(self.tokens)} tokens, reached line {self.state.currentLine}", level=3)
        return self.state.builder

    def token_scan(self, token: Token) -> None:
        """
        Process one token: switch mode on tags, emit code for content

        Args:
            token: Next token in document order
        """
        state = self.state
        synthesizer = self.synthesizer

        if token.tag in OPEN_MODES:
            state.mode = OPEN_MODES[token.tag]
        elif token.tag is Tag.LITERAL_OPEN:
            state.mode = Mode.LITERAL
            synthesizer.literal_add(self.delimiters.tag_open)
        elif token.tag is Tag.LITERAL_CLOSE:
            state.mode = Mode.LITERAL
            synthesizer.literal_add(self.delimiters.marker(Tag.CLOSE))
        elif token.tag in CLOSE_TAGS:
            if state.mode is Mode.LITERAL:
                synthesizer.output_add(token.text)
            state.mode = None
            state.truncate = token.text.startswith(("-", "_"))
        elif state.mode is None or state.mode is Mode.LITERAL:
            synthesizer.output_add(token.text)
        else:
            synthesizer.code_add(state.mode, token.text)

        synthesizer.line_track(token.text)
