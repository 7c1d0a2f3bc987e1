"""
Function builder: template text to an awaitable render function

Template runs the whole compile for one piece of template text:

1. Validate the identifier options (output_function_name, locals_name)
2. Scan the text into tokens (Lexer)
3. Synthesize the body (Parser + SourceSynthesizer) inside a prologue
   and epilogue
4. Compile the Python source and keep the code object

The result is a CompiledTemplate. Calling it with a data mapping returns
a coroutine producing the rendered text:

    >>> template = Template("<p><%= name %></p>").compile()
    >>> asyncio.run(template({"name": "geddy"}))
    '<p>geddy</p>'

Generated render functions are ``async def`` so template code can await,
most commonly an include: ``<%- await include("footer") %>``.
"""

import builtins
import keyword
import os
import sys
import types
from typing import Any, List, Mapping, Optional, Sequence, TextIO, Union

from ..models.options import Options
from .codegen import CodeBuilder
from .errors import TemplateNameError, rethrow
from .lexer import Lexer
from .log import LOG
from .parser import Parser

RENDER_FUNCTION = "__render"

LINT_HINT = (
    "\nwhile compiling template\n"
    "\n"
    "If the above error is not helpful, run the generated source (debug=True\n"
    "prints it) through a linter such as pyflakes:\n"
    "https://github.com/PyCQA/pyflakes"
)


def identifier_check(name: str) -> bool:
    """True when name can be bound as a Python variable"""
    return name.isidentifier() and not keyword.iskeyword(name)


def source_dump(source: str, stream: Optional[TextIO] = None) -> None:
    """
    Write generated source to a diagnostic stream

    Terminals get the source syntax-highlighted with Pygments; anything
    else (files, captured streams) gets it verbatim.
    """
    stream = stream or sys.stderr
    if stream.isatty():
        from pygments import highlight
        from pygments.lexers import PythonLexer
        from pygments.formatters import TerminalFormatter

        stream.write(highlight(source, PythonLexer(), TerminalFormatter()))
    else:
        stream.write(source)
    stream.flush()


def template_name(filename: Optional[str]) -> str:
    """Render function name: the filename without directory or extension"""
    if not filename:
        return "anonymous"
    return os.path.splitext(os.path.basename(filename))[0]


class CompiledTemplate:
    """
    A compiled template bound to its options

    Immutable once built: every call gets its own namespace, output
    accumulator and include() closure, so one instance can be awaited
    repeatedly and concurrently.

    Attributes:
        code: Code object of the generated ``async def``
        options: Options the template was compiled with
        source: Generated Python source (for inspection and debugging)
        name: Template name derived from options.filename
    """

    def __init__(self, code: types.CodeType, options: Options, source: str) -> None:
        self.code = code
        self.options = options
        self.source = source
        self.name = template_name(options.filename)

    def __repr__(self) -> str:
        return f"<CompiledTemplate {self.name!r}>"

    async def __call__(self, data: Optional[Mapping[str, Any]] = None) -> str:
        """
        Render the template

        Keys of data are visible to template code as plain names and
        through the locals parameter (``locals["key"]`` by default).

        Args:
            data: Data context for this render

        Returns:
            Rendered text
        """
        context = dict(data or {})
        options = self.options

        async def include(path: str, include_data: Optional[Mapping[str, Any]] = None) -> str:
            from .api import include_file

            merged = {**context, **(include_data or {})}
            included = include_file(path, options)
            return await included(merged)

        namespace = {**context, "__builtins__": builtins}
        function = types.FunctionType(self.code, namespace, self.name)

        LOG(f"Rendering '{self.name}' with {len(context)} data key(s)", level=3)
        return await function(context, options.escape, include, rethrow)


class Template:
    """
    Compiler for one template text

    Args:
        text: Template source
        options: Options record, mapping of option names, or None

    Attributes:
        templateText: Template text as given
        options: Normalized Options
        source: Generated Python source, filled by compile()
    """

    def __init__(
        self,
        text: str,
        options: Union[Options, Mapping[str, Any], None] = None,
    ) -> None:
        self.templateText = text
        self.options = Options.coerce(options)
        self.source = ""

    def names_validate(self) -> None:
        """
        Check the options that become Python names

        Raises:
            TemplateNameError: Naming the first invalid option
        """
        options = self.options
        if options.output_function_name and not identifier_check(options.output_function_name):
            raise TemplateNameError("output_function_name")
        if not identifier_check(options.locals_name):
            raise TemplateNameError("locals_name")

    def source_generate(self, rebound: Sequence[str] = ()) -> str:
        """
        Generate the Python source of the render function

        With compile_debug the body runs inside try/except so failures
        reach rethrow() together with the template text, filename and the
        line being executed.

        Args:
            rebound: Local names to initialize from the data context when
                     it has a key of the same name

        Returns:
            Source defining ``async def __render(...)``
        """
        options = self.options
        lexer = Lexer(self.templateText, options.delimiters, options.rm_whitespace)
        tokens = lexer.tokenize()

        code = CodeBuilder()
        code.line_add(
            f"async def {RENDER_FUNCTION}({options.locals_name}, escape_fn, include, rethrow):"
        )
        code.indent()

        if options.compile_debug:
            code.line_add("__line = 1")
            code.line_add(f"__lines = {lexer.text!r}")
            code.line_add(f"__filename = {options.filename!r}")
            code.line_add("try:")
            code.indent()

        code.line_add("__output = []")
        code.line_add("def __append(value=None):")
        code.indent()
        code.line_add("if value is not None:")
        code.indent()
        code.line_add("__output.append(str(value))")
        code.dedent()
        code.dedent()
        if options.output_function_name:
            code.line_add(f"{options.output_function_name} = __append")
        for name in rebound:
            code.line_add(f"if {name!r} in {options.locals_name}:")
            code.indent()
            code.line_add(f"{name} = {options.locals_name}[{name!r}]")
            code.dedent()

        body = code.section_add()
        Parser(tokens, options.delimiters, options.compile_debug, builder=body).parse()

        code.line_add("return ''.join(__output)")

        if options.compile_debug:
            code.dedent()
            code.line_add("except Exception as __error:")
            code.indent()
            code.line_add("rethrow(__error, __lines, __filename, __line, escape_fn)")

        return str(code)

    def compile(self) -> CompiledTemplate:
        """
        Compile the template into a CompiledTemplate

        Names the template code assigns to are local to the render
        function, which would hide data keys of the same name. After a
        first compile those names are read from the code object and the
        source is generated again, binding each from the data context
        before the body runs.

        Raises:
            TemplateNameError: For invalid identifier options (before any
                               source is generated)
            TemplateSyntaxError: For malformed tags or blocks
            SyntaxError: When the generated Python does not compile; the
                         message names the template and suggests a linter
        """
        options = self.options
        self.names_validate()

        self.source = self.source_generate()
        try:
            function = self.function_build(self.source)
            rebound = self.locals_find(function.__code__)
            if rebound:
                self.source = self.source_generate(rebound)
                function = self.function_build(self.source)
        finally:
            if options.debug:
                source_dump(self.source)

        LOG(f"Compiled template '{template_name(options.filename)}'", level=2)
        return CompiledTemplate(function.__code__, options, self.source)

    def function_build(self, source: str) -> types.FunctionType:
        """Compile source and return the render function it defines"""
        options = self.options
        label = f"<template {options.filename}>" if options.filename else "<template>"
        try:
            code = compile(source, label, "exec")
        except SyntaxError as error:
            if options.filename:
                error.msg += f" in {options.filename}"
            error.msg += LINT_HINT
            raise

        namespace: dict = {"__builtins__": builtins}
        exec(code, namespace)
        return namespace[RENDER_FUNCTION]

    def locals_find(self, code: types.CodeType) -> List[str]:
        """Names assigned by template code, excluding parameters and internals"""
        skip = {self.options.output_function_name}
        return [
            name
            for name in code.co_varnames[code.co_argcount:]
            if not name.startswith("__") and name not in skip
        ]
