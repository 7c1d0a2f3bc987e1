"""
embedpy library modules

Scanner, parser, source synthesizer and function builder, plus the
include resolver, cache stores and logging helper they share.
"""

__version__ = "1.0.0"

from .api import compile, render, render_file, clear_cache, template_get
from .cache import LRUCache, MemoryCache, TemplateCache, store_get, store_set
from .compiler import CompiledTemplate, Template
from .errors import (
    TemplateError,
    TemplateIncludeError,
    TemplateNameError,
    TemplateRenderError,
    TemplateSyntaxError,
)
from .escape import escape_xml
from .lexer import Lexer
from .log import LOG, verbosity_connect
from .parser import Parser

__all__ = [
    "compile",
    "render",
    "render_file",
    "clear_cache",
    "template_get",
    "LRUCache",
    "MemoryCache",
    "TemplateCache",
    "store_get",
    "store_set",
    "CompiledTemplate",
    "Template",
    "TemplateError",
    "TemplateIncludeError",
    "TemplateNameError",
    "TemplateRenderError",
    "TemplateSyntaxError",
    "escape_xml",
    "Lexer",
    "LOG",
    "verbosity_connect",
    "Parser",
    "__version__",
]
