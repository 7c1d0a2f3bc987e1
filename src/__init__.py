"""
embedpy - Embedded-Python text templates

Compiles templates mixing literal text with <% %> tags of Python code
into async render functions.
"""

__version__ = "1.0.0"

from .lib import (
    compile,
    render,
    render_file,
    clear_cache,
    store_get,
    store_set,
    CompiledTemplate,
    Template,
    TemplateError,
    TemplateIncludeError,
    TemplateNameError,
    TemplateRenderError,
    TemplateSyntaxError,
    escape_xml,
    LOG,
)
from .models import IncluderResult, Options

__all__ = [
    "compile",
    "render",
    "render_file",
    "clear_cache",
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
    "LOG",
    "IncluderResult",
    "Options",
    "__version__",
]
