"""
Public compile and render API

The entry points most callers need:

    compile(text, options)          -> CompiledTemplate
    await render(text, data, ...)   -> str
    await render_file(path, data)   -> str
    clear_cache()

Options may be given as an Options record or as a plain mapping of
option names, e.g. ``{"filename": "page.ept", "cache": True}``.

Example:
    >>> import asyncio, embedpy
    >>> asyncio.run(embedpy.render("<p><%= name %></p>", {"name": "geddy"}))
    '<p>geddy</p>'
"""

from typing import Any, Mapping, Optional, Union

from ..models.options import Options
from .cache import store_get
from .compiler import CompiledTemplate, Template
from .errors import TemplateError, TemplateIncludeError
from .includes import includePath_get
from .log import LOG

OptionsLike = Union[Options, Mapping[str, Any], None]


def file_read(filename: str) -> str:
    """Read a template file as UTF-8, dropping any byte-order mark"""
    with open(filename, "r", encoding="utf-8-sig") as handle:
        return handle.read()


def template_get(options: Options, template: Optional[str] = None) -> CompiledTemplate:
    """
    Get a compiled template, through the cache when it is enabled

    With options.cache the compiled template is looked up and stored
    under options.filename. A cache hit is returned as-is, even if the
    file has changed since it was compiled.

    Args:
        options: Normalized compile options
        template: Template text; read from options.filename when None

    Returns:
        The compiled template

    Raises:
        TemplateError: When caching without a filename, or when neither
                       a template nor a filename is given
        OSError: When the template file cannot be read
    """
    filename = options.filename
    store = options.store if options.store is not None else store_get()

    if options.cache:
        if not filename:
            raise TemplateError("cache option requires a filename")
        cached = store.get(filename)
        if cached is not None:
            LOG(f"Cache hit for {filename}", level=2)
            return cached

    if template is None:
        if not filename:
            raise TemplateError("No template text and no filename to read it from")
        template = file_read(filename)

    compiled = Template(template, options).compile()
    if options.cache:
        store.set(filename, compiled)
        LOG(f"Cached {filename}", level=3)
    return compiled


def include_file(path: str, options: Options) -> CompiledTemplate:
    """
    Compile the template named by an include() call

    The included template shares the including template's options except
    for its filename. A custom includer sees the path as written and the
    resolved filename (or None) and may redirect to another file or hand
    back template text directly.

    Args:
        path: Path as written in the include call
        options: Options of the including template

    Returns:
        The compiled include

    Raises:
        TemplateIncludeError: If the include cannot be resolved
    """
    include_path = includePath_get(path, options)

    if options.includer is not None:
        result = options.includer(path, include_path)
        if result is not None:
            if result.filename:
                include_path = result.filename
            if result.template is not None:
                return template_get(options.copy(filename=include_path), result.template)

    if include_path is None:
        raise TemplateIncludeError(
            f'Could not find the include file "{options.escape(path)}"'
        )
    return template_get(options.copy(filename=include_path))


def compile(template: str, options: OptionsLike = None) -> CompiledTemplate:
    """
    Compile template text into an awaitable render function

    Args:
        template: Template text
        options: Compile options

    Returns:
        CompiledTemplate; ``await compiled(data)`` renders it
    """
    return Template(template, options).compile()


async def render(
    template: str,
    data: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
) -> str:
    """
    Compile (or fetch from the cache) and render template text

    Args:
        template: Template text
        data: Data context
        options: Compile options; cache requires a filename

    Returns:
        Rendered text
    """
    compiled = template_get(Options.coerce(options), template)
    return await compiled(data)


async def render_file(
    path: str,
    data: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
) -> str:
    """
    Read, compile and render a template file

    The path becomes options.filename, so relative includes resolve next
    to it and the cache (when enabled) is keyed by it.

    Args:
        path: Template file
        data: Data context
        options: Compile options

    Returns:
        Rendered text
    """
    resolved = Options.coerce(options).copy(filename=path)
    LOG(f"Rendering file {path}", level=2)
    compiled = template_get(resolved)
    return await compiled(data)


def clear_cache() -> None:
    """Drop every entry of the process-wide template store"""
    store_get().clear()
