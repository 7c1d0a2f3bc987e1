"""
Include path resolution

Maps the path given to include() inside a template onto a file:

    absolute ("/x", "C:\\x")  ->  resolved against Options.root, or searched
                                 in each directory when root is a list
    relative ("x", "a/x")     ->  next to the including template first,
                                 then in each Options.views directory

A path without an extension gets the default template extension
(appsettings.default_extension). When nothing resolves and no custom
includer is configured, TemplateIncludeError is raised.
"""

import os
import re
from typing import List, Optional, Union

from ..config import appsettings
from ..models.options import Options
from .errors import TemplateIncludeError
from .log import LOG

ABSOLUTE_PATH = re.compile(r'^[A-Za-z]+:\\|^/')


def include_resolve(name: str, filename: str, is_dir: bool = False) -> str:
    """
    Get the path to an included file from the including file's path

    Args:
        name: Path as written in the include call
        filename: Path of the including template, or a directory
        is_dir: filename is itself the base directory

    Returns:
        Absolute path, with the default extension appended when name has
        none

    Example:
        >>> include_resolve("footer", "/site/pages/index.ept")
        '/site/pages/footer.ept'
    """
    base = filename if is_dir else os.path.dirname(filename)
    include_path = os.path.abspath(os.path.join(base, name))
    if not os.path.splitext(name)[1]:
        include_path += appsettings.default_extension
    return include_path


def path_find(name: str, paths: List[str]) -> Optional[str]:
    """Return the first existing resolution of name in paths, or None"""
    for directory in paths:
        candidate = include_resolve(name, directory, is_dir=True)
        if os.path.exists(candidate):
            return candidate
    return None


def paths_resolve(name: str, paths: List[str]) -> str:
    """
    Resolve name against several directories, first existing file wins

    Raises:
        TemplateIncludeError: If no directory contains the file
    """
    include_path = path_find(name, paths)
    if include_path is None:
        raise TemplateIncludeError(f'Could not find "{name}" in any of: {", ".join(paths)}')
    return include_path


def includePath_get(path: str, options: Options) -> Optional[str]:
    """
    Get the path to an included file according to the options

    Args:
        path: Path as written in the include call
        options: Options of the including template

    Returns:
        Resolved filename, or None when only a custom includer can
        resolve it

    Raises:
        TemplateIncludeError: If the path cannot be resolved and no
                              includer is configured
    """
    include_path: Optional[str] = None
    root: Union[str, List[str]] = options.root

    if ABSOLUTE_PATH.match(path):
        stripped = path.lstrip("/")
        if isinstance(root, (list, tuple)):
            include_path = paths_resolve(stripped, list(root))
        else:
            include_path = include_resolve(stripped, root, is_dir=True)
    else:
        if options.filename:
            candidate = include_resolve(path, options.filename)
            if os.path.exists(candidate):
                include_path = candidate

        if include_path is None and options.views:
            include_path = path_find(path, list(options.views))

        if include_path is None and options.includer is None:
            raise TemplateIncludeError(
                f'Could not find the include file "{options.escape(path)}"'
            )

    LOG(f"Include '{path}' resolved to {include_path}", level=3)
    return include_path
