"""
Default escape function for escaped-output tags
"""

import html
from typing import Any


def escape_xml(markup: Any = None) -> str:
    """
    Escape a value using HTML/XML entity rules.

    The value is stringified first, so numbers (including 0) render
    normally. None renders as the empty string.

    Example:
        >>> escape_xml("<a href='x'>&</a>")
        '&lt;a href=&#x27;x&#x27;&gt;&amp;&lt;/a&gt;'
        >>> escape_xml(None)
        ''
        >>> escape_xml(0)
        '0'
    """
    if markup is None:
        return ""
    return html.escape(str(markup), quote=True)
