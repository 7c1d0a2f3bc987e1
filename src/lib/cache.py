"""
Template cache stores

Compiled templates are cached by filename when a compile asks for it
(Options.cache). The cache is a capability, not a global: anything with
get/set/clear satisfies TemplateCache, and a store can be injected per
call through Options.store or replaced process-wide with store_set().

Entries are never invalidated automatically. A cached template keeps
rendering the text it was compiled from even after its file changes;
call clear() (or embedpy.clear_cache()) to pick up edits.

Concurrent compiles of the same filename may each set() their result;
the later write wins and both results are equivalent, so no locking is
done.
"""

from collections import OrderedDict
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..config import appsettings


@runtime_checkable
class TemplateCache(Protocol):
    """Capability interface of a compiled-template store"""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryCache:
    """Unbounded store; grows for the lifetime of the process"""

    def __init__(self) -> None:
        self.entries: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self.entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self.entries[key] = value

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)


class LRUCache:
    """
    Bounded store evicting the least recently used entry

    Args:
        max_size: Number of entries kept (must be positive)

    Example:
        >>> store = LRUCache(2)
        >>> store.set("a", 1); store.set("b", 2); store.get("a")
        1
        >>> store.set("c", 3)   # evicts "b", the least recently used
        >>> store.get("b") is None
        True
    """

    def __init__(self, max_size: int) -> None:
        if max_size <= 0:
            raise ValueError("LRUCache max_size must be positive")
        self.max_size = max_size
        self.entries: "OrderedDict[str, Any]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        if key not in self.entries:
            return None
        self.entries.move_to_end(key)
        return self.entries[key]

    def set(self, key: str, value: Any) -> None:
        self.entries[key] = value
        self.entries.move_to_end(key)
        while len(self.entries) > self.max_size:
            self.entries.popitem(last=False)

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)


def store_create(max_size: Optional[int] = None) -> TemplateCache:
    """
    Create a store sized from settings

    Args:
        max_size: Entry limit; None reads appsettings.cache_max_size,
                  0 means unbounded

    Returns:
        LRUCache when bounded, MemoryCache otherwise
    """
    if max_size is None:
        max_size = appsettings.cache_max_size
    if max_size:
        return LRUCache(max_size)
    return MemoryCache()


_default_store: TemplateCache = store_create()


def store_get() -> TemplateCache:
    """Return the process-wide default store"""
    return _default_store


def store_set(store: TemplateCache) -> None:
    """Replace the process-wide default store"""
    global _default_store
    _default_store = store
