"""Coverage report adapters and format dispatch."""

from covpush.adapters.registry import get_adapter, load_summary, normalize

__all__ = [
    "get_adapter",
    "load_summary",
    "normalize",
]
