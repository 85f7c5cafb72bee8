"""Calendar source aggregation."""

from .exceptions import SourceConnectionError, SourceError
from .manager import SourceManager

__all__ = [
    "SourceConnectionError",
    "SourceError",
    "SourceManager",
]
