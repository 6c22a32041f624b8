"""Type definitions for database operations."""

from typing import Any, TypeAlias

SQLParams: TypeAlias = tuple[Any, ...] | dict[str, Any]
"""SQL parameter types: positional tuple or named dict for query binding."""
