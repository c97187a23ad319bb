"""
Record Flattening

Turns nested API records into single-level mappings with dot-joined keys,
ready for tabular export.

Example:
    >>> flatten_record({"user": {"name": "Alice", "age": 30}})
    {'user.name': 'Alice', 'user.age': 30}
"""

from collections.abc import Mapping
from typing import Any


def flatten_record(record: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten a nested mapping into dot-joined key paths.

    Nested mappings are recursed into; every other value, including lists,
    is kept as-is. When two paths collide the earlier key wins. An empty
    nested mapping contributes no keys.

    Args:
        record: Arbitrarily nested mapping
        prefix: Key path of `record` within its parent (used during recursion)

    Returns:
        Single-level dict in the order keys were encountered
    """
    result: dict[str, Any] = {}

    for key, value in record.items():
        new_key = f"{prefix}.{key}" if prefix else str(key)

        if isinstance(value, Mapping):
            for sub_key, sub_value in flatten_record(value, new_key).items():
                result.setdefault(sub_key, sub_value)
        else:
            result.setdefault(new_key, value)

    return result
