"""Utility functions for jsonmask."""

from __future__ import annotations

import re
from typing import Any

from .models import SchemaType


def is_numeric(value: Any) -> bool:
    """Check if a value is numeric (int or float)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_integral(value: Any) -> bool:
    """Check if a value is a JSON integer (1 and 1.0 both count)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def get_type_name(value: Any) -> str:
    """Get a friendly type name for a value."""
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, int):
        return "integer"
    elif isinstance(value, float):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, list):
        return "array"
    elif isinstance(value, dict):
        return "object"
    else:
        return type(value).__name__


def matches_type(value: Any, schema_type: SchemaType) -> bool:
    """Check whether a value is an instance of a JSON Schema type."""
    if schema_type is SchemaType.OBJECT:
        return isinstance(value, dict)
    elif schema_type is SchemaType.ARRAY:
        return isinstance(value, list)
    elif schema_type is SchemaType.STRING:
        return isinstance(value, str)
    elif schema_type is SchemaType.NUMBER:
        return is_numeric(value)
    elif schema_type is SchemaType.INTEGER:
        return is_integral(value)
    elif schema_type is SchemaType.BOOLEAN:
        return isinstance(value, bool)
    elif schema_type is SchemaType.NULL:
        return value is None
    return False


def build_path(parent_path: str, key: str | int) -> str:
    """Build a JSONPath from parent path and key."""
    if isinstance(key, int):
        return f"{parent_path}[{key}]"
    else:
        # Handle special characters in key names
        if re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', str(key)):
            return f"{parent_path}.{key}"
        else:
            return f"{parent_path}['{key}']"


def count_fields(data: Any) -> int:
    """Count object keys and scalar array elements in a value."""
    count = 0
    stack = [data]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            count += len(current)
            stack.extend(current.values())
        elif isinstance(current, list):
            for item in current:
                if isinstance(item, (dict, list)):
                    stack.append(item)
                else:
                    count += 1
    return count
