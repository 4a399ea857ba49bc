"""Text and file wrappers around the mask engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .models import EngineConfig, MaskResult, MaskSchema
from .schema import build_schema
from .exceptions import DocumentParseError, SchemaParseError
from .utils import build_path

JSON_SCALARS = (str, int, float, bool)


def parse_document(text: str) -> Any:
    """
    Parse JSON or YAML text into plain data.

    JSON is tried first so numbers keep their JSON meaning; YAML is the
    fallback for hand-written schema files.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, 'problem_mark', None)
        raise DocumentParseError(
            "Failed to parse document",
            line=mark.line + 1 if mark else None,
            column=mark.column + 1 if mark else None,
            reason=getattr(e, 'problem', None) or str(e)
        )

    check_json_types(data)
    return data


def check_json_types(data: Any) -> None:
    """
    Reject YAML-only values (dates, sets, binary, non-string keys).

    Raises:
        DocumentParseError: Naming the JSONPath of the first offending value
    """
    stack = [(data, "$")]
    while stack:
        value, path = stack.pop()
        if isinstance(value, dict):
            for key, item in value.items():
                if not isinstance(key, str):
                    raise DocumentParseError(
                        "Unsupported document content",
                        reason=f"object key {key!r} at {path} is not a string"
                    )
                stack.append((item, build_path(path, key)))
        elif isinstance(value, list):
            stack.extend((item, build_path(path, index)) for index, item in enumerate(value))
        elif value is not None and not isinstance(value, JSON_SCALARS):
            raise DocumentParseError(
                "Unsupported document content",
                reason=f"{type(value).__name__} value at {path} is not JSON"
            )


def load_document(path: Union[str, Path]) -> Any:
    """Load a JSON or YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        return parse_document(f.read())


def schema_from_str(text: str, config: Optional[EngineConfig] = None) -> MaskSchema:
    """Parse schema text and build a MaskSchema from it."""
    try:
        document = parse_document(text)
    except DocumentParseError as e:
        raise SchemaParseError(
            f"Failed to parse schema: {e.reason}",
            line=e.line,
            column=e.column,
            reason=e.reason
        )
    return build_schema(document, config)


def schema_from_file(path: Union[str, Path], config: Optional[EngineConfig] = None) -> MaskSchema:
    """Load a schema file and build a MaskSchema from it."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        return schema_from_str(f.read(), config)


def to_string(result: Union[MaskResult, Any], pretty: bool = False) -> str:
    """
    Serialize a masked value to JSON text.

    Args:
        result: A MaskResult or an already unwrapped value
        pretty: Indent with two spaces instead of compact output

    Raises:
        ValueError: If the result was rejected and holds no value
    """
    if isinstance(result, MaskResult):
        if not result.matched:
            raise ValueError("Cannot serialize a rejected mask result")
        result = result.value

    if pretty:
        return json.dumps(result, indent=2, ensure_ascii=False)
    return json.dumps(result, separators=(',', ':'), ensure_ascii=False)
