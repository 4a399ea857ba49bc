"""Data models for jsonmask."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import yaml


# stack frames the builder and engine use per level of max_depth
FRAMES_PER_LEVEL = 4


def max_supported_depth() -> int:
    """Largest max_depth the interpreter recursion limit leaves room for."""
    return (sys.getrecursionlimit() - 200) // FRAMES_PER_LEVEL


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class SchemaType(Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"


class CompositeKind(Enum):
    ONE_OF = "oneOf"
    ANY_OF = "anyOf"
    ALL_OF = "allOf"


class AdditionalMode(Enum):
    FORBID = "forbid"
    ALLOW = "allow"
    ALLOW_TYPED = "allow_typed"


@dataclass
class EngineConfig:
    """Configuration shared by the schema builder and the mask engine."""
    max_depth: int = 128
    strict_one_of: bool = False
    log_level: LogLevel = LogLevel.INFO

    def __post_init__(self):
        if isinstance(self.log_level, str):
            self.log_level = LogLevel(self.log_level.upper())
        if not isinstance(self.log_level, LogLevel):
            raise ValueError(f"log_level must be a level name, got {self.log_level!r}")
        if not isinstance(self.strict_one_of, bool):
            raise ValueError(f"strict_one_of must be a boolean, got {self.strict_one_of!r}")
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise ValueError(f"max_depth must be an integer, got {self.max_depth!r}")
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.max_depth > max_supported_depth():
            raise ValueError(
                f"max_depth {self.max_depth} exceeds the supported maximum ({max_supported_depth()}) "
                f"for the interpreter recursion limit"
            )

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> EngineConfig:
        """
        Build a config from a mapping, e.g. a parsed YAML file.

        Raises:
            ValueError: On unknown keys or invalid values
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("Engine config must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown engine config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> EngineConfig:
        """Load a config from a YAML or JSON file."""
        with open(path, 'r') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Failed to parse config file: {e}")
        return cls.from_dict(data)


@dataclass(frozen=True)
class AnySchema:
    """Unconstrained node: the value passes through unchanged."""


@dataclass(frozen=True)
class AdditionalPolicy:
    """Rule for object keys not named in `properties`."""
    mode: AdditionalMode = AdditionalMode.ALLOW
    schema: Optional[MaskNode] = None

    @classmethod
    def forbid(cls) -> AdditionalPolicy:
        return cls(AdditionalMode.FORBID)

    @classmethod
    def allow(cls) -> AdditionalPolicy:
        return cls(AdditionalMode.ALLOW)

    @classmethod
    def typed(cls, schema: MaskNode) -> AdditionalPolicy:
        return cls(AdditionalMode.ALLOW_TYPED, schema)


@dataclass(frozen=True)
class TypedSchema:
    """Shape node built from type/properties/items/additionalProperties/required."""
    declared_types: frozenset = frozenset()
    properties: dict = field(default_factory=dict)
    required: frozenset = frozenset()
    additional: AdditionalPolicy = field(default_factory=AdditionalPolicy)
    items: Optional[MaskNode] = None


@dataclass(frozen=True)
class CompositeSchema:
    """oneOf/anyOf/allOf node."""
    kind: CompositeKind
    branches: tuple = ()


@dataclass(frozen=True)
class ReferenceSchema:
    """Local $ref, resolved against the schema arena at filter time."""
    pointer: str
    tokens: tuple = ()


MaskNode = Union[AnySchema, TypedSchema, CompositeSchema, ReferenceSchema]


class MaskSchema:
    """
    A built mask schema.

    Holds the root node and an index from JSON pointer tokens to built
    nodes. References are looked up in the index instead of being inlined,
    so self-referencing schemas stay finite.
    """

    def __init__(self, root: MaskNode, nodes: dict[tuple, MaskNode]):
        self.root = root
        self._nodes = nodes

    def resolve(self, reference: ReferenceSchema) -> MaskNode:
        return self._nodes[reference.tokens]


@dataclass
class Summary:
    """Field counts for a masking run."""
    fields_in_input: int = 0
    fields_retained: int = 0
    fields_dropped: int = 0

    def to_dict(self) -> dict:
        return {
            "fields_in_input": self.fields_in_input,
            "fields_retained": self.fields_retained,
            "fields_dropped": self.fields_dropped,
        }


@dataclass
class MaskResult:
    """
    Outcome of filtering a value.

    `matched` is False when the schema rejects the whole value; `value` is
    then None and must not be read as a JSON null.
    """
    matched: bool
    value: Any = None
    summary: Summary = field(default_factory=Summary)

    def __bool__(self) -> bool:
        return self.matched

    def to_dict(self) -> dict:
        result = {
            "matched": self.matched,
            "summary": self.summary.to_dict(),
        }
        if self.matched:
            result["value"] = self.value
        return result
