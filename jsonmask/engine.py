"""Mask engine: recursive shape-directed filtering of JSON values."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .models import (
    AdditionalMode,
    AnySchema,
    CompositeKind,
    CompositeSchema,
    EngineConfig,
    MaskNode,
    MaskResult,
    MaskSchema,
    ReferenceSchema,
    Summary,
    TypedSchema,
)
from .schema import build_schema
from .exceptions import MaxDepthExceededError
from .utils import build_path, count_fields, get_type_name, matches_type

logger = logging.getLogger(__name__)


class _Rejected:
    """Marker for a subtree of which nothing survives."""

    def __repr__(self) -> str:
        return "REJECTED"


REJECTED = _Rejected()


class MaskEngine:
    """
    Applies a MaskSchema to JSON values.

    The engine never mutates its inputs: containers in the output are new
    objects, scalars are shared with the input.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (uses defaults if not provided)
        """
        self.config = config or EngineConfig()

    def filter(self, schema: MaskSchema, value: Any) -> MaskResult:
        """
        Filter a value through a built schema.

        Args:
            schema: The built mask schema
            value: Parsed JSON data

        Returns:
            MaskResult; `matched` is False when the whole value is rejected

        Raises:
            MaxDepthExceededError: If recursion passes config.max_depth
        """
        filtered = self._filter(schema, schema.root, value, "$", 0)

        fields_in_input = count_fields(value)
        if filtered is REJECTED:
            logger.debug("Value rejected at root")
            return MaskResult(
                matched=False,
                summary=Summary(fields_in_input, 0, fields_in_input),
            )

        fields_retained = count_fields(filtered)
        return MaskResult(
            matched=True,
            value=filtered,
            summary=Summary(fields_in_input, fields_retained, fields_in_input - fields_retained),
        )

    def mask(self, schema_document: Any, value: Any) -> MaskResult:
        """Build a schema from a raw document and filter a single value with it."""
        return self.filter(build_schema(schema_document, self.config), value)

    def _filter(self, schema: MaskSchema, node: MaskNode, value: Any, path: str, depth: int) -> Any:
        if depth > self.config.max_depth:
            raise MaxDepthExceededError(self.config.max_depth, path)

        if isinstance(node, AnySchema):
            return self._copy(value, path, depth)

        if isinstance(node, ReferenceSchema):
            logger.debug("Resolving %s at %s", node.pointer, path)
            return self._filter(schema, schema.resolve(node), value, path, depth + 1)

        if isinstance(node, TypedSchema):
            return self._filter_typed(schema, node, value, path, depth)

        if isinstance(node, CompositeSchema):
            if node.kind is CompositeKind.ALL_OF:
                return self._filter_all_of(schema, node, value, path, depth)
            if node.kind is CompositeKind.ONE_OF and self.config.strict_one_of:
                return self._filter_exactly_one(schema, node, value, path, depth)
            return self._filter_first_match(schema, node, value, path, depth)

        raise TypeError(f"Unknown mask node: {type(node).__name__}")

    def _filter_typed(self, schema: MaskSchema, node: TypedSchema, value: Any, path: str, depth: int) -> Any:
        if node.declared_types and not any(matches_type(value, t) for t in node.declared_types):
            logger.debug(
                "Type mismatch at %s: expected %s, got %s",
                path,
                "/".join(sorted(t.value for t in node.declared_types)),
                get_type_name(value)
            )
            return REJECTED

        if isinstance(value, dict):
            return self._filter_object(schema, node, value, path, depth)

        if isinstance(value, list):
            if node.items is None:
                return self._copy(value, path, depth)
            result = []
            for i, item in enumerate(value):
                filtered = self._filter(schema, node.items, item, build_path(path, i), depth + 1)
                if filtered is not REJECTED:
                    result.append(filtered)
            return result

        # scalars cannot be partially masked
        return value

    def _filter_object(self, schema: MaskSchema, node: TypedSchema, value: dict, path: str, depth: int) -> dict:
        result = {}
        additional = node.additional

        for key, item in value.items():
            child_path = build_path(path, key)

            if key in node.properties:
                filtered = self._filter(schema, node.properties[key], item, child_path, depth + 1)
            elif additional.mode is AdditionalMode.FORBID:
                continue
            elif additional.mode is AdditionalMode.ALLOW:
                filtered = self._copy(item, child_path, depth + 1)
            else:
                filtered = self._filter(schema, additional.schema, item, child_path, depth + 1)

            if filtered is not REJECTED:
                result[key] = filtered

        return result

    def _filter_first_match(self, schema: MaskSchema, node: CompositeSchema, value: Any, path: str, depth: int) -> Any:
        for i, branch in enumerate(node.branches):
            if self._missing_required(schema, branch, value, path, depth):
                continue
            filtered = self._filter(schema, branch, value, path, depth + 1)
            if filtered is not REJECTED:
                logger.debug("%s branch %d selected at %s", node.kind.value, i, path)
                return filtered

        logger.debug("No %s branch matched at %s", node.kind.value, path)
        return REJECTED

    def _filter_exactly_one(self, schema: MaskSchema, node: CompositeSchema, value: Any, path: str, depth: int) -> Any:
        matches = []
        for branch in node.branches:
            if self._missing_required(schema, branch, value, path, depth):
                continue
            filtered = self._filter(schema, branch, value, path, depth + 1)
            if filtered is not REJECTED:
                matches.append(filtered)

        if len(matches) != 1:
            logger.debug("oneOf at %s matched %d branches", path, len(matches))
            return REJECTED
        return matches[0]

    def _filter_all_of(self, schema: MaskSchema, node: CompositeSchema, value: Any, path: str, depth: int) -> Any:
        merged = REJECTED
        for branch in node.branches:
            filtered = self._filter(schema, branch, value, path, depth + 1)
            if filtered is REJECTED:
                continue
            if merged is REJECTED:
                merged = filtered
            else:
                merged = merge_projections(merged, filtered, value)
        return merged

    def _missing_required(self, schema: MaskSchema, branch: MaskNode, value: Any, path: str, depth: int) -> bool:
        """Cheap pre-check: does an object value lack keys the branch requires?"""
        if not isinstance(value, dict):
            return False

        # follow reference chains; each hop counts toward the depth limit
        while isinstance(branch, ReferenceSchema):
            depth += 1
            if depth > self.config.max_depth:
                raise MaxDepthExceededError(self.config.max_depth, path)
            branch = schema.resolve(branch)

        if isinstance(branch, TypedSchema):
            return any(key not in value for key in branch.required)
        return False

    def _copy(self, value: Any, path: str, depth: int) -> Any:
        """
        Copy a passed-through value so the output never aliases the input.

        Iterative, but nesting still counts toward max_depth.
        """
        if not isinstance(value, (dict, list)):
            return value

        root = {} if isinstance(value, dict) else []
        stack = [(value, root, path, depth)]
        while stack:
            source, target, current_path, level = stack.pop()
            if level > self.config.max_depth:
                raise MaxDepthExceededError(self.config.max_depth, current_path)

            entries = source.items() if isinstance(source, dict) else enumerate(source)
            for key, item in entries:
                if isinstance(item, dict):
                    child = {}
                elif isinstance(item, list):
                    child = []
                else:
                    child = item

                if isinstance(target, dict):
                    target[key] = child
                else:
                    target.append(child)

                if isinstance(item, (dict, list)):
                    stack.append((item, child, build_path(current_path, key), level + 1))
        return root


def merge_projections(base: Any, overlay: Any, source: Any) -> Any:
    """
    Merge two filtered views of the same source value.

    Objects are unioned, overlay winning on key conflicts, and re-ordered
    to follow the source's key order. Anything else: overlay wins.
    """
    if not (isinstance(base, dict) and isinstance(overlay, dict) and isinstance(source, dict)):
        return overlay

    result = {}
    for key in source:
        if key in overlay:
            result[key] = overlay[key]
        elif key in base:
            result[key] = base[key]
    return result


def filter_value(schema: MaskSchema, value: Any, config: Optional[EngineConfig] = None) -> MaskResult:
    """
    Convenience function to filter a value through a built schema.

    Args:
        schema: The built mask schema
        value: Parsed JSON data
        config: Optional engine configuration

    Returns:
        MaskResult
    """
    return MaskEngine(config).filter(schema, value)


def mask(schema_document: Any, value: Any, config: Optional[EngineConfig] = None) -> MaskResult:
    """
    Convenience function to build a schema and mask a value in one call.

    Args:
        schema_document: The JSON Schema as plain JSON data
        value: Parsed JSON data
        config: Optional engine configuration

    Returns:
        MaskResult
    """
    return MaskEngine(config).mask(schema_document, value)
