"""Schema building and $ref resolution for jsonmask."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Optional
from urllib.parse import unquote

import jsonschema

from .models import (
    AdditionalPolicy,
    AnySchema,
    CompositeKind,
    CompositeSchema,
    EngineConfig,
    MaskNode,
    MaskSchema,
    ReferenceSchema,
    SchemaType,
    TypedSchema,
)
from .exceptions import (
    ExternalRefError,
    InvalidKeywordShapeError,
    SchemaTooDeepError,
    UnresolvedReferenceError,
)

logger = logging.getLogger(__name__)

SHAPE_KEYWORDS = ('type', 'properties', 'items', 'additionalProperties', 'required')

# allOf first so the merged result is built in a stable order
COMPOSITE_KEYWORDS = (
    ('allOf', CompositeKind.ALL_OF),
    ('anyOf', CompositeKind.ANY_OF),
    ('oneOf', CompositeKind.ONE_OF),
)


def format_pointer(tokens: tuple) -> str:
    """Render pointer tokens as a URI fragment, e.g. ('a', 'b/c') -> '#/a/b~1c'."""
    return "#" + "".join(
        "/" + token.replace('~', '~0').replace('/', '~1') for token in tokens
    )


def parse_ref(ref: str) -> tuple:
    """
    Parse a local $ref into JSON pointer tokens.

    Args:
        ref: The reference, e.g. '#/definitions/Node'

    Returns:
        Tuple of unescaped tokens ('definitions', 'Node')
    """
    if ref.startswith('http://') or ref.startswith('https://') or '://' in ref:
        raise ExternalRefError(ref)

    if not ref.startswith('#'):
        raise ExternalRefError(ref)

    fragment = unquote(ref[1:])
    if fragment == '':
        return ()
    if not fragment.startswith('/'):
        raise UnresolvedReferenceError(ref, "only JSON pointer fragments are supported")

    # Handle JSON pointer escaping
    return tuple(
        part.replace('~1', '/').replace('~0', '~')
        for part in fragment[1:].split('/')
    )


class SchemaBuilder:
    """
    Converts a raw JSON Schema document into a MaskSchema.

    Every subschema is registered under its pointer tokens. $ref targets
    are queued and built after the tree that mentions them, so a reference
    back to an ancestor only ever costs a lookup.
    """

    def __init__(self, document: Any, max_depth: int = 128):
        self.document = document
        self.max_depth = max_depth
        self._nodes: dict[tuple, MaskNode] = {}
        self._pending: deque[tuple[tuple, str]] = deque()

    def build(self) -> MaskSchema:
        """
        Build the mask schema.

        Returns:
            MaskSchema with every reachable node indexed by pointer
        """
        if not isinstance(self.document, (dict, bool)):
            raise InvalidKeywordShapeError(
                "schema",
                f"document root must be an object or boolean, got {type(self.document).__name__}"
            )

        self._nodes = {}
        self._pending.clear()
        root = self._build_at((), self.document, depth=0)

        while self._pending:
            tokens, ref = self._pending.popleft()
            if tokens in self._nodes:
                continue
            target = self._lookup(tokens, ref)
            logger.debug("Building $ref target %s", ref)
            self._build_at(tokens, target, depth=0)

        self._check_meta_schema()
        logger.debug("Built mask schema with %d nodes", len(self._nodes))
        return MaskSchema(root, dict(self._nodes))

    def _check_meta_schema(self) -> None:
        """Validate the whole document against its draft meta-schema."""
        validator_class = jsonschema.validators.validator_for(self.document)
        try:
            validator_class.check_schema(self.document)
        except jsonschema.exceptions.SchemaError as e:
            path = format_pointer(tuple(str(part) for part in e.path))
            raise InvalidKeywordShapeError(e.validator, e.message, path) from e

    def _lookup(self, tokens: tuple, ref: str) -> Any:
        """Walk the raw document along pointer tokens."""
        resolved = self.document
        for part in tokens:
            if isinstance(resolved, dict) and part in resolved:
                resolved = resolved[part]
            elif isinstance(resolved, list) and part.isdigit() and int(part) < len(resolved):
                resolved = resolved[int(part)]
            else:
                raise UnresolvedReferenceError(ref, f"path component '{part}' not found")
        return resolved

    def _build_at(self, tokens: tuple, node: Any, depth: int) -> MaskNode:
        existing = self._nodes.get(tokens)
        if existing is not None:
            return existing

        if depth > self.max_depth:
            raise SchemaTooDeepError(self.max_depth, format_pointer(tokens))

        built = self._build_node(tokens, node, depth)
        self._nodes[tokens] = built
        return built

    def _build_node(self, tokens: tuple, node: Any, depth: int) -> MaskNode:
        path = format_pointer(tokens)

        if node is True:
            return AnySchema()
        if node is False:
            # no branch can match, so every value is rejected
            return CompositeSchema(CompositeKind.ANY_OF, ())
        if not isinstance(node, dict):
            raise InvalidKeywordShapeError(
                "schema",
                f"expected an object or boolean, got {type(node).__name__}",
                path
            )

        if '$ref' in node:
            return self._build_reference(node['$ref'], path)

        parts: list[MaskNode] = []
        if any(keyword in node for keyword in SHAPE_KEYWORDS):
            parts.append(self._build_typed(tokens, node, depth))

        for keyword, kind in COMPOSITE_KEYWORDS:
            if keyword in node:
                parts.append(self._build_composite(tokens, keyword, kind, node[keyword], depth))

        if not parts:
            return AnySchema()
        if len(parts) == 1:
            return parts[0]
        return CompositeSchema(CompositeKind.ALL_OF, tuple(parts))

    def _build_reference(self, ref: Any, path: str) -> ReferenceSchema:
        if not isinstance(ref, str):
            raise InvalidKeywordShapeError("$ref", "must be a string", path)

        tokens = parse_ref(ref)
        if tokens not in self._nodes:
            self._pending.append((tokens, ref))
        return ReferenceSchema(ref, tokens)

    def _build_typed(self, tokens: tuple, node: dict, depth: int) -> TypedSchema:
        path = format_pointer(tokens)

        properties = {}
        if 'properties' in node:
            raw_properties = node['properties']
            if not isinstance(raw_properties, dict):
                raise InvalidKeywordShapeError("properties", "must be an object", path)
            for key, child in raw_properties.items():
                if not isinstance(key, str):
                    raise InvalidKeywordShapeError(
                        "properties", f"property names must be strings, got {key!r}", path
                    )
                properties[key] = self._build_at(tokens + ('properties', key), child, depth + 1)

        return TypedSchema(
            declared_types=self._parse_types(node, path),
            properties=properties,
            required=self._parse_required(node, path),
            additional=self._parse_additional(tokens, node, depth),
            items=self._parse_items(tokens, node, depth),
        )

    def _parse_types(self, node: dict, path: str) -> frozenset:
        if 'type' not in node:
            return frozenset()

        raw = node['type']
        names = [raw] if isinstance(raw, str) else raw
        if not isinstance(names, list) or not names:
            raise InvalidKeywordShapeError("type", "must be a string or a non-empty array of strings", path)

        types = set()
        for name in names:
            if not isinstance(name, str):
                raise InvalidKeywordShapeError("type", f"type names must be strings, got {name!r}", path)
            try:
                types.add(SchemaType(name))
            except ValueError:
                raise InvalidKeywordShapeError("type", f"unknown type '{name}'", path)
        return frozenset(types)

    def _parse_required(self, node: dict, path: str) -> frozenset:
        if 'required' not in node:
            return frozenset()

        raw = node['required']
        if not isinstance(raw, list) or not all(isinstance(key, str) for key in raw):
            raise InvalidKeywordShapeError("required", "must be an array of strings", path)
        return frozenset(raw)

    def _parse_additional(self, tokens: tuple, node: dict, depth: int) -> AdditionalPolicy:
        if 'additionalProperties' not in node:
            # a declared property list is a projection; without one the object is open
            if 'properties' in node:
                return AdditionalPolicy.forbid()
            return AdditionalPolicy.allow()

        raw = node['additionalProperties']
        if raw is True:
            return AdditionalPolicy.allow()
        if raw is False:
            return AdditionalPolicy.forbid()
        if isinstance(raw, dict):
            child = self._build_at(tokens + ('additionalProperties',), raw, depth + 1)
            return AdditionalPolicy.typed(child)

        raise InvalidKeywordShapeError(
            "additionalProperties", "must be a boolean or an object", format_pointer(tokens)
        )

    def _parse_items(self, tokens: tuple, node: dict, depth: int) -> Optional[MaskNode]:
        if 'items' not in node:
            return None

        raw = node['items']
        if isinstance(raw, list):
            raise InvalidKeywordShapeError(
                "items", "tuple-form items are not supported", format_pointer(tokens)
            )
        if not isinstance(raw, (dict, bool)):
            raise InvalidKeywordShapeError(
                "items", "must be an object or boolean", format_pointer(tokens)
            )
        return self._build_at(tokens + ('items',), raw, depth + 1)

    def _build_composite(
        self,
        tokens: tuple,
        keyword: str,
        kind: CompositeKind,
        raw: Any,
        depth: int
    ) -> CompositeSchema:
        if not isinstance(raw, list) or not raw:
            raise InvalidKeywordShapeError(keyword, "must be a non-empty array", format_pointer(tokens))

        branches = tuple(
            self._build_at(tokens + (keyword, str(i)), branch, depth + 1)
            for i, branch in enumerate(raw)
        )
        return CompositeSchema(kind, branches)


def build_schema(document: Any, config: Optional[EngineConfig] = None) -> MaskSchema:
    """
    Build a MaskSchema from a parsed JSON Schema document.

    Args:
        document: The schema as plain JSON data
        config: Optional engine configuration (for max_depth)

    Returns:
        The built MaskSchema

    Raises:
        SchemaError: If the document cannot be used as a mask
    """
    config = config or EngineConfig()
    return SchemaBuilder(document, config.max_depth).build()
