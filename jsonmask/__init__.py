"""
jsonmask - JSON Schema driven masking of JSON payloads

Filters a parsed JSON value down to the fields a JSON Schema "mask"
authorizes, following properties, items, additionalProperties,
oneOf/anyOf/allOf and local $ref pointers.
"""

from .engine import MaskEngine, filter_value, mask, REJECTED
from .schema import SchemaBuilder, build_schema
from .models import (
    EngineConfig,
    LogLevel,
    MaskResult,
    MaskSchema,
    Summary,
    AnySchema,
    TypedSchema,
    CompositeSchema,
    ReferenceSchema,
    AdditionalPolicy,
    AdditionalMode,
    CompositeKind,
    SchemaType,
)
from .exceptions import (
    JsonMaskError,
    SchemaError,
    UnresolvedReferenceError,
    ExternalRefError,
    InvalidKeywordShapeError,
    SchemaTooDeepError,
    SchemaParseError,
    DocumentParseError,
    MaskError,
    MaxDepthExceededError,
)
from .io import (
    parse_document,
    load_document,
    schema_from_str,
    schema_from_file,
    to_string,
)
from .runner import (
    MaskRunner,
    RunReport,
    FileResult,
)

__version__ = "0.2.0"
__all__ = [
    # Engine
    "MaskEngine",
    "EngineConfig",
    "LogLevel",
    "filter_value",
    "mask",
    "REJECTED",
    # Schema
    "SchemaBuilder",
    "build_schema",
    "MaskSchema",
    "AnySchema",
    "TypedSchema",
    "CompositeSchema",
    "ReferenceSchema",
    "AdditionalPolicy",
    "AdditionalMode",
    "CompositeKind",
    "SchemaType",
    # Results
    "MaskResult",
    "Summary",
    # Errors
    "JsonMaskError",
    "SchemaError",
    "UnresolvedReferenceError",
    "ExternalRefError",
    "InvalidKeywordShapeError",
    "SchemaTooDeepError",
    "SchemaParseError",
    "DocumentParseError",
    "MaskError",
    "MaxDepthExceededError",
    # Text and files
    "parse_document",
    "load_document",
    "schema_from_str",
    "schema_from_file",
    "to_string",
    # Runner
    "MaskRunner",
    "RunReport",
    "FileResult",
]
