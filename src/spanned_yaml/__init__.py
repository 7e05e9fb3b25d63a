"""spanned-yaml: decode YAML node trees into typed values that remember where they came from."""

from spanned_yaml.api import from_node
from spanned_yaml.de.path import MapSegment, Path, SeqSegment, UnknownSegment
from spanned_yaml.de.protocol import END, Decoder, FloatWidth, IntWidth, MapAccess, SeqAccess, Visitor
from spanned_yaml.de.typed import (
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    I128,
    U8,
    U16,
    U32,
    U64,
    U128,
    deny_unknown_fields,
)
from spanned_yaml.errors import (
    DecodeError,
    FloatParseFailure,
    IntegerParseFailure,
    NotBoolean,
    OtherError,
    PathDecodeError,
    UnknownFieldError,
)
from spanned_yaml.models import Diagnostic, MappingNode, Marker, Node, ScalarNode, SequenceNode, Span
from spanned_yaml.parser import LoadError, TrackedLoader, YAMLSafetyError, parse_yaml
from spanned_yaml.ser import to_plain
from spanned_yaml.settings import Settings, configure_logging
from spanned_yaml.spanned import Spanned

__version__ = "0.1.0"

__all__ = [
    "END",
    "F32",
    "F64",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "U8",
    "U16",
    "U32",
    "U64",
    "U128",
    "DecodeError",
    "Decoder",
    "Diagnostic",
    "FloatParseFailure",
    "FloatWidth",
    "IntWidth",
    "IntegerParseFailure",
    "LoadError",
    "MapAccess",
    "MapSegment",
    "MappingNode",
    "Marker",
    "Node",
    "NotBoolean",
    "OtherError",
    "Path",
    "PathDecodeError",
    "ScalarNode",
    "SeqAccess",
    "SeqSegment",
    "SequenceNode",
    "Settings",
    "Span",
    "Spanned",
    "TrackedLoader",
    "UnknownFieldError",
    "UnknownSegment",
    "Visitor",
    "YAMLSafetyError",
    "configure_logging",
    "deny_unknown_fields",
    "from_node",
    "parse_yaml",
    "to_plain",
]
