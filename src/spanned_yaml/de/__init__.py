"""Decoding protocol, node-aware decoders and type plans."""

from spanned_yaml.de.node import NodeDecoder, kind_decoder
from spanned_yaml.de.path import Path, PathTrackingDecoder
from spanned_yaml.de.protocol import END, Decoder, FloatWidth, IntWidth, MapAccess, SeqAccess, Visitor
from spanned_yaml.de.typed import plan_for

__all__ = [
    "END",
    "Decoder",
    "FloatWidth",
    "IntWidth",
    "MapAccess",
    "NodeDecoder",
    "Path",
    "PathTrackingDecoder",
    "SeqAccess",
    "Visitor",
    "kind_decoder",
    "plan_for",
]
