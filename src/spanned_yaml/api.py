"""Decode a node tree into typed Python values."""

from __future__ import annotations

import logging
from typing import Any

from spanned_yaml.de.backfill import backfill
from spanned_yaml.de.node import NodeDecoder
from spanned_yaml.de.path import ROOT, Path, PathTrackingDecoder, Track
from spanned_yaml.de.typed import plan_for
from spanned_yaml.errors import DecodeError, PathDecodeError
from spanned_yaml.models.nodes import Node

logger = logging.getLogger("spanned_yaml.decode")


def from_node(node: Node, tp: Any, *, track_path: bool = False) -> Any:
    """Decode *node* into a value of type *tp*.

    Any ``Spanned`` part of *tp* receives the span of the node it was decoded
    from::

        @dataclass
        class Greeting:
            hello: Spanned[str]

        greets = from_node(parse_yaml(0, "hello: world\\n"), Greeting)
        greets.hello.span.start.column  # 8

    Failures raise a ``DecodeError``. With ``track_path=True`` they raise a
    ``PathDecodeError`` instead, which also records where in the document the
    failure happened; errors that were raised without a location get the
    span of the closest node along that path.
    """
    plan = plan_for(tp)
    if not track_path:
        return plan.decode(NodeDecoder(node))

    track = Track()
    try:
        return plan.decode(PathTrackingDecoder(NodeDecoder(node), ROOT, track))
    except DecodeError as exc:
        path = track.path if track.path is not None else Path()
        if exc.start_mark is None:
            backfill(node, path, exc)
            logger.debug("backfilled %s at %s to %s", exc.code, path, exc.span.start)
        raise PathDecodeError(path, exc) from exc
