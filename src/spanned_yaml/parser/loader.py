"""YAML loader producing a position-tracked node tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml import nodes as yaml_nodes
from ruamel.yaml.error import MarkedYAMLError, YAMLError

from spanned_yaml.models.nodes import MappingNode, Node, ScalarNode, SequenceNode
from spanned_yaml.models.span import Marker, Span
from spanned_yaml.settings import Settings

logger = logging.getLogger("spanned_yaml.loader")


class YAMLSafetyError(Exception):
    """Raised when YAML input violates safety constraints.

    Distinct from load errors: these indicate potentially malicious input
    such as billion-laughs anchors or oversized documents.
    """


class LoadError(Exception):
    """The YAML text cannot be turned into a node tree."""

    def __init__(self, message: str, marker: Marker | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.marker = marker

    def __str__(self) -> str:
        if self.marker is None:
            return self.message
        return f"{self.message} (line {self.marker.line}, column {self.marker.column})"


class ScanError(LoadError):
    """ruamel.yaml could not scan or parse the text."""


class MappingKeyMustBeScalar(LoadError):
    pass


class DuplicateKeyError(LoadError):
    pass


class TopLevelMustBeMapping(LoadError):
    pass


class TrackedLoader:
    """YAML loader that keeps the source position of every node.

    Uses ruamel.yaml's composer, which records a start and end mark on every
    node. Scalars keep only their start; mappings and sequences keep both.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        error_on_duplicate_keys: bool | None = None,
        toplevel_is_mapping: bool | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._yaml = YAML()
        self._error_on_duplicate_keys = (
            self._settings.error_on_duplicate_keys
            if error_on_duplicate_keys is None
            else error_on_duplicate_keys
        )
        self._toplevel_is_mapping = (
            self._settings.toplevel_is_mapping if toplevel_is_mapping is None else toplevel_is_mapping
        )

    # -- safety checks -------------------------------------------------------

    def _check_document_size(self, content: str) -> None:
        limit = self._settings.max_document_size
        if len(content) > limit:
            raise YAMLSafetyError(
                f"YAML document exceeds maximum size ({len(content):,} chars > {limit:,} limit)"
            )

    # -- public loading API --------------------------------------------------

    def load(self, path: Path, source: int = 0) -> Node:
        """Load a YAML file into a node tree tagged with *source*."""
        with path.open("r", encoding="utf-8") as handle:
            content = handle.read()
        return self.load_string(content, source)

    def load_string(self, content: str, source: int = 0) -> Node:
        """Load YAML from a string. An empty document is an empty mapping."""
        self._check_document_size(content)
        try:
            raw = self._yaml.compose(content)
        except MarkedYAMLError as exc:
            raise ScanError(_problem_text(exc), _marker(source, exc.problem_mark)) from exc
        except YAMLError as exc:
            raise ScanError(str(exc)) from exc
        if raw is None:
            return MappingNode()
        converter = _Converter(
            source,
            max_nodes=self._settings.max_node_count,
            max_depth=self._settings.max_depth,
            error_on_duplicate_keys=self._error_on_duplicate_keys,
        )
        node = converter.convert(raw, depth=1)
        if self._toplevel_is_mapping and not isinstance(node, MappingNode):
            raise TopLevelMustBeMapping("top level of the document must be a mapping", node.span.start)
        logger.debug("loaded source %d: %d nodes", source, converter.count)
        return node


def parse_yaml(source: int, content: str) -> Node:
    """Parse *content* with a default ``TrackedLoader``."""
    return TrackedLoader().load_string(content, source)


class _Converter:
    def __init__(self, source: int, *, max_nodes: int, max_depth: int, error_on_duplicate_keys: bool) -> None:
        self.source = source
        self.max_nodes = max_nodes
        self.max_depth = max_depth
        self.error_on_duplicate_keys = error_on_duplicate_keys
        self.count = 0
        self._seen: set[int] = set()

    def _visit(self, raw: yaml_nodes.Node, depth: int) -> None:
        if getattr(raw, "anchor", None) is not None or id(raw) in self._seen:
            raise YAMLSafetyError("YAML anchors/aliases are not supported")
        self._seen.add(id(raw))
        self.count += 1
        if self.count > self.max_nodes:
            raise YAMLSafetyError(f"YAML document exceeds maximum node count ({self.max_nodes:,})")
        if depth > self.max_depth:
            raise YAMLSafetyError(f"YAML document exceeds maximum nesting depth ({self.max_depth})")

    def convert(self, raw: yaml_nodes.Node, depth: int) -> Node:
        self._visit(raw, depth)
        start = _marker(self.source, raw.start_mark)
        if isinstance(raw, yaml_nodes.MappingNode):
            span = Span(start=start, end=_marker(self.source, raw.end_mark))
            return MappingNode(tuple(self._entries(raw, depth)), span)
        if isinstance(raw, yaml_nodes.SequenceNode):
            span = Span(start=start, end=_marker(self.source, raw.end_mark))
            items = tuple(self.convert(item, depth + 1) for item in raw.value)
            return SequenceNode(items, span)
        return ScalarNode(str(raw.value), Span(start=start))

    def _entries(self, raw: yaml_nodes.MappingNode, depth: int) -> list[tuple[ScalarNode, Node]]:
        entries: list[tuple[ScalarNode, Node]] = []
        seen_keys: set[str] = set()
        for raw_key, raw_value in raw.value:
            if not isinstance(raw_key, yaml_nodes.ScalarNode):
                raise MappingKeyMustBeScalar(
                    "mapping keys must be scalars", _marker(self.source, raw_key.start_mark)
                )
            key = self.convert(raw_key, depth + 1)
            assert isinstance(key, ScalarNode)
            if self.error_on_duplicate_keys and key.value in seen_keys:
                raise DuplicateKeyError(f"duplicate mapping key `{key.value}`", key.span.start)
            seen_keys.add(key.value)
            entries.append((key, self.convert(raw_value, depth + 1)))
        return entries


def _marker(source: int, mark: Any) -> Marker | None:
    if mark is None:
        return None
    # ruamel.yaml marks are 0-based
    return Marker(source=source, line=mark.line + 1, column=mark.column + 1)


def _problem_text(exc: MarkedYAMLError) -> str:
    return exc.problem or exc.context or str(exc)
