"""Shared test fixtures for spanned-yaml."""

from __future__ import annotations

import pytest

from spanned_yaml.models.nodes import Node
from spanned_yaml.parser.loader import TrackedLoader


@pytest.fixture
def loader() -> TrackedLoader:
    return TrackedLoader()


@pytest.fixture
def test_doc(loader: TrackedLoader) -> Node:
    """The sample document, loaded as source 0."""
    return loader.load_string(TEST_DOC)


TEST_DOC = """\
hello: world
some: [ value, or, other ]
says: { grow: nothing, or: die }
numbers: [ 1, 2, 3, 500 ]
success: true
failure: False
shouting: TRUE
"""
