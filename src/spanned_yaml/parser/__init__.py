"""YAML loading with line fidelity for spanned-yaml."""

from spanned_yaml.parser.loader import (
    DuplicateKeyError,
    LoadError,
    MappingKeyMustBeScalar,
    ScanError,
    TopLevelMustBeMapping,
    TrackedLoader,
    YAMLSafetyError,
    parse_yaml,
)

__all__ = [
    "DuplicateKeyError",
    "LoadError",
    "MappingKeyMustBeScalar",
    "ScanError",
    "TopLevelMustBeMapping",
    "TrackedLoader",
    "YAMLSafetyError",
    "parse_yaml",
]
