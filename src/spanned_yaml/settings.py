"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Loader limits and logging for spanned-yaml.

    Values are read from ``SPANNED_YAML_*`` environment variables and from a
    ``.env`` file in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPANNED_YAML_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # Loader safety limits
    max_document_size: int = 5_000_000  # characters
    max_node_count: int = 50_000
    max_depth: int = 64

    # Loader behaviour
    error_on_duplicate_keys: bool = True
    toplevel_is_mapping: bool = False


def configure_logging(settings: Settings | None = None) -> None:
    """Apply ``log_level`` to the ``spanned_yaml`` logger hierarchy."""
    settings = settings or Settings()
    logging.getLogger("spanned_yaml").setLevel(settings.log_level.upper())
