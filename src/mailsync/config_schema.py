"""Unified configuration schema for mailsync.

Defines Pydantic models for the config file with dedicated sections for
the IMAP connection, named sync profiles, and logging.

Usage:
    from mailsync.config_schema import UnifiedConfig, build_config

    raw = read_config_file()
    unified = build_config(raw)
    profile = unified.get_profile("inbox")
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ImapConfig(BaseModel):
    """IMAP server connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    host: str | None = Field(default=None, description="IMAP server host")
    port: int | None = Field(
        default=None, ge=1, le=65535, description="IMAP server port"
    )
    username: str | None = Field(default=None, description="IMAP username")
    password: str | None = Field(default=None, description="IMAP password")
    ssl: bool = Field(default=True, description="Use implicit TLS")
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Socket timeout in seconds",
    )

    model_config = {"frozen": True}


class SyncProfileConfig(BaseModel):
    """One IMAP folder paired with one local Maildir.

    Attributes:
        folder: IMAP folder to compare.
        maildir: Path of the local Maildir (contains ``cur/`` and ``new/``).
        state_dir: Directory holding the baseline snapshot files.
        info_separator: Character separating the unique name from the
            info part in Maildir file names.
    """

    folder: str = Field(default="INBOX", min_length=1)
    maildir: str
    state_dir: str = ".mailsync"
    info_separator: str = ":"

    model_config = {"frozen": True}

    @field_validator("info_separator")
    @classmethod
    def _single_char(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("info_separator must be a single character")
        return value


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.  Profiles are keyed by name.
    """

    imap: ImapConfig = Field(default_factory=ImapConfig)
    sync: dict[str, SyncProfileConfig] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    def get_profile(self, name: str) -> SyncProfileConfig:
        """Return the profile called *name*.

        Raises:
            ValueError: If no such profile is configured.
        """
        try:
            return self.sync[name]
        except KeyError:
            raise ValueError(
                f"Unknown sync profile '{name}'. "
                f"Configured profiles: {sorted(self.sync)}"
            ) from None


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``read_config_file()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Parsed configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)
