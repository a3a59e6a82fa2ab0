"""
YAML config file loading for mailsync.

One file is read per run: the path named by ``MAILSYNC_CONFIG`` or, when
that is unset, ``.mailsync/config.yml`` under the working directory.
String values may reference the environment as ``${VAR}`` or
``${VAR:-default}``.

Usage:
    from mailsync.config_loader import read_config_file

    raw = read_config_file()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MAILSYNC_CONFIG"

# ${NAME} or ${NAME:-fallback}
_REFERENCE = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<fallback>.*?))?\}")

_STARTER_CONFIG = """\
# mailsync configuration
#
# IMAP connection settings can also be set via environment variables:
#   MAILSYNC_HOST, MAILSYNC_USERNAME, MAILSYNC_PASSWORD, MAILSYNC_PORT,
#   MAILSYNC_SSL
#
# imap:
#   host: imap.example.com
#   username: alice
#   password: ${IMAP_PASSWORD}
#   ssl: true
#
# Sync profiles pair one IMAP folder with one Maildir:
#
# sync:
#   inbox:
#     folder: INBOX
#     maildir: ~/Mail/INBOX
#     state_dir: .mailsync
#
# logging:
#   level: INFO
#   file: null
"""


def config_path() -> Path:
    """Return where the config file is expected to live."""
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit).expanduser()
    return Path.cwd() / ".mailsync" / "config.yml"


def expand_env(value: Any) -> Any:
    """Substitute environment references in every string of *value*.

    ``${VAR}`` becomes the variable's value or ``""``; ``${VAR:-x}``
    becomes ``x`` when VAR is unset or empty.  Dicts and lists are
    walked, other scalars are returned unchanged.
    """
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if not isinstance(value, str):
        return value
    return _REFERENCE.sub(
        lambda m: os.environ.get(m["name"]) or m["fallback"] or "", value
    )


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    """Read the config file and expand environment references.

    Args:
        path: File to read.  Defaults to ``config_path()``.

    Returns:
        The parsed mapping, or ``{}`` when the default location holds no
        file or the file is empty.

    Raises:
        FileNotFoundError: If ``MAILSYNC_CONFIG`` names a missing file.
        ValueError: If the document is not a mapping.
        yaml.YAMLError: If the file is not valid YAML.
    """
    path = path or config_path()
    if not path.exists():
        if os.environ.get(CONFIG_ENV_VAR):
            raise FileNotFoundError(
                f"{CONFIG_ENV_VAR} points to a missing file: {path}"
            )
        logger.debug("No config file at %s, using defaults", path)
        return {}

    logger.debug("Loading config: %s", path)
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"config file {path} must hold a mapping, "
            f"not {type(data).__name__}"
        )
    return expand_env(data)


def ensure_config(target: Path | None = None) -> Path:
    """Write a starter config file unless one is already in place.

    Args:
        target: File to create.  Defaults to ``config_path()``.

    Returns:
        Path of the existing or newly written file.
    """
    target = target or config_path()
    if target.exists():
        logger.debug("Config file already exists: %s", target)
        return target

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", target)
    return target
