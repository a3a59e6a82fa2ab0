"""IMAP connection configuration.

Reads connection settings from CLI args, environment variables, .env
files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    MAILSYNC_HOST: IMAP server host (required)
    MAILSYNC_USERNAME: IMAP username (required)
    MAILSYNC_PASSWORD: IMAP password (required)
    MAILSYNC_PORT: IMAP port (optional, default: 993 with SSL, 143 without)
    MAILSYNC_SSL: Use implicit TLS (optional, default: true)
    MAILSYNC_TIMEOUT: Socket timeout in seconds (optional, default: 30)
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

IMAP_PORT = 143
IMAPS_PORT = 993


@dataclass
class Config:
    host: str
    username: str
    password: str
    port: int = IMAPS_PORT
    ssl: bool = True
    timeout: float = 30.0


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the host is malformed, the port is out of range,
            or credentials are empty.
    """
    config.host = config.host.strip()

    if not config.host or "/" in config.host or " " in config.host:
        raise ValueError(
            f"Invalid IMAP host '{config.host}': expected a bare host name"
        )

    if not (1 <= config.port <= 65535):
        raise ValueError(
            f"Invalid IMAP port {config.port}: must be between 1 and 65535"
        )

    if not config.username.strip():
        raise ValueError(
            "IMAP username cannot be empty. Set MAILSYNC_USERNAME environment variable."
        )

    if not config.password:
        raise ValueError(
            "IMAP password cannot be empty. Set MAILSYNC_PASSWORD environment variable."
        )

    if not config.ssl:
        logger.warning(
            "WARNING: TLS disabled (ssl=False). Credentials are sent in clear text."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_number_env(key: str, kind: type, low: float, high: float):
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        value = kind(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {key} '{raw}': must be a number between {low} and {high}"
        ) from None
    if not (low <= value <= high):
        raise ValueError(
            f"Invalid {key} '{raw}': must be a number between {low} and {high}"
        )
    return value


def load_config(
    host: str | None = None,
    username: str | None = None,
    password: str | None = None,
    port: int | None = None,
    no_ssl: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        host: Override IMAP host.
        username: Override username.
        password: Override password.
        port: Override port.
        no_ssl: Disable implicit TLS (CLI flag).
        yaml_fallbacks: Dict of values from the YAML ``imap`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (host, username, password) is
            missing after checking all sources, or a value is invalid.
    """
    fb = yaml_fallbacks or {}

    # --- String fields: CLI > env > YAML > error ---

    final_host = host or os.getenv("MAILSYNC_HOST") or fb.get("host")
    if not final_host:
        raise ValueError(
            "IMAP host not found. Set MAILSYNC_HOST environment variable, "
            "pass --host CLI argument, or add 'host' to config.yml."
        )

    final_username = (
        username or os.getenv("MAILSYNC_USERNAME") or fb.get("username")
    )
    if not final_username:
        raise ValueError(
            "IMAP username not found. Set MAILSYNC_USERNAME environment variable, "
            "pass --username CLI argument, or add 'username' to config.yml."
        )

    final_password = (
        password or os.getenv("MAILSYNC_PASSWORD") or fb.get("password")
    )
    if not final_password:
        raise ValueError(
            "IMAP password not found. Set MAILSYNC_PASSWORD environment variable, "
            "or add 'password' to config.yml."
        )

    # --- Boolean fields: CLI > env > YAML > default ---

    if no_ssl:
        final_ssl = False
    else:
        env_ssl = _get_bool_env("MAILSYNC_SSL")
        if env_ssl is not None:
            final_ssl = env_ssl
        else:
            final_ssl = bool(fb.get("ssl", True))

    # --- Numeric fields: CLI > env > YAML > default ---

    if port is not None:
        final_port = port
    else:
        final_port = _get_number_env("MAILSYNC_PORT", int, 1, 65535)
        if final_port is None:
            final_port = fb.get("port") or (
                IMAPS_PORT if final_ssl else IMAP_PORT
            )

    final_timeout = _get_number_env("MAILSYNC_TIMEOUT", float, 1, 3600)
    if final_timeout is None:
        final_timeout = float(fb.get("timeout", 30.0))

    config = Config(
        host=final_host,
        username=final_username.strip(),
        password=final_password,
        port=int(final_port),
        ssl=final_ssl,
        timeout=final_timeout,
    )

    validate_config(config)

    return config
