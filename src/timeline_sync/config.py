"""Runtime configuration for the timeline-sync commands.

Reads the API location, local database path, file names and throttle
settings from CLI args, environment variables, .env files, and YAML
config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    TIMELINE_API_URL: Base URL of the project API, e.g. https://host/api
        (required for commands that talk to the remote side)
    TIMELINE_LOCAL_DB: SQLite database of the local app (default: timeline.db)
    TIMELINE_LOCAL_DATA_FILE: Exported local snapshot (default: local-data.json)
    TIMELINE_DOWNLOAD_FILE: Downloaded remote snapshot (default: backup-data.json)
    TIMELINE_BACKUP_DIR: Directory for pre-replace backups (default: .)
    TIMELINE_REQUEST_DELAY: Seconds to wait after each remote write (default: 0.1)
    TIMELINE_INSECURE: Skip SSL verification (optional, default: false)
    TIMELINE_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_DB = "timeline.db"
DEFAULT_LOCAL_DATA_FILE = "local-data.json"
DEFAULT_DOWNLOAD_FILE = "backup-data.json"
DEFAULT_BACKUP_DIR = "."
DEFAULT_REQUEST_DELAY = 0.1
MAX_REQUEST_DELAY = 10.0


@dataclass
class Config:
    api_url: str = ""
    local_db: str = DEFAULT_LOCAL_DB
    local_data_file: str = DEFAULT_LOCAL_DATA_FILE
    download_file: str = DEFAULT_DOWNLOAD_FILE
    backup_dir: str = DEFAULT_BACKUP_DIR
    request_delay: float = DEFAULT_REQUEST_DELAY
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    insecure: bool = False
    debug: bool = False


def validate_config(config: Config, require_remote: bool = True) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate (the URL is normalised in place).
        require_remote: When ``False`` an empty API URL is accepted, for
            commands that only touch the local database.

    Raises:
        ValueError: If the URL format is invalid or a number is out of range.
    """
    config.api_url = config.api_url.strip()

    if config.api_url or require_remote:
        if not config.api_url:
            raise ValueError(
                "API URL not found. Set TIMELINE_API_URL environment variable, "
                "pass --api-url, or add 'remote.api_url' to config.yml."
            )
        if not config.api_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid API URL '{config.api_url}': must start with http:// or https://"
            )
        parsed = urlparse(config.api_url)
        if not parsed.hostname:
            raise ValueError(
                f"Invalid API URL '{config.api_url}': URL must include a hostname"
            )
        config.api_url = config.api_url.rstrip("/")

    if not config.local_db.strip():
        raise ValueError("Local database path cannot be empty.")

    if not (0 <= config.request_delay <= MAX_REQUEST_DELAY):
        raise ValueError(
            f"Invalid request delay {config.request_delay}: "
            f"must be between 0 and {MAX_REQUEST_DELAY:g} seconds"
        )

    if config.connect_timeout <= 0 or config.read_timeout <= 0:
        raise ValueError("Timeouts must be positive numbers of seconds.")

    if config.insecure:
        logger.warning(
            "WARNING: SSL verification disabled (insecure=True). Use only for development."
        )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def resolve_flag(cli_value: bool, env_key: str, fallback: object) -> bool:
    """Resolve a boolean option: CLI flag, then env var, then *fallback*."""
    if cli_value:
        return True
    env_value = _get_bool_env(env_key)
    if env_value is not None:
        return env_value
    return bool(fallback)


def load_config(
    api_url: str | None = None,
    local_db: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
    require_remote: bool = True,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        api_url: Override API URL.
        local_db: Override local SQLite database path.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flat dict of values from the YAML config file, as
            produced by ``config_schema.yaml_fallbacks()``.
        require_remote: Passed through to ``validate_config()``.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If a value is invalid after checking all sources.
    """
    fb = yaml_fallbacks or {}

    def pick(cli_value: str | None, env_key: str, fb_key: str, default: str) -> str:
        return cli_value or os.getenv(env_key) or fb.get(fb_key) or default

    delay_raw = os.getenv("TIMELINE_REQUEST_DELAY")
    if delay_raw is not None:
        try:
            request_delay = float(delay_raw)
        except ValueError:
            raise ValueError(
                f"Invalid TIMELINE_REQUEST_DELAY '{delay_raw}': must be a number of seconds"
            ) from None
    else:
        request_delay = float(fb.get("request_delay", DEFAULT_REQUEST_DELAY))

    config = Config(
        api_url=pick(api_url, "TIMELINE_API_URL", "api_url", ""),
        local_db=pick(local_db, "TIMELINE_LOCAL_DB", "local_db", DEFAULT_LOCAL_DB),
        local_data_file=pick(
            None, "TIMELINE_LOCAL_DATA_FILE", "local_data_file", DEFAULT_LOCAL_DATA_FILE
        ),
        download_file=pick(
            None, "TIMELINE_DOWNLOAD_FILE", "download_file", DEFAULT_DOWNLOAD_FILE
        ),
        backup_dir=pick(None, "TIMELINE_BACKUP_DIR", "backup_dir", DEFAULT_BACKUP_DIR),
        request_delay=request_delay,
        connect_timeout=float(fb.get("connect_timeout", 10.0)),
        read_timeout=float(fb.get("read_timeout", 60.0)),
        insecure=resolve_flag(insecure, "TIMELINE_INSECURE", fb.get("insecure", False)),
        debug=resolve_flag(debug, "TIMELINE_DEBUG", fb.get("debug", False)),
    )

    validate_config(config, require_remote=require_remote)

    return config
