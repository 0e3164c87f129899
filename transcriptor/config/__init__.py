"""Simplified configuration management using environment variables."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

from ..errors import ConfigurationError
from ..utils.paths import StoragePaths
from ..utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.scrape-creators.com"
MAX_API_KEY_LENGTH = 500


def _parse_bool(value: "str | bool | None") -> bool:
    """Parse boolean value from various formats."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    return bool(value)


def _getenv(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _getenv_int(key: str, default: int) -> int:
    """Get integer environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Parsed integer value

    Raises:
        ValueError: If value cannot be parsed as integer
    """
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid integer value for {key}='{value}'. "
            f"Expected integer, got: {value}"
        ) from e


def _getenv_float(key: str, default: float) -> float:
    """Get float environment variable with validation.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Parsed float value

    Raises:
        ValueError: If value cannot be parsed as float
    """
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as e:
        raise ValueError(
            f"Invalid float value for {key}='{value}'. "
            f"Expected float, got: {value}"
        ) from e


def load_environment(env_paths: Optional[Iterable[Path]] = None) -> Optional[Path]:
    """Load the first ``.env`` file found without overriding set variables.

    Args:
        env_paths: Candidate files (defaults to ``./.env`` then ``~/.env``)

    Returns:
        The file that was loaded, or None
    """
    candidates = list(env_paths) if env_paths is not None else [Path(".env"), Path.home() / ".env"]
    for env_path in candidates:
        if env_path.is_file():
            load_dotenv(env_path, override=False)
            logger.debug(f"Loaded environment from {env_path}")
            return env_path
    return None


@dataclass
class TranscriptorConfig:
    """Application configuration loaded from environment variables."""

    # ========== Storage ==========
    home: Optional[Path] = field(
        default_factory=lambda: Path(_getenv("TRANSCRIPTOR_HOME")) if _getenv("TRANSCRIPTOR_HOME") else None
    )
    input_file: str = field(default_factory=lambda: _getenv("TRANSCRIPTOR_INPUT_FILE", "youtube.md"))
    link_dirname: str = field(default_factory=lambda: _getenv("TRANSCRIPTOR_LINK_DIR", "transcripts"))

    # ========== Logging ==========
    log_level: str = field(default_factory=lambda: _getenv("LOG_LEVEL", "INFO").upper())
    log_file: Optional[str] = field(default_factory=lambda: _getenv("LOG_FILE") or None)

    # ========== API ==========
    api_key: Optional[str] = field(default_factory=lambda: _getenv("SCRAPE_CREATORS_API_KEY").strip() or None)
    api_base_url: str = field(default_factory=lambda: _getenv("TRANSCRIPTOR_API_BASE_URL", DEFAULT_API_BASE_URL))
    request_timeout: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_REQUEST_TIMEOUT", 30.0))
    metadata_timeout: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_METADATA_TIMEOUT", 15.0))

    # ========== Retry Settings ==========
    retry_max_attempts: int = field(default_factory=lambda: _getenv_int("TRANSCRIPTOR_RETRY_MAX_ATTEMPTS", 3))
    retry_initial_delay: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_RETRY_INITIAL_DELAY", 1.0))
    retry_multiplier: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_RETRY_MULTIPLIER", 2.0))
    retry_max_delay: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_RETRY_MAX_DELAY", 8.0))
    retry_jitter: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_RETRY_JITTER", 0.25))
    retry_min_delay: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_RETRY_MIN_DELAY", 0.1))
    retry_budget: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_RETRY_BUDGET", 60.0))
    retry_max_retry_after: float = field(
        default_factory=lambda: _getenv_float("TRANSCRIPTOR_RETRY_MAX_RETRY_AFTER", 300.0)
    )

    # ========== Title Resolution ==========
    title_retries: int = field(default_factory=lambda: _getenv_int("TRANSCRIPTOR_TITLE_RETRIES", 3))
    title_retry_delay: float = field(default_factory=lambda: _getenv_float("TRANSCRIPTOR_TITLE_RETRY_DELAY", 1.0))

    # ========== UI Settings ==========
    no_color: bool = field(default_factory=lambda: os.getenv("NO_COLOR") is not None)
    show_progress: bool = field(default_factory=lambda: _parse_bool(_getenv("SHOW_PROGRESS", "true")))

    def __repr__(self) -> str:
        """Return repr with the API key redacted."""
        items = []
        for field_name in self.__dataclass_fields__:
            value = getattr(self, field_name)
            if field_name == "api_key" and value:
                items.append(f"{field_name}='***REDACTED***'")
            else:
                items.append(f"{field_name}={value!r}")
        return f"TranscriptorConfig({', '.join(items)})"

    @classmethod
    def from_environment(cls, load_env_file: bool = True) -> "TranscriptorConfig":
        """Build a validated configuration, loading ``.env`` first if requested.

        Raises:
            ConfigurationError: If any value is malformed or out of range
        """
        if load_env_file:
            load_environment()
        try:
            config = cls()
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        config.validate()
        return config

    def validate(self) -> None:
        """Reject impossible values.

        Raises:
            ConfigurationError: Describing the first invalid setting
        """
        if self.request_timeout <= 0:
            raise ConfigurationError("TRANSCRIPTOR_REQUEST_TIMEOUT must be positive")
        if self.metadata_timeout <= 0:
            raise ConfigurationError("TRANSCRIPTOR_METADATA_TIMEOUT must be positive")
        if self.title_retries < 0:
            raise ConfigurationError("TRANSCRIPTOR_TITLE_RETRIES must be non-negative")
        if self.title_retry_delay < 0:
            raise ConfigurationError("TRANSCRIPTOR_TITLE_RETRY_DELAY must be non-negative")
        if not self.link_dirname or os.sep in self.link_dirname or self.link_dirname in (".", ".."):
            raise ConfigurationError("TRANSCRIPTOR_LINK_DIR must be a single directory name")
        try:
            self.retry_policy()
        except ValueError as e:
            raise ConfigurationError(f"Invalid retry settings: {e}") from e

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            initial_delay=self.retry_initial_delay,
            multiplier=self.retry_multiplier,
            max_delay=self.retry_max_delay,
            jitter=self.retry_jitter,
            min_delay=self.retry_min_delay,
            total_budget=self.retry_budget,
            max_retry_after=self.retry_max_retry_after,
        )

    def storage_paths(self) -> StoragePaths:
        """Resolve the central storage layout.

        Raises:
            ConfigurationError: If the home directory cannot be determined
        """
        try:
            return StoragePaths.from_root(self.home)
        except RuntimeError as e:
            raise ConfigurationError(str(e)) from e

    def require_api_key(self) -> str:
        """Return the API key or raise if it is missing or implausible.

        Raises:
            ConfigurationError: If the key is unset or exceeds the maximum length
        """
        if not self.api_key:
            raise ConfigurationError(
                "SCRAPE_CREATORS_API_KEY environment variable not found or invalid. "
                "Set it in your environment or create a .env file with: "
                "SCRAPE_CREATORS_API_KEY=your-api-key-here"
            )
        if len(self.api_key) > MAX_API_KEY_LENGTH:
            raise ConfigurationError("API key exceeds maximum length (possible paste error)")
        return self.api_key


__all__ = ["TranscriptorConfig", "load_environment", "DEFAULT_API_BASE_URL"]
