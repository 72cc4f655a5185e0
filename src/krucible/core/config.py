"""Configuration management for the Krucible client."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from krucible.core.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://usekrucible.com/api"

ENV_BASE_URL = "KRUCIBLE_BASE_URL"
ENV_ACCOUNT_ID = "KRUCIBLE_ACCOUNT_ID"
ENV_API_KEY_ID = "KRUCIBLE_API_KEY_ID"
ENV_API_KEY_SECRET = "KRUCIBLE_API_KEY_SECRET"


class ClientConfig(BaseModel):
    """Connection settings for a Krucible account."""

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    account_id: str = ""
    api_key_id: str = ""
    api_key_secret: str = Field("", repr=False)
    request_timeout: float = 30.0  # seconds per HTTP request


class PollingConfig(BaseModel):
    """How to wait for a cluster to finish provisioning.

    The state sets are configurable because the API does not document its full
    state taxonomy.
    """

    model_config = ConfigDict(frozen=True)

    interval: float = Field(1.0, ge=0)
    timeout: float | None = Field(None, gt=0)  # None waits indefinitely
    max_attempts: int | None = Field(None, ge=1)
    pending_states: frozenset[str] = frozenset({"provisioning"})
    ready_states: frozenset[str] = frozenset({"ready"})
    failed_states: frozenset[str] = frozenset()
    allow_unrecognized_states: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "console"
    output: str = "stderr"


class KrucibleConfig(BaseModel):
    """Main Krucible client configuration."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "KrucibleConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            KrucibleConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid configuration: expected a mapping in {config_path}")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "KrucibleConfig":
        """Build configuration from KRUCIBLE_* environment variables.

        Args:
            environ: Environment mapping (usually os.environ)

        Returns:
            KrucibleConfig instance with client settings from the environment
        """
        return cls(
            client=ClientConfig(
                base_url=environ.get(ENV_BASE_URL, ""),
                account_id=environ.get(ENV_ACCOUNT_ID, ""),
                api_key_id=environ.get(ENV_API_KEY_ID, ""),
                api_key_secret=environ.get(ENV_API_KEY_SECRET, ""),
            )
        )

    def with_client_overrides(self, **overrides: Any) -> "KrucibleConfig":
        """Return a copy with the given non-empty client fields replaced."""
        updates = {key: value for key, value in overrides.items() if value}
        if not updates:
            return self
        return self.model_copy(update={"client": self.client.model_copy(update=updates)})

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
