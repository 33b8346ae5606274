"""Configuration file management for CLI."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from src.server.config import (
    DeliveryConfig,
    TransportConfig,
    validate_delivery,
    validate_transport,
)


@dataclass
class CliConfig:
    """Scheduler configuration loaded from config file."""

    db_path: Path
    transport: TransportConfig = field(default_factory=TransportConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)


class ConfigError(Exception):
    """Configuration file error."""

    pass


class ConfigManager:
    """Manages scheduler configuration in ~/.mailsched/config.yaml."""

    DEFAULT_DIR = Path.home() / ".mailsched"
    CONFIG_FILE = "config.yaml"
    DB_FILE = "mail_scheduler.db"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self._config_dir = config_dir or self.DEFAULT_DIR
        self._config_path = self._config_dir / self.CONFIG_FILE

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def default_db_path(self) -> Path:
        return self._config_dir / self.DB_FILE

    def exists(self) -> bool:
        """Check if configuration exists."""
        return self._config_path.exists()

    def load(self) -> CliConfig:
        """Load configuration from file. Raises ConfigError if not found."""
        if not self._config_path.exists():
            raise ConfigError(
                f"Config not found at {self._config_path}. Run 'mailsched init' first."
            )

        try:
            with open(self._config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config file: {e}") from e

        if not isinstance(data, dict) or "db_path" not in data:
            raise ConfigError("Invalid config: missing db_path")

        try:
            transport = TransportConfig(**(data.get("transport") or {}))
            delivery = DeliveryConfig(**(data.get("delivery") or {}))
            validate_transport(transport)
            validate_delivery(delivery)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config: {e}") from e

        return CliConfig(
            db_path=Path(data["db_path"]).expanduser(),
            transport=transport,
            delivery=delivery,
        )

    def save(self, config: CliConfig) -> None:
        """Save configuration to file.

        The file can hold a transport API key, so it is chmod 600.
        """
        self._config_dir.mkdir(parents=True, exist_ok=True)

        config_data = {
            "db_path": str(config.db_path),
            "transport": asdict(config.transport),
            "delivery": asdict(config.delivery),
        }

        with open(self._config_path, "w") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False)

        self._config_path.chmod(0o600)
