"""Configuration loader for the Decibel onboarding scripts."""
import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import msgspec
import msgspec.structs
import yaml
from dotenv import dotenv_values, set_key

from .decibel_models import DecibelSettings
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent

# Nested config.yaml keys mapped onto settings fields
_YAML_SECTIONS = {
    ("polling", "max_attempts"): "poll_max_attempts",
    ("polling", "base_delay"): "poll_base_delay",
    ("market", "name"): "market_name",
    ("market", "address"): "market_address",
}


def env_key(name: str) -> str:
    """Environment variable name of a settings field (``market_name`` -> ``MARKET_NAME``)."""
    return name.upper()


class SettingsStore:
    """Single read/write access point for persisted settings.

    Values are merged from, low to high precedence: built-in defaults,
    ``config.yaml``, the ``.env`` file and the process environment. Writes
    go to the ``.env`` file, replacing an existing key or appending it.
    """

    def __init__(
        self,
        env_path: Optional[Union[str, Path]] = None,
        config_path: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.env_path = Path(env_path) if env_path else PROJECT_ROOT / ".env"
        self.config_path = Path(config_path) if config_path else PROJECT_ROOT / "config.yaml"
        self.environ = os.environ if environ is None else environ
        self._settings: Optional[DecibelSettings] = None

    @property
    def settings(self) -> DecibelSettings:
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> DecibelSettings:
        """Read all sources and return a fresh settings object."""
        merged: Dict[str, Any] = {}
        merged.update(self._load_yaml())
        merged.update(self._load_env_file())
        merged.update(self._load_environ())

        try:
            settings = msgspec.convert(merged, DecibelSettings, strict=False)
        except msgspec.ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

        self._settings = settings
        return settings

    def _load_yaml(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, 'r') as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {self.config_path}: {e}")

        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"{self.config_path} must contain a mapping")

        values = {}
        for (section, key), field in _YAML_SECTIONS.items():
            section_values = yaml_config.get(section) or {}
            if isinstance(section_values, dict) and key in section_values:
                values[field] = section_values[key]

        for field in DecibelSettings.__struct_fields__:
            if field in yaml_config:
                values[field] = yaml_config[field]

        logger.info(f"Loaded configuration from {self.config_path}")
        return values

    def _load_env_file(self) -> Dict[str, Any]:
        if not self.env_path.exists():
            logger.debug(f"No .env file at {self.env_path}")
            return {}

        file_values = dotenv_values(self.env_path)
        return self._pick_fields(file_values)

    def _load_environ(self) -> Dict[str, Any]:
        return self._pick_fields(self.environ)

    @staticmethod
    def _pick_fields(source: Mapping[str, Optional[str]]) -> Dict[str, Any]:
        values = {}
        for field in DecibelSettings.__struct_fields__:
            value = source.get(env_key(field))
            if value:
                values[field] = value
        return values

    def write(self, name: str, value: str) -> DecibelSettings:
        """Persist one setting to the ``.env`` file and refresh the settings.

        Args:
            name: Settings field or environment variable name
            value: New value

        Returns:
            The updated settings object
        """
        field = name.lower()
        if field not in DecibelSettings.__struct_fields__:
            raise ConfigurationError(f"Unknown setting: {name}")

        self.env_path.touch(exist_ok=True)
        set_key(str(self.env_path), env_key(field), str(value), quote_mode="never")
        logger.info(f"Updated {env_key(field)} in {self.env_path}")

        try:
            self._settings = msgspec.structs.replace(
                self.settings,
                **{field: msgspec.convert(value, type(getattr(self.settings, field)), strict=False)},
            )
        except msgspec.ValidationError as e:
            raise ConfigurationError(f"Invalid value for {env_key(field)}: {e}")
        return self._settings

    def validate(self) -> None:
        """Check that the settings needed to sign transactions are present.

        Raises:
            ConfigurationError: listing every problem found
        """
        settings = self.settings
        errors: List[str] = []

        if not settings.api_wallet_private_key:
            errors.append("API_WALLET_PRIVATE_KEY is required in .env file")
        elif not settings.api_wallet_private_key.startswith("0x"):
            errors.append("API_WALLET_PRIVATE_KEY should start with 0x")

        if not settings.package_address:
            errors.append("PACKAGE_ADDRESS is required in .env file")

        if settings.poll_max_attempts < 1:
            errors.append("POLL_MAX_ATTEMPTS must be at least 1")

        if errors:
            for error in errors:
                logger.error(error)
            raise ConfigurationError("Configuration validation failed: " + "; ".join(errors))

    def require(self, name: str) -> str:
        """Return a required identifier or fail with a configuration error."""
        field = name.lower()
        value = getattr(self.settings, field, None)
        if not value:
            raise ConfigurationError(f"{env_key(field)} not set in .env file")
        return value

    def describe(self) -> str:
        """Printable summary of the current settings with secrets masked."""
        settings = self.settings
        private_key = settings.api_wallet_private_key
        masked_key = f"****{private_key[-8:]}" if private_key else "NOT SET"

        lines = [
            f"Package Address:    {settings.package_address}",
            f"Fullnode URL:       {settings.fullnode_url}",
            f"API Wallet:         {settings.api_wallet_address or '(derived from private key)'}",
            f"Private Key:        {masked_key}",
            f"REST API:           {settings.rest_api_base_url}",
            f"WebSocket:          {settings.websocket_url}",
        ]
        if settings.subaccount_address:
            lines.append(f"Subaccount:         {settings.subaccount_address}")
        if settings.market_address:
            lines.append(f"Market:             {settings.market_name} ({settings.market_address})")
        return "\n".join(lines)
