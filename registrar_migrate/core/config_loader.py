"""Credential and registrant contact configuration.

Kept separate from the migration store: this file holds provider credentials
and the registrant contact, and is created on first write, read many times,
and cleared on demand.
"""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..models.cloudflare import CloudflareCredentials, RegistrantContact
from ..models.godaddy import GoDaddyCredentials
from .exceptions import ConfigurationError

logger = structlog.get_logger()

CONFIG_FILE_MODE = 0o600


class AppConfig(BaseModel):
    """Stored credentials and registrant contact."""

    godaddy: GoDaddyCredentials | None = None
    cloudflare: CloudflareCredentials | None = None
    registrant_contact: RegistrantContact | None = None


def get_config_path() -> Path:
    """Resolve the config file location (env override, then XDG config dir)."""
    if override := os.getenv("REGISTRAR_MIGRATE_CONFIG"):
        return Path(override)
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "registrar-migrate" / "config.yml"


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from the YAML file and environment.

    Args:
        config_path: Optional path to YAML config file

    Returns:
        Loaded configuration (empty when no file exists yet)

    Raises:
        ConfigurationError: If the file cannot be parsed or validated
    """
    load_dotenv()

    path = Path(config_path) if config_path else get_config_path()
    yaml_config = _load_yaml_config(path) if path.exists() else {}
    _apply_env_overrides(yaml_config)

    try:
        return AppConfig.model_validate(yaml_config)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load YAML configuration file."""
    try:
        loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e

    # yaml.safe_load can return None, str, list, etc.
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _apply_env_overrides(yaml_config: dict[str, Any]) -> None:
    """Apply environment variable overrides (highest priority)."""
    godaddy_key = os.getenv("GODADDY_API_KEY")
    godaddy_secret = os.getenv("GODADDY_API_SECRET")
    if godaddy_key and godaddy_secret:
        yaml_config["godaddy"] = {"api_key": godaddy_key, "api_secret": godaddy_secret}

    account_id = os.getenv("CLOUDFLARE_ACCOUNT_ID")
    if not account_id:
        return
    if api_token := os.getenv("CLOUDFLARE_API_TOKEN"):
        yaml_config["cloudflare"] = {
            "auth_type": "token",
            "account_id": account_id,
            "api_token": api_token,
        }
    elif (api_key := os.getenv("CLOUDFLARE_API_KEY")) and (email := os.getenv("CLOUDFLARE_EMAIL")):
        yaml_config["cloudflare"] = {
            "auth_type": "global-key",
            "account_id": account_id,
            "api_key": api_key,
            "email": email,
        }


def save_config(config: AppConfig, config_path: str | Path | None = None) -> Path:
    """Write configuration to YAML, readable only by the owner.

    Args:
        config: Configuration to save
        config_path: Path to save to (defaults to the user config file)

    Returns:
        Path written

    Raises:
        ConfigurationError: If unable to save configuration
    """
    path = Path(config_path) if config_path else get_config_path()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(mode="json", exclude_none=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CONFIG_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("# registrar-migrate credentials (keep private)\n")
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        os.chmod(path, CONFIG_FILE_MODE)
    except OSError as e:
        logger.error("Failed to save configuration", path=str(path), error=str(e))
        raise ConfigurationError(f"Failed to save configuration to {path}: {e}") from e

    logger.info("Configuration saved", path=str(path))
    return path


def update_config(config_path: str | Path | None = None, **sections: Any) -> AppConfig:
    """Merge the given sections into the stored configuration and save it."""
    current = load_config(config_path)
    try:
        updated = AppConfig.model_validate({**current.model_dump(), **sections})
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration update: {e}") from e
    save_config(updated, config_path)
    return updated


def clear_config(config_path: str | Path | None = None) -> bool:
    """Delete the stored configuration. Returns whether a file was removed."""
    path = Path(config_path) if config_path else get_config_path()
    if not path.exists():
        return False
    path.unlink()
    logger.info("Configuration cleared", path=str(path))
    return True
