"""
Plugin configuration.

Stored as YAML with human-readable keys:

    Version: 1.1.0
    Drowning Policy: delay_then_damage
    Delay Before Damage Seconds: 30.0
    Damage Amount Per Tick: 1.0
    Damage Interval Seconds: 1.0
    Sweep Interval Seconds: 0.0

The file is loaded once at startup, migrated if it was written by an older
plugin version, saved back, and treated as read-only afterwards.
"""

import logging
import os
from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nowatersleep import __version__

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.getenv("NOWATERSLEEP_CONFIG", "nowatersleep.yaml"))

# Configs older than this are discarded rather than migrated
MINIMUM_MIGRATABLE_VERSION = "1.0.0"


class ConfigError(Exception):
    """Raised when the config file cannot be read or is invalid."""


class PolicyKind(str, Enum):
    KILL_IMMEDIATELY = "kill_immediately"
    DELAY_THEN_DAMAGE = "delay_then_damage"


class DrowningConfig(BaseModel):
    """Tunable drowning parameters."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    version: str = Field(__version__, alias="Version")
    policy: PolicyKind = Field(PolicyKind.DELAY_THEN_DAMAGE, alias="Drowning Policy")
    delay_before_damage: float = Field(30.0, ge=0, alias="Delay Before Damage Seconds")
    damage_amount_per_tick: float = Field(1.0, ge=0, alias="Damage Amount Per Tick")
    damage_interval_seconds: float = Field(1.0, gt=0, alias="Damage Interval Seconds")
    # 0 disables the periodic re-scan of sleepers
    sweep_interval_seconds: float = Field(0.0, ge=0, alias="Sweep Interval Seconds")

    def to_yaml_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def get_default_config() -> DrowningConfig:
    return DrowningConfig()


def parse_version(version: str) -> tuple[int, ...]:
    """
    Parse a dotted version string into a comparable tuple.

    Non-numeric components count as 0, so garbage sorts as the oldest version.
    """
    parts = []
    for part in str(version).strip().split("."):
        digits = "".join(ch for ch in part if ch.isdigit())
        parts.append(int(digits) if digits else 0)
    # Trailing zeros don't matter: 1.0 == 1.0.0
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def is_older(version: str, than: str) -> bool:
    return parse_version(version) < parse_version(than)


def update_config(config: DrowningConfig) -> DrowningConfig:
    """
    Migrate a config written by an older plugin version.

    Configs older than MINIMUM_MIGRATABLE_VERSION are reset to defaults;
    newer ones keep their values. Either way the version is stamped current.
    """
    logger.warning("Config changes detected! Updating...")

    old_version = config.version
    if is_older(old_version, MINIMUM_MIGRATABLE_VERSION):
        config = get_default_config()

    logger.warning(
        "Config update complete! Updated from version %s to %s", old_version, __version__
    )
    return config.model_copy(update={"version": __version__})


def save_config(config: DrowningConfig, path: Path | str = CONFIG_PATH) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_yaml_dict(), f, sort_keys=False, allow_unicode=True)


def load_config(path: Path | str = CONFIG_PATH, save: bool = True) -> DrowningConfig:
    """
    Load, migrate and re-save the plugin config.

    A missing file is created with defaults. A file without a Version key is
    treated as predating versioning and reset.

    Args:
        path: Config file location
        save: Write the (possibly migrated) config back. Pass False to only
            read and validate; the file is then left untouched.

    Raises:
        ConfigError: If the file is not valid YAML or fails validation
    """
    path = Path(path)

    if not path.exists():
        config = get_default_config()
        if save:
            logger.warning("Config file %s not found, creating a default one", path)
            save_config(config, path)
        else:
            logger.warning("Config file %s not found, using defaults", path)
        return config

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

    # YAML reads an unquoted "1.0" as a float
    data["Version"] = str(data.get("Version", "0.0.0"))

    try:
        config = DrowningConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {path}: {e}") from e

    if is_older(config.version, __version__):
        config = update_config(config)

    if save:
        save_config(config, path)
    return config
