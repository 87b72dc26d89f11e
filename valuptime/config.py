"""Run configuration.

Precedence, highest first:
  1. environment variables ``UPTIME_<FIELD>`` (``.env`` is loaded by the entrypoint)
  2. command-line overrides
  3. YAML config file
  4. defaults

YAML keys follow the field names below; ``database`` is accepted as an
alias of ``database_url``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from valuptime.engine.errors import ConfigError
from valuptime.engine.models import ScoringConfig, UpgradeWindow

ENV_PREFIX = "UPTIME_"

_YAML_ALIASES = {"database": "database_url"}


class UptimeSettings(BaseModel):
    """Validated settings for one uptime run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Storage: one of these is required
    database_url: str | None = None
    data_dir: str | None = None

    node_rewards: int = 0

    # El Choco upgrade (window 1)
    el_choco_startblock: int = Field(default=0, ge=0)
    el_choco_endblock: int = Field(default=0, ge=0)
    el_choco_reward_points_per_block: int = Field(default=0, ge=0)

    # Amazonas upgrade (window 2)
    amazonas_startblock: int = Field(default=0, ge=0)
    amazonas_endblock: int = Field(default=0, ge=0)
    amazonas_reward_points_per_block: int = Field(default=0, ge=0)

    output: str = "result.csv"
    call_timeout: float | None = None
    store_aggregation: bool = False

    def scoring_config(self) -> ScoringConfig:
        """Immutable scoring config with window heights shifted past the upgrade block."""
        return ScoringConfig(
            node_rewards=self.node_rewards,
            window1=UpgradeWindow.from_upgrade_heights(
                self.el_choco_startblock,
                self.el_choco_endblock,
                self.el_choco_reward_points_per_block,
            ),
            window2=UpgradeWindow.from_upgrade_heights(
                self.amazonas_startblock,
                self.amazonas_endblock,
                self.amazonas_reward_points_per_block,
            ),
        )


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must hold a mapping")
    return {_YAML_ALIASES.get(k, k): v for k, v in data.items()}


def _read_env(environ: Mapping[str, str]) -> dict[str, str]:
    values = {}
    for name in UptimeSettings.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            values[name] = raw
    return values


def load_settings(
    config_file: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> UptimeSettings:
    """Merge file, CLI and environment values into UptimeSettings.

    Args:
        config_file: Optional YAML file.
        overrides: CLI values; None entries are ignored.
        environ: Environment mapping, defaults to os.environ.

    Raises:
        ConfigError: unreadable file or values that fail validation.
    """
    values: dict[str, Any] = {}
    if config_file:
        values.update(_read_yaml(Path(config_file)))
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})
    values.update(_read_env(os.environ if environ is None else environ))

    try:
        return UptimeSettings(**values)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


__all__ = ["ENV_PREFIX", "UptimeSettings", "load_settings"]
