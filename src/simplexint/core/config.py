"""
Configuration model and YAML loading for simplexint.

Exports:
    - IntersectionConfig: Pydantic model holding the numeric settings.
    - load_config: Read a YAML file (plus dotted CLI overrides) into a config.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from simplexint.core.validators import log_level_name, positive_value

__all__ = [
    "IntersectionConfig",
    "load_config",
]


class IntersectionConfig(BaseModel):
    """Numeric settings shared by the expansion helpers and the intersection core."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    tolerance: float = Field(1e-9, description="Rank, zero-detection and pivot threshold")
    inside_tolerance: float = Field(
        1e-9, description="Slack when deciding whether a vertex lies in the other simplex"
    )
    log_level: str = Field("INFO", description="Console log level used by the CLI")

    @field_validator("tolerance", "inside_tolerance")
    @classmethod
    def validate_positive(cls, v):
        return positive_value(cls, v)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        return log_level_name(cls, v)


def _apply_overrides(config: Dict[str, Any], overrides: Iterable[str]) -> Dict[str, Any]:
    # Overrides use dot notation: key1.key2=value
    for override in overrides:
        if "=" not in override:
            raise ValueError(f"Override must look like key=value, got: {override}")
        key, val = override.split("=", 1)
        keys = key.split(".")
        d = config
        for k in keys[:-1]:
            d = d.setdefault(k, {})
        d[keys[-1]] = yaml.safe_load(val)
    return config


def load_config(
    config_file: Optional[Path] = None,
    cli_overrides: Optional[Iterable[str]] = None,
) -> Tuple[IntersectionConfig, Dict[str, Any]]:
    """
    Load a YAML document and merge CLI overrides.

    The document may carry arbitrary extra keys (e.g. the simplices for the
    CLI); only the ``settings`` mapping is validated into an
    ``IntersectionConfig``.

    Returns:
        The validated config and the full raw document.
    """
    raw: Dict[str, Any] = {}
    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        with open(config_file, "r") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Top level of {config_file} must be a mapping")

    if cli_overrides:
        raw = _apply_overrides(raw, cli_overrides)

    settings = raw.get("settings") or {}
    return IntersectionConfig(**settings), raw
