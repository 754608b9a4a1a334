"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to all Shipyard settings
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Unknown keys are ignored, invalid files fall back to defaults
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import dataclasses
import json
import logging
import os

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebConfig:
    """HTTP facade configuration."""
    host: str = "127.0.0.1"
    port: int = 3002


@dataclass(frozen=True)
class LifecycleConfig:
    """Simulated deployment lifecycle configuration."""
    deploy_delay: float = 5.0
    rollback_delay: float = 4.0
    failure_rate: float = 0.0


@dataclass(frozen=True)
class ClientConfig:
    """API client and synchronizer configuration."""
    base_url: str = "http://localhost:3002/api"
    timeout: float = 10.0
    poll_interval: float = 30.0


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False


@dataclass(frozen=True)
class ShipyardConfig:
    """Root configuration for the Shipyard application."""
    web: WebConfig = field(default_factory=WebConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "WARNING"


_TOP_LEVEL_KEYS = {"log_level"}


def _env_override(data: dict, prefix: str = "SHIPYARD") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern SHIPYARD_SECTION_KEY.
    For example: SHIPYARD_WEB_PORT=9090, SHIPYARD_LIFECYCLE_DEPLOY_DELAY=0.5
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        if name in _TOP_LEVEL_KEYS:
            data[name] = value
            continue
        parts = name.split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s must contain a JSON object", path)
        return {}
    return data


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    # Environment values arrive as strings
    for f in dataclasses.fields(cls):
        if f.name in filtered and isinstance(filtered[f.name], str):
            if f.type == "int":
                filtered[f.name] = int(filtered[f.name])
            elif f.type == "float":
                filtered[f.name] = float(filtered[f.name])
            elif f.type == "bool":
                filtered[f.name] = filtered[f.name].lower() in ("true", "1", "yes")

    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "SHIPYARD",
) -> ShipyardConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (SHIPYARD_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to shipyard.json in CWD.
        env_prefix: Environment variable prefix. Defaults to SHIPYARD.
    """
    config_path = Path(path) if path else Path("shipyard.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    return ShipyardConfig(
        web=_build_sub_config(WebConfig, data.get("web", {})),
        lifecycle=_build_sub_config(LifecycleConfig, data.get("lifecycle", {})),
        client=_build_sub_config(ClientConfig, data.get("client", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        log_level=data.get("log_level", "WARNING"),
    )
