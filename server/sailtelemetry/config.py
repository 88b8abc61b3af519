"""Service configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: SAILTEL_<SECTION>_<KEY> (uppercase).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    env: str = "dev"  # "dev" or "prod"


@dataclass
class SimulatorConfig:
    enabled: bool = False  # start ticking at boot
    scenario: str = "upwind"
    tick_interval_s: float = 0.5
    seed: int | None = None


@dataclass
class CodecConfig:
    context: str = "vessels.self"
    source_label: str = "sailtelemetry"
    source_type: str = "simulator"
    drop_non_finite: bool = True
    reject_negative_speeds: bool = True


@dataclass
class PolarConfig:
    max_target_speed_kn: float = 10.0


@dataclass
class PublishConfig:
    max_queue_size: int = 64


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"
    file: str = ""


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    simulator: SimulatorConfig = field(default_factory=SimulatorConfig)
    codec: CodecConfig = field(default_factory=CodecConfig)
    polar: PolarConfig = field(default_factory=PolarConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "SAILTEL_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "SAILTEL_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "SAILTEL_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "SAILTEL_SIMULATOR_ENABLED": lambda v: setattr(config.simulator, "enabled", _as_bool(v)),
        "SAILTEL_SIMULATOR_SCENARIO": lambda v: setattr(config.simulator, "scenario", v),
        "SAILTEL_SIMULATOR_TICK_INTERVAL": lambda v: setattr(config.simulator, "tick_interval_s", float(v)),
        "SAILTEL_SIMULATOR_SEED": lambda v: setattr(config.simulator, "seed", int(v) if v else None),
        "SAILTEL_CODEC_CONTEXT": lambda v: setattr(config.codec, "context", v),
        "SAILTEL_CODEC_SOURCE_LABEL": lambda v: setattr(config.codec, "source_label", v),
        "SAILTEL_CODEC_DROP_NON_FINITE": lambda v: setattr(config.codec, "drop_non_finite", _as_bool(v)),
        "SAILTEL_CODEC_REJECT_NEGATIVE_SPEEDS": lambda v: setattr(config.codec, "reject_negative_speeds", _as_bool(v)),
        "SAILTEL_POLAR_MAX_TARGET_SPEED": lambda v: setattr(config.polar, "max_target_speed_kn", float(v)),
        "SAILTEL_PUBLISH_MAX_QUEUE_SIZE": lambda v: setattr(config.publish, "max_queue_size", int(v)),
        "SAILTEL_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "SAILTEL_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
        "SAILTEL_LOG_FILE": lambda v: setattr(config.logging, "file", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    # Try to load YAML
    if config_path is None:
        config_path = Path(os.environ.get("SAILTEL_CONFIG", "config.yaml"))
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section_name in ("server", "simulator", "codec", "polar", "publish", "logging"):
            section = getattr(config, section_name)
            for k, v in (raw.get(section_name) or {}).items():
                if hasattr(section, k):
                    setattr(section, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
