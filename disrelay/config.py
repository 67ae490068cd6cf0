"""Relay configuration.

Loads from config.yaml if present, with environment variable overrides.
Environment variables use the pattern: DISRELAY_<SECTION>_<KEY> (uppercase).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    env: str = "dev"  # "dev" or "prod"


@dataclass
class UdpConfig:
    address: str = "239.1.2.3"      # multicast group, unicast or broadcast address
    port: int = 62040
    local_address: str = "0.0.0.0"


@dataclass
class RelayConfig:
    mode: str = "raw"  # "raw", "decoded" or "both"
    queue_max_size: int = 1000
    send_timeout_seconds: float = 5.0


@dataclass
class LimitsConfig:
    active_window_seconds: float = 120.0


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"
    file: str = ""


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    udp: UdpConfig = field(default_factory=UdpConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "DISRELAY_SERVER_HOST": lambda v: setattr(config.server, "host", v),
        "DISRELAY_SERVER_PORT": lambda v: setattr(config.server, "port", int(v)),
        "DISRELAY_SERVER_ENV": lambda v: setattr(config.server, "env", v),
        "DISRELAY_UDP_ADDRESS": lambda v: setattr(config.udp, "address", v),
        "DISRELAY_UDP_PORT": lambda v: setattr(config.udp, "port", int(v)),
        "DISRELAY_UDP_LOCAL_ADDRESS": lambda v: setattr(config.udp, "local_address", v),
        "DISRELAY_RELAY_MODE": lambda v: setattr(config.relay, "mode", v),
        "DISRELAY_RELAY_QUEUE_MAX_SIZE": lambda v: setattr(config.relay, "queue_max_size", int(v)),
        "DISRELAY_RELAY_SEND_TIMEOUT": lambda v: setattr(config.relay, "send_timeout_seconds", float(v)),
        "DISRELAY_LIMITS_ACTIVE_WINDOW": lambda v: setattr(config.limits, "active_window_seconds", float(v)),
        "DISRELAY_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "DISRELAY_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
        "DISRELAY_LOG_FILE": lambda v: setattr(config.logging, "file", v),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            setter(val)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    if config_path is None:
        config_path = Path(os.environ.get("DISRELAY_CONFIG", "config.yaml"))
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section in ("server", "udp", "relay", "limits", "logging"):
            target = getattr(config, section)
            for k, v in (raw.get(section) or {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
