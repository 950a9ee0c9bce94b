from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

_CONFIG_ENV_VAR = "WEBSEARCH_CONFIG"


@dataclass
class AppConfig:
    transport: str
    host: str
    port: int
    debug: bool
    log_level: str
    log_consumers: list | None
    preferred_sites_path: str
    request_timeout_seconds: float
    min_request_interval_ms: int
    max_requests_per_minute: int
    max_jitter_ms: int
    suspension_base_minutes: float
    max_suspension_multiplier: int
    soft_block_min_body_chars: int

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


def load_json_config(path: str | None = None) -> dict:
    config_path = Path(path or os.environ.get(_CONFIG_ENV_VAR) or Path.cwd() / "config.json")
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def parse_app_config(config: dict) -> AppConfig:
    transport = str(config.get("Transport", "http")).strip().lower()
    if transport not in ("http", "stdio"):
        raise ValueError(f"Unknown transport: {transport!r}. Supported: 'http', 'stdio'")

    return AppConfig(
        transport=transport,
        host=str(config.get("Host", "127.0.0.1")),
        port=int(config.get("Port", 3000)),
        debug=_to_bool(config.get("Debug", False), default=False),
        log_level=str(config.get("LogLevel", "INFO")).upper(),
        log_consumers=config.get("LogConsumers"),
        preferred_sites_path=str(config.get("PreferredSitesPath", "preferred_sites.json")),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 30)),
        min_request_interval_ms=int(config.get("MinRequestIntervalMs", 2000)),
        max_requests_per_minute=int(config.get("MaxRequestsPerMinute", 10)),
        max_jitter_ms=int(config.get("MaxJitterMs", 3000)),
        suspension_base_minutes=float(config.get("SuspensionBaseMinutes", 20)),
        max_suspension_multiplier=int(config.get("MaxSuspensionMultiplier", 6)),
        soft_block_min_body_chars=int(config.get("SoftBlockMinBodyChars", 10_000)),
    )


def apply_cli_overrides(config: dict, argv: list[str]) -> dict:
    """Merge ``--stdio``, ``--debug``, ``--port=N`` and ``--host=H`` over file values."""
    merged = dict(config)
    for arg in argv:
        if arg == "--stdio":
            merged["Transport"] = "stdio"
        elif arg == "--debug":
            merged["Debug"] = True
        elif arg.startswith("--port="):
            merged["Port"] = int(arg.split("=", 1)[1])
        elif arg.startswith("--host="):
            merged["Host"] = arg.split("=", 1)[1]
    return merged


def config_path_from_args(argv: list[str]) -> str | None:
    for arg in argv:
        if arg.startswith("--config="):
            return arg.split("=", 1)[1]
    return None
