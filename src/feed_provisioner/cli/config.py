"""Configuration helpers for the provision-feed CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from feed_provisioner.clusters import DEFAULT_CLUSTER
from feed_provisioner.sdk import DEFAULT_COMMITMENT, SDK_BACKEND_ENV_VAR, normalize_commitment

DEFAULT_CONFIG_PATH = Path.home() / ".feed_provisioner" / "config.toml"
DEFAULT_RECORDS_DIR = str(Path.home() / ".feed_provisioner" / "records")
DEFAULT_API_ENDPOINT = "https://www.binance.us/api/v3/ticker/price?symbol=BTCUSD"
DEFAULT_API_JSON_PATH = "$.price"
RPC_URL_ENV_VAR = "FEED_PROVISIONER_RPC_URL"


@dataclass(frozen=True)
class CLIConfig:
    cluster: str = DEFAULT_CLUSTER
    api_endpoint: str = DEFAULT_API_ENDPOINT
    api_json_path: str = DEFAULT_API_JSON_PATH
    rpc_url: str | None = None
    program_id: str | None = None
    commitment: str = DEFAULT_COMMITMENT
    sdk_backend: str | None = None
    records_dir: str = DEFAULT_RECORDS_DIR


class ConfigError(ValueError):
    """Raised when CLI config is invalid."""


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"config file is not readable: {path}: {exc}") from exc

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _required_str(source: dict[str, Any], key: str, default: str) -> str:
    value = str(source.get(key, default)).strip()
    if not value:
        raise ConfigError(f"{key} must not be empty")
    return value


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if config_path.exists():
        parsed = _load_toml(config_path)
    else:
        parsed = {}

    section = parsed.get("provision")
    if isinstance(section, dict):
        source = section
    elif section is None:
        source = parsed
    else:
        raise ConfigError("[provision] must be a table")

    # Cluster names are checked at run time so an unknown one reports
    # "Invalid cluster provided." like the command-line flag does.
    cluster = _required_str(source, "cluster", DEFAULT_CLUSTER)

    api_endpoint = _required_str(source, "api_endpoint", DEFAULT_API_ENDPOINT)
    api_json_path = _required_str(source, "api_json_path", DEFAULT_API_JSON_PATH)

    try:
        commitment = normalize_commitment(str(source.get("commitment", DEFAULT_COMMITMENT)))
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    env_rpc_url = os.getenv(RPC_URL_ENV_VAR)
    rpc_url = _optional_str(env_rpc_url) or _optional_str(source.get("rpc_url"))

    env_sdk_backend = os.getenv(SDK_BACKEND_ENV_VAR)
    sdk_backend = _optional_str(env_sdk_backend) or _optional_str(source.get("sdk_backend"))

    records_dir = _required_str(source, "records_dir", DEFAULT_RECORDS_DIR)

    return CLIConfig(
        cluster=cluster,
        api_endpoint=api_endpoint,
        api_json_path=api_json_path,
        rpc_url=rpc_url,
        program_id=_optional_str(source.get("program_id")),
        commitment=commitment,
        sdk_backend=sdk_backend,
        records_dir=records_dir,
    )


__all__ = ["CLIConfig", "ConfigError", "load_cli_config"]
