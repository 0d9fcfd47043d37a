"""Configuration loader for Parliament."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List
import os
import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.yaml"
USER_CONFIG_PATH = Path.home() / ".config" / "parliament" / "config.yaml"

DEFAULT_REDACT_KEYS = [
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "accesstoken",
    "refreshtoken",
    "creditcard",
    "ssn",
    "pin",
]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: Path | None = None) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    if DEFAULT_CONFIG_PATH.exists():
        data = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text()) or {}
    user_path = path or USER_CONFIG_PATH
    if user_path.exists():
        override = yaml.safe_load(user_path.read_text()) or {}
        data = _deep_merge(data, override)

    # Environment overrides - Storage
    data_dir = os.getenv("PARLIAMENT_DATA_DIR")
    if data_dir:
        data["data_dir"] = data_dir
    ledger_path = os.getenv("PARLIAMENT_LEDGER_PATH")
    if ledger_path:
        data.setdefault("ledger", {})["path"] = ledger_path

    # Environment overrides - Webhook
    webhook_url = os.getenv("PARLIAMENT_WEBHOOK_URL")
    if webhook_url:
        data.setdefault("notify", {})["webhook_url"] = webhook_url
    webhook_timeout = os.getenv("PARLIAMENT_WEBHOOK_TIMEOUT")
    if webhook_timeout:
        try:
            data.setdefault("notify", {})["timeout_seconds"] = float(webhook_timeout)
        except ValueError:
            pass

    # Environment overrides - Logging
    log_level = os.getenv("PARLIAMENT_LOG_LEVEL")
    if log_level:
        data.setdefault("logging", {})["level"] = log_level.upper()

    return data


@dataclass
class Config:
    raw: Dict[str, Any]

    @property
    def data_dir(self) -> Path:
        default = str(Path.home() / ".parliament")
        return Path(self.raw.get("data_dir") or default).expanduser()

    @property
    def ledger(self) -> Dict[str, Any]:
        return self.raw.get("ledger", {}) or {}

    @property
    def ledger_path(self) -> Path:
        path = self.ledger.get("path")
        if path:
            return Path(path).expanduser()
        return self.data_dir / "ledger" / "audit.jsonl"

    @property
    def redact_keys(self) -> List[str]:
        keys = self.ledger.get("redact_keys")
        return [str(k) for k in keys] if keys else list(DEFAULT_REDACT_KEYS)

    @property
    def notify(self) -> Dict[str, Any]:
        return self.raw.get("notify", {}) or {}

    @property
    def log_level(self) -> str:
        """Root log level for the CLI. Default INFO."""
        return str((self.raw.get("logging", {}) or {}).get("level", "INFO")).upper()


def get_config() -> Config:
    return Config(load_config())
