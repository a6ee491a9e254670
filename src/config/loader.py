"""
Config loader: YAML file -> frozen dataclass tree.

The alert webhook URL may be supplied through the RECON_WEBHOOK_URL
environment variable, which wins over the file. Config file holds only
non-secret values.
"""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True)
class DataConfig:
    currencies_path: str = "examples/currencies.json"


@dataclass(frozen=True)
class JournalConfig:
    path: str = "var/journal.jsonl"
    echo_stdout: bool = False


@dataclass(frozen=True)
class AlertingConfig:
    structured_logs: bool = True
    webhook_url: str = ""


@dataclass(frozen=True)
class PreferencesConfig:
    state_path: str = "var/preferences.db"


@dataclass(frozen=True)
class AppConfig:
    data: DataConfig
    journal: JournalConfig
    alerting: AlertingConfig = AlertingConfig()
    preferences: PreferencesConfig = PreferencesConfig()
    recon_config_path: str | None = None


def load_config(path: str | Path = "config.yaml") -> AppConfig:
    """
    Load configuration from a YAML file.

    Environment overrides:
      - RECON_WEBHOOK_URL
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    data_raw = raw.get("data") or {}
    data_cfg = DataConfig(
        currencies_path=str(data_raw.get("currencies_path", "examples/currencies.json")),
    )

    j_raw = raw.get("journal") or {}
    j_cfg = JournalConfig(
        path=str(j_raw.get("path", "var/journal.jsonl")),
        echo_stdout=bool(j_raw.get("echo_stdout", False)),
    )

    a_raw = raw.get("alerting") or {}
    a_cfg = AlertingConfig(
        structured_logs=bool(a_raw.get("structured_logs", True)),
        webhook_url=os.environ.get("RECON_WEBHOOK_URL", str(a_raw.get("webhook_url", ""))),
    )

    p_raw = raw.get("preferences") or {}
    p_cfg = PreferencesConfig(
        state_path=str(p_raw.get("state_path", "var/preferences.db")),
    )

    recon_path = raw.get("recon_config_path")

    return AppConfig(
        data=data_cfg,
        journal=j_cfg,
        alerting=a_cfg,
        preferences=p_cfg,
        recon_config_path=str(recon_path) if recon_path else None,
    )
