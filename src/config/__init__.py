"""
Configuration loaders.

App config:    reads config.yaml, resolves env vars for secrets.
Recon config:  reads recon.default.json (or override), validates against JSON Schema.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    DataConfig,
    JournalConfig,
    PreferencesConfig,
    load_config,
)
from config.recon_config import (
    DirectionConfig,
    DisplayConfig,
    ReconConfig,
    ReconConfigError,
    ToleranceConfig,
    load_recon_config,
)

__all__ = [
    # App config (YAML)
    "AlertingConfig",
    "AppConfig",
    "DataConfig",
    "JournalConfig",
    "PreferencesConfig",
    "load_config",
    # Recon config (JSON + schema)
    "DirectionConfig",
    "DisplayConfig",
    "ReconConfig",
    "ReconConfigError",
    "ToleranceConfig",
    "load_recon_config",
]
