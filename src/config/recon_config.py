"""
Recon config loader: JSON file -> frozen dataclass tree, validated against JSON Schema.

Default values:      docs/config/recon.default.json
Schema:              docs/config/recon_config.schema.json

Per-pair overrides: place a partial JSON file named ``recon.{FROM}_{TO}.json``
next to the default config (e.g. ``docs/config/recon.USDT_AED.json``). Only
the keys you want to override need to be present; they are deep-merged on
top of the base config before schema validation.

Usage:
    from config.recon_config import load_recon_config
    cfg = load_recon_config()                          # loads default
    cfg = load_recon_config(pair=("USDT", "AED"))      # merges recon.USDT_AED.json if present
    cfg.tolerances.funding  # -> 0.5
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema

logger = logging.getLogger("recon.config")

# ---------------------------------------------------------------------------
# Project root detection (walk up from this file to find pyproject.toml)
# ---------------------------------------------------------------------------


def _find_project_root() -> Path:
    """Walk up from this file looking for pyproject.toml; fall back to CWD."""
    candidate = Path(__file__).resolve().parent
    for _ in range(10):
        if (candidate / "pyproject.toml").exists():
            return candidate
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    return Path.cwd()


_PROJECT_ROOT = _find_project_root()

DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "docs" / "config" / "recon.default.json"
DEFAULT_SCHEMA_PATH = _PROJECT_ROOT / "docs" / "config" / "recon_config.schema.json"


# ---------------------------------------------------------------------------
# Frozen dataclass tree: mirrors recon.default.json structure exactly
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToleranceConfig:
    """Funding and leg tolerances are distinct and must not be conflated."""
    funding: float = 0.50           # receipts/payments vs order amounts
    leg: float = 0.01               # rate-derived leg consistency
    amendment_amount: float = 0.01  # amendment diff and totals


@dataclass(frozen=True)
class DirectionConfig:
    stable_code: str = "USDT"
    stable_rate_max: float = 1.0


@dataclass(frozen=True)
class DisplayConfig:
    amount_decimals: int = 2
    rate_decimals: int = 4


@dataclass(frozen=True)
class ReconConfig:
    """Top-level reconciliation configuration."""
    version: str = "0.1"
    tolerances: ToleranceConfig = ToleranceConfig()
    direction: DirectionConfig = DirectionConfig()
    display: DisplayConfig = DisplayConfig()


# ---------------------------------------------------------------------------
# Deep merge for per-pair overrides
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overrides* into a copy of *base* (override keys win)."""
    merged = dict(base)
    for key, val in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(val, dict):
            merged[key] = _deep_merge(merged[key], val)
        else:
            merged[key] = val
    return merged


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class ReconConfigError(Exception):
    """Raised when recon config loading or validation fails."""


def _read_json(path: Path, label: str) -> dict[str, Any]:
    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ReconConfigError(f"{label} {path.name} is not valid JSON: {exc}") from exc


def _validate_schema(data: dict[str, Any], schema_path: Path) -> None:
    if not schema_path.exists():
        raise ReconConfigError(f"Schema file not found: {schema_path}")
    with open(schema_path) as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as exc:
        raise ReconConfigError(f"Recon config validation failed: {exc.message}") from exc


def _build_config(data: dict[str, Any]) -> ReconConfig:
    """Convert a raw dict (already validated) into the frozen dataclass tree."""
    tol_raw = data["tolerances"]
    dir_raw = data["direction"]
    disp_raw = data.get("display", {})
    return ReconConfig(
        version=data["version"],
        tolerances=ToleranceConfig(
            funding=float(tol_raw["funding"]),
            leg=float(tol_raw["leg"]),
            amendment_amount=float(tol_raw["amendment_amount"]),
        ),
        direction=DirectionConfig(
            stable_code=dir_raw["stable_code"],
            stable_rate_max=float(dir_raw["stable_rate_max"]),
        ),
        display=DisplayConfig(
            amount_decimals=disp_raw.get("amount_decimals", 2),
            rate_decimals=disp_raw.get("rate_decimals", 4),
        ),
    )


def load_recon_config(
    config_path: str | Path | None = None,
    schema_path: str | Path | None = None,
    pair: tuple[str, str] | None = None,
) -> ReconConfig:
    """Load and validate reconciliation configuration.

    Parameters
    ----------
    config_path:
        Path to a recon JSON config file.  Defaults to ``docs/config/recon.default.json``.
    schema_path:
        Path to the JSON Schema file.  Defaults to ``docs/config/recon_config.schema.json``.
    pair:
        Optional ``(from_currency, to_currency)``.  When provided, the loader
        looks for ``recon.{FROM}_{TO}.json`` next to the base config and
        deep-merges it before validation.  A missing override is not an error.

    Raises
    ------
    ReconConfigError
        If the file is missing, unparseable, or fails schema validation.
    """
    cfg_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    sch_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH

    if not cfg_path.exists():
        raise ReconConfigError(f"Recon config file not found: {cfg_path}")

    data = _read_json(cfg_path, "Recon config")

    if pair:
        from_code, to_code = pair
        override_path = cfg_path.parent / f"recon.{from_code.upper()}_{to_code.upper()}.json"
        if override_path.exists():
            data = _deep_merge(data, _read_json(override_path, "Per-pair config"))
            logger.info("Loaded per-pair config: %s", override_path.name)
        else:
            logger.debug("No per-pair config found at %s; using defaults", override_path)

    _validate_schema(data, sch_path)

    return _build_config(data)
