"""Tests for recon config loader: JSON loading, schema validation, per-pair overrides."""

import json
from pathlib import Path

import pytest

from config.recon_config import (
    DEFAULT_CONFIG_PATH,
    ReconConfig,
    ReconConfigError,
    _deep_merge,
    load_recon_config,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _default_raw() -> dict:
    """Return the canonical default config as a dict for mutation in tests."""
    with open(DEFAULT_CONFIG_PATH) as f:
        return json.load(f)


def _write_json(data: dict, dir_path: Path, name: str = "recon.default.json") -> Path:
    p = dir_path / name
    p.write_text(json.dumps(data))
    return p


# ---------------------------------------------------------------------------
# Loading the default config
# ---------------------------------------------------------------------------


class TestLoadDefault:
    """Load docs/config/recon.default.json and verify the dataclass tree."""

    def test_loads_successfully(self) -> None:
        assert isinstance(load_recon_config(), ReconConfig)

    def test_tolerances_are_distinct(self) -> None:
        cfg = load_recon_config()
        assert cfg.tolerances.funding == 0.50
        assert cfg.tolerances.leg == 0.01
        assert cfg.tolerances.amendment_amount == 0.01

    def test_direction(self) -> None:
        cfg = load_recon_config()
        assert cfg.direction.stable_code == "USDT"
        assert cfg.direction.stable_rate_max == 1.0

    def test_matches_dataclass_defaults(self) -> None:
        assert load_recon_config() == ReconConfig()


class TestValidation:
    def test_custom_funding_tolerance(self, tmp_path: Path) -> None:
        data = _default_raw()
        data["tolerances"]["funding"] = 1.0
        cfg = load_recon_config(config_path=_write_json(data, tmp_path))
        assert cfg.tolerances.funding == 1.0

    def test_display_optional(self, tmp_path: Path) -> None:
        data = _default_raw()
        del data["display"]
        cfg = load_recon_config(config_path=_write_json(data, tmp_path))
        assert cfg.display.amount_decimals == 2

    def test_missing_required_section(self, tmp_path: Path) -> None:
        data = _default_raw()
        del data["tolerances"]
        with pytest.raises(ReconConfigError, match="validation failed"):
            load_recon_config(config_path=_write_json(data, tmp_path))

    def test_negative_tolerance(self, tmp_path: Path) -> None:
        data = _default_raw()
        data["tolerances"]["leg"] = -0.01
        with pytest.raises(ReconConfigError, match="validation failed"):
            load_recon_config(config_path=_write_json(data, tmp_path))

    def test_unknown_key(self, tmp_path: Path) -> None:
        data = _default_raw()
        data["direction"]["stable"] = "USDT"
        with pytest.raises(ReconConfigError, match="validation failed"):
            load_recon_config(config_path=_write_json(data, tmp_path))

    def test_missing_config_file(self) -> None:
        with pytest.raises(ReconConfigError, match="not found"):
            load_recon_config(config_path="/nonexistent/recon.json")

    def test_missing_schema_file(self, tmp_path: Path) -> None:
        p = _write_json(_default_raw(), tmp_path)
        with pytest.raises(ReconConfigError, match="Schema file not found"):
            load_recon_config(config_path=p, schema_path="/nonexistent/schema.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.json"
        p.write_text("{ this is not json }")
        with pytest.raises(ReconConfigError, match="not valid JSON"):
            load_recon_config(config_path=p)


class TestImmutability:
    def test_top_level_frozen(self) -> None:
        cfg = load_recon_config()
        with pytest.raises(AttributeError):
            cfg.version = "hacked"  # type: ignore[misc]

    def test_nested_frozen(self) -> None:
        cfg = load_recon_config()
        with pytest.raises(AttributeError):
            cfg.tolerances.funding = 5.0  # type: ignore[misc]


class TestDeepMerge:
    def test_nested_override(self) -> None:
        base = {"x": {"y": 1, "z": 2}}
        assert _deep_merge(base, {"x": {"z": 42}}) == {"x": {"y": 1, "z": 42}}

    def test_original_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 99}})
        assert base == {"a": {"b": 1}}

    def test_override_replaces_non_dict_with_dict(self) -> None:
        assert _deep_merge({"a": 1}, {"a": {"nested": True}}) == {"a": {"nested": True}}


class TestPerPairConfig:
    """load_recon_config(pair=...) merges recon.{FROM}_{TO}.json overrides."""

    def _setup_override(self, tmp_path: Path, name: str, overrides: dict) -> Path:
        default_path = _write_json(_default_raw(), tmp_path)
        (tmp_path / name).write_text(json.dumps(overrides))
        return default_path

    def test_override_applied(self, tmp_path: Path) -> None:
        p = self._setup_override(tmp_path, "recon.USDT_AED.json", {"tolerances": {"funding": 2.0}})
        cfg = load_recon_config(config_path=p, pair=("usdt", "aed"))
        assert cfg.tolerances.funding == 2.0
        assert cfg.tolerances.leg == 0.01

    def test_other_pair_unaffected(self, tmp_path: Path) -> None:
        p = self._setup_override(tmp_path, "recon.USDT_AED.json", {"tolerances": {"funding": 2.0}})
        cfg = load_recon_config(config_path=p, pair=("AED", "USDT"))
        assert cfg.tolerances.funding == 0.50

    def test_invalid_override_rejected(self, tmp_path: Path) -> None:
        p = self._setup_override(tmp_path, "recon.INR_AED.json", {"direction": {"stable_rate_max": 0}})
        with pytest.raises(ReconConfigError, match="validation failed"):
            load_recon_config(config_path=p, pair=("INR", "AED"))
