"""Tests for config loader: YAML parsing, env var resolution, error cases."""

from pathlib import Path

import pytest

from config import load_config


def _write_yaml(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


def test_load_config_basic(tmp_path: Path) -> None:
    path = _write_yaml(
        tmp_path / "config.yaml",
        """
data:
  currencies_path: fixtures/currencies.json
journal:
  path: out/journal.jsonl
  echo_stdout: true
preferences:
  state_path: out/prefs.db
recon_config_path: docs/config/recon.custom.json
""",
    )
    cfg = load_config(path)
    assert cfg.data.currencies_path == "fixtures/currencies.json"
    assert cfg.journal.path == "out/journal.jsonl"
    assert cfg.journal.echo_stdout is True
    assert cfg.preferences.state_path == "out/prefs.db"
    assert cfg.recon_config_path == "docs/config/recon.custom.json"


def test_load_config_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RECON_WEBHOOK_URL", raising=False)
    cfg = load_config(_write_yaml(tmp_path / "config.yaml", "data: {}\n"))
    assert cfg.journal.echo_stdout is False
    assert cfg.alerting.structured_logs is True
    assert cfg.alerting.webhook_url == ""
    assert cfg.recon_config_path is None


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    cfg = load_config(_write_yaml(tmp_path / "config.yaml", ""))
    assert cfg.data.currencies_path == "examples/currencies.json"


def test_webhook_env_var_wins(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write_yaml(tmp_path / "config.yaml", "alerting:\n  webhook_url: http://file.example/hook\n")
    monkeypatch.setenv("RECON_WEBHOOK_URL", "http://env.example/hook")
    assert load_config(path).alerting.webhook_url == "http://env.example/hook"


def test_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        load_config("/nonexistent/config.yaml")


def test_non_mapping_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="YAML mapping"):
        load_config(_write_yaml(tmp_path / "config.yaml", "- a\n- b\n"))
