"""
tests/test_config.py — YAML Configuration Loader
=================================================
"""

from __future__ import annotations

import pytest

from coinvault.config import default_config, load_config


def test_load_full_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "platform_name: Comunidade\n"
        "api_port: 9000\n"
        "direct_participation_types: [fisico, participe]\n"
        "wallet_history_limit: 20\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.platform_name == "Comunidade"
    assert cfg.api_port == 9000
    assert cfg.direct_participation_types == ("fisico", "participe")
    assert cfg.wallet_history_limit == 20


def test_defaults_for_optional_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("platform_name: X\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.direct_participation_types == ("fisico",)
    assert cfg.wallet_history_limit == 50


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_missing_required_key_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("api_port: 1\n", encoding="utf-8")
    with pytest.raises(KeyError):
        load_config(path)


def test_default_config_is_frozen():
    cfg = default_config()
    with pytest.raises(AttributeError):
        cfg.api_port = 1
