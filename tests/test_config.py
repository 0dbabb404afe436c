"""Config loading: default.toml, profile overlay, accessors."""

from pathlib import Path

from fpmmindex.config import Settings, get_settings, load_config
from fpmmindex.config.settings import _deep_merge

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config"


def test_deep_merge_overrides_nested():
    base = {"a": {"x": 1, "y": 2}, "b": 1}
    merged = _deep_merge(base, {"a": {"y": 3}, "c": 4})
    assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
    assert base["a"]["y"] == 2


def test_shipped_defaults():
    settings = get_settings(config_dir=REPO_CONFIG)
    assert settings.db_path == "data/fpmm.duckdb"
    assert settings.checkpoint_every == 500
    assert settings.price_precision == 40
    assert settings.default_collateral_decimals == 18
    assert settings.rpc_url is None
    assert settings.logging_level == "INFO"


def test_dev_profile_overlay():
    settings = get_settings("dev", config_dir=REPO_CONFIG)
    assert settings.db_path == "data/fpmm-dev.duckdb"
    assert settings.logging_level == "DEBUG"
    assert settings.price_precision == 40


def test_missing_profile_and_dir(tmp_path):
    assert load_config("nope", config_dir=tmp_path) == {}
    settings = get_settings(config_dir=tmp_path)
    assert settings.import_batch_size == 500
    assert settings.collateral_decimals == {}
    assert settings.default_collateral_decimals is None


def test_collateral_table_and_rpc(tmp_path):
    (tmp_path / "default.toml").write_text(
        '[collateral.tokens]\n"0xABC" = 6\n\n[rpc]\nurl = "http://node:8545"\ntimeout_sec = 2\n'
    )
    settings = get_settings(config_dir=tmp_path)
    assert settings.collateral_decimals == {"0xABC": 6}
    assert settings.rpc_url == "http://node:8545"
    assert settings.rpc_timeout_sec == 2.0


def test_settings_defaults_without_sections():
    settings = Settings()
    assert settings.logging_format == "console"
    assert settings.checkpoint_every == 500
