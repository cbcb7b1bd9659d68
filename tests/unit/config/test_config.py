"""Configuration loading: defaults, .env, environment and overrides."""

import pytest

from pte.config import coerce_scalar, deep_merge, load_config, load_typed_config
from pte.config_types import AppConfig, AppleConfig, TransferConfig


class TestEnvironmentOverrides:

    def test_defaults(self):
        cfg = load_config()
        assert cfg["transfer"] == {
            "conflict_resolution": "skip",
            "batch_size": 50,
            "retry_attempts": 3,
            "retry_base_delay": 1.0,
        }
        assert cfg["history"]["max_records"] == 50
        assert cfg["providers"]["youtube"]["requests_per_second"] == 5

    def test_env_override_nested_value(self, monkeypatch):
        monkeypatch.setenv("PTE__TRANSFER__BATCH_SIZE", "20")
        monkeypatch.setenv("PTE__PROVIDERS__APPLE__STOREFRONT", "gb")
        cfg = load_config()
        assert cfg["transfer"]["batch_size"] == 20
        assert cfg["providers"]["apple"]["storefront"] == "gb"

    def test_numeric_one_stays_an_integer(self, monkeypatch):
        monkeypatch.setenv("PTE__TRANSFER__RETRY_ATTEMPTS", "1")
        assert load_config()["transfer"]["retry_attempts"] == 1

    def test_env_file_loading(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "# comment\nPTE__TRANSFER__CONFLICT_RESOLUTION=replace  # inline\nexport PTE__LOG_LEVEL='DEBUG'\n",
            encoding="utf-8",
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PTE_ENABLE_DOTENV", "1")
        cfg = load_config()
        assert cfg["transfer"]["conflict_resolution"] == "replace"
        assert cfg["log_level"] == "DEBUG"
        # real environment wins over .env
        monkeypatch.setenv("PTE__TRANSFER__CONFLICT_RESOLUTION", "ask")
        assert load_config()["transfer"]["conflict_resolution"] == "ask"

    def test_env_file_ignored_under_pytest_by_default(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("PTE__TRANSFER__BATCH_SIZE=7\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        assert load_config()["transfer"]["batch_size"] == 50

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("PTE__TRANSFER__BATCH_SIZE", "20")
        cfg = load_config({"transfer": {"batch_size": 5}})
        assert cfg["transfer"]["batch_size"] == 5
        assert cfg["transfer"]["retry_attempts"] == 3

    def test_env_key_under_scalar_is_ignored(self, monkeypatch):
        monkeypatch.setenv("PTE__LOG_LEVEL__NESTED", "x")
        assert load_config()["log_level"] == "INFO"

    def test_calls_do_not_share_state(self):
        first = load_config()
        first["transfer"]["batch_size"] = 999
        assert load_config()["transfer"]["batch_size"] == 50


@pytest.mark.parametrize("raw,expected", [
    ("true", True), ("No", False), ("42", 42), ("-3", -3), ("0.5", 0.5),
    ('["a","b"]', ["a", "b"]), ("null", None), ("skip", "skip"), ("[broken", "[broken"),
])
def test_coerce_scalar(raw, expected):
    assert coerce_scalar(raw) == expected


def test_deep_merge_keeps_untouched_keys():
    merged = deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}})
    assert merged == {"a": {"x": 1, "y": 3}, "b": 1}


class TestTypedConfig:

    def test_typed_config_mirrors_dict(self):
        typed = load_typed_config()
        assert isinstance(typed, AppConfig)
        assert typed.transfer.batch_size == 50
        assert typed.providers.youtube.privacy_status == "private"
        assert typed.history.path == "data/history.db"

    def test_round_trip_through_dict(self):
        cfg = AppConfig(transfer=TransferConfig(batch_size=10))
        cfg.providers.apple = AppleConfig(storefront="de")
        again = AppConfig.from_dict(cfg.to_dict())
        assert again == cfg

    def test_unknown_keys_are_ignored(self):
        typed = AppConfig.from_dict({"transfer": {"batch_size": 3, "unknown": True}})
        assert typed.transfer.batch_size == 3
