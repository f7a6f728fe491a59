"""Unit tests for engine settings loading."""

import os

import pytest
from pydantic import ValidationError

from form_rules.config import EngineSettings, load_engine_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from FORM_RULES_* variables and any local .env file."""
    for name in ("FORM_RULES_CONFIG", "FORM_RULES_ORDER_BY_PRIORITY", "FORM_RULES_MAX_SETTLE_PASSES", "FORM_RULES_LOG_RULE_TIMINGS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestEngineSettings:
    def test_defaults(self):
        settings = EngineSettings()
        assert settings.order_by_priority is False
        assert settings.max_settle_passes == 10
        assert settings.log_rule_timings is False

    def test_flag_strings(self):
        assert EngineSettings(order_by_priority="yes").order_by_priority is True
        assert EngineSettings(log_rule_timings="off").log_rule_timings is False

    def test_max_settle_passes_minimum(self):
        with pytest.raises(ValidationError):
            EngineSettings(max_settle_passes=0)

    def test_unknown_setting_rejected(self):
        with pytest.raises(ValidationError):
            EngineSettings(debounce=True)


class TestLoadEngineSettings:
    def test_no_file_gives_defaults(self):
        assert load_engine_settings() == EngineSettings()

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_engine_settings(tmp_path / "absent.yaml") == EngineSettings()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("order_by_priority: true\nmax_settle_passes: 4\n", encoding="utf-8")
        settings = load_engine_settings(path)
        assert settings.order_by_priority is True
        assert settings.max_settle_passes == 4

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "engine.yaml"
        path.write_text("log_rule_timings: yes\n", encoding="utf-8")
        monkeypatch.setenv("FORM_RULES_CONFIG", str(path))
        assert load_engine_settings().log_rule_timings is True

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "engine.yaml"
        path.write_text("max_settle_passes: 4\n", encoding="utf-8")
        monkeypatch.setenv("FORM_RULES_MAX_SETTLE_PASSES", "7")
        assert load_engine_settings(path).max_settle_passes == 7

    def test_dotenv_file_loaded(self, tmp_path):
        (tmp_path / ".env").write_text("FORM_RULES_ORDER_BY_PRIORITY=true\n", encoding="utf-8")
        try:
            assert load_engine_settings().order_by_priority is True
        finally:
            os.environ.pop("FORM_RULES_ORDER_BY_PRIORITY", None)

    def test_invalid_values_raise(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("max_settle_passes: -3\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid engine settings"):
            load_engine_settings(path)

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_engine_settings(path)

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("a: [oops", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_engine_settings(path)
