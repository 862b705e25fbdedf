"""Tests for user configuration."""

import json

from watch_commander.config import DEFAULT_CONFIG, get_config_path, load_config, save_config


class TestConfig:
    """Test config loading and saving."""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("WATCH_COMMANDER_BACKEND", raising=False)
        monkeypatch.delenv("WATCH_COMMANDER_LLM_URL", raising=False)
        monkeypatch.delenv("WATCH_COMMANDER_LLM_MODEL", raising=False)
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_file_merges_with_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("WATCH_COMMANDER_LLM_MODEL", raising=False)
        assert save_config({"model": "mistral", "timeout": 30.0}, tmp_path) is True
        config = load_config(tmp_path)
        assert config["model"] == "mistral"
        assert config["timeout"] == 30.0
        assert config["day_transition_delay"] == DEFAULT_CONFIG["day_transition_delay"]

    def test_corrupt_file_ignored(self, tmp_path, monkeypatch):
        monkeypatch.delenv("WATCH_COMMANDER_BACKEND", raising=False)
        get_config_path(tmp_path).write_text("{oops", encoding="utf-8")
        assert load_config(tmp_path)["backend"] == DEFAULT_CONFIG["backend"]

    def test_environment_wins(self, tmp_path, monkeypatch):
        save_config({"backend": "openai"}, tmp_path)
        monkeypatch.setenv("WATCH_COMMANDER_BACKEND", "ollama")
        monkeypatch.setenv("WATCH_COMMANDER_LLM_URL", "http://gpu-box:11434")
        config = load_config(tmp_path)
        assert config["backend"] == "ollama"
        assert config["base_url"] == "http://gpu-box:11434"

    def test_save_writes_json(self, tmp_path):
        save_config({"model": "qwen2.5"}, tmp_path / "nested")
        path = get_config_path(tmp_path / "nested")
        assert json.loads(path.read_text(encoding="utf-8")) == {"model": "qwen2.5"}
