"""
User configuration persistence.

Stores backend, model and pacing settings in a JSON file next to the
saves. Environment variables override the file for the connection
settings.
"""

import json
import os
from pathlib import Path
from typing import TypedDict


class Config(TypedDict, total=False):
    """User configuration."""
    backend: str  # openai, ollama, auto
    base_url: str | None  # None means the backend's default
    model: str
    timeout: float  # Seconds before a generation call is a failure
    temperature: float
    max_tokens: int
    day_transition_delay: float  # Seconds the shift-change overlay holds


DEFAULT_CONFIG: Config = {
    "backend": "openai",
    "base_url": "http://localhost:8888/v1",
    "model": "llama3.1",
    "timeout": 60.0,
    "temperature": 0.8,
    "max_tokens": 2048,
    "day_transition_delay": 3.0,
}

ENV_OVERRIDES = {
    "WATCH_COMMANDER_BACKEND": "backend",
    "WATCH_COMMANDER_LLM_URL": "base_url",
    "WATCH_COMMANDER_LLM_MODEL": "model",
}


def get_config_path(save_dir: Path | str = "saves") -> Path:
    """Get path to config file."""
    return Path(save_dir) / ".watch_commander_config.json"


def load_config(save_dir: Path | str = "saves") -> Config:
    """Load config from file (or defaults), then apply environment overrides."""
    config = DEFAULT_CONFIG.copy()
    path = get_config_path(save_dir)

    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                saved = json.load(f)
            if isinstance(saved, dict):
                # Merge with defaults to handle missing keys
                config.update(saved)
        except (json.JSONDecodeError, OSError):
            pass

    for env_var, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            config[key] = value
    return config


def save_config(config: Config, save_dir: Path | str = "saves") -> bool:
    """Save config to file. Returns True on success."""
    path = get_config_path(save_dir)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except OSError:
        return False
