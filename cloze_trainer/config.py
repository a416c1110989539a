from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

API_KEY_ENV = "DEEPSEEK_API_KEY"

DEFAULTS = {
    "llm_model": "deepseek-chat",
    "llm_base_url": "https://api.deepseek.com/v1",
    "llm_temperature": 0.7,
    "request_timeout": 60.0,
    "db_path": "history.db",
    "max_history": 50,
    "dictionary_url": "https://api.dictionaryapi.dev/api/v2/entries/en",
    "dictionary_timeout": 10.0,
}


@dataclass
class Settings:
    llm_model: str = DEFAULTS["llm_model"]
    llm_base_url: str = DEFAULTS["llm_base_url"]
    llm_temperature: float = DEFAULTS["llm_temperature"]
    request_timeout: float = DEFAULTS["request_timeout"]
    db_path: str = DEFAULTS["db_path"]
    max_history: int = DEFAULTS["max_history"]
    dictionary_url: str = DEFAULTS["dictionary_url"]
    dictionary_timeout: float = DEFAULTS["dictionary_timeout"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    def to_dict(self) -> dict:
        return {
            "llm_model": self.llm_model,
            "llm_base_url": self.llm_base_url,
            "llm_temperature": self.llm_temperature,
            "request_timeout": self.request_timeout,
            "db_path": self.db_path,
            "max_history": self.max_history,
            "dictionary_url": self.dictionary_url,
            "dictionary_timeout": self.dictionary_timeout,
        }


@dataclass(frozen=True)
class GenerationConfig:
    """Everything one generation request needs, resolved up front."""
    api_key: str = field(repr=False)
    endpoint: str
    model: str
    temperature: float
    timeout: float


def generation_config(settings: Settings) -> GenerationConfig:
    """Snapshot *settings* plus the API key from the environment.

    A missing key is not checked here; the provider reports it as a
    ``ConfigurationError`` before any network call.
    """
    return GenerationConfig(
        api_key=os.environ.get(API_KEY_ENV, ""),
        endpoint=settings.llm_base_url.rstrip("/") + "/chat/completions",
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        timeout=settings.request_timeout,
    )


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
