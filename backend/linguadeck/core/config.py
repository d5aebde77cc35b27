from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    api_key: str = Field("", alias="api_key")
    base_url: str = Field("https://api.deepseek.com/v1", alias="base_url")
    model: str = Field("deepseek-chat", alias="model")
    max_retries: int = Field(3, alias="max_retries")


class LoggingConfig(BaseModel):
    level: str = Field("INFO", alias="level")
    file: str = Field("./backend/logs/app.log", alias="file")
    max_bytes: int = Field(5_000_000, alias="max_bytes")
    backup_count: int = Field(5, alias="backup_count")
    quiet_paths: list[str] = Field(default=["GET /api/flashcards", "GET /api/sessions"], alias="quiet_paths")


class DatabaseConfig(BaseModel):
    url: str = Field("sqlite:///./backend/data/linguadeck.db", alias="url")


class SecurityConfig(BaseModel):
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        alias="cors_origins",
    )


class SRSConfig(BaseModel):
    default_language: str = Field("ar", alias="default_language")
    # "Reviewed today" historically counts every language; see DESIGN.md
    scope_reviewed_today_to_language: bool = Field(False, alias="scope_reviewed_today_to_language")
    translate_batch_size: int = Field(15, alias="translate_batch_size")


class LanguageSeed(BaseModel):
    code: str
    name: str
    direction: Literal["ltr", "rtl"] = "ltr"


class AppConfig(BaseModel):
    llm: LLMConfig = LLMConfig()
    logging: LoggingConfig = LoggingConfig()
    database: DatabaseConfig = DatabaseConfig()
    security: SecurityConfig = SecurityConfig()
    srs: SRSConfig = SRSConfig()
    languages: list[LanguageSeed] = Field(
        default=[LanguageSeed(code="ar", name="Arabic", direction="rtl")],
    )


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("r", encoding="utf-8") as file:
        data = yaml.safe_load(file) or {}
    return data


@lru_cache
def get_config() -> AppConfig:
    candidates = [
        Path(os.getenv("APP_CONFIG_PATH", "")),
        Path("config/config.yaml"),
        Path("backend/config/config.yaml"),
    ]

    config_path = None
    for path in candidates:
        if path and path.exists() and path.is_file():
            config_path = path
            break

    if not config_path:
        if Path("config/config.example.yaml").exists():
            config_path = Path("config/config.example.yaml")
        elif Path("backend/config/config.example.yaml").exists():
            config_path = Path("backend/config/config.example.yaml")
        else:
            raise FileNotFoundError("Config file not found in config/config.yaml or backend/config/config.yaml")

    raw = _load_yaml(config_path)
    return AppConfig(**raw)
