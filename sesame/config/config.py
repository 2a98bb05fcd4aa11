from __future__ import annotations
from typing import Any, Dict, Optional
from pathlib import Path

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Annotated
from pydantic import Field
from dotenv import load_dotenv

load_dotenv()


class GeminiConfig(BaseModel):
    # None → google-genai 自己读取 GOOGLE_API_KEY / GEMINI_API_KEY
    api_key: Annotated[Optional[str], Field(default=None)]
    light_model: Annotated[str, Field(default="gemini-3-flash-preview")]
    capable_model: Annotated[str, Field(default="gemini-3-pro-preview")]
    temperature: Annotated[float, Field(default=0.7)]
    thinking_budget: Annotated[int, Field(default=16000)]


class StorageConfig(BaseModel):
    """本地会话持久化配置"""
    save_path: Annotated[str, Field(default="cache/")]
    session_key: Annotated[str, Field(default="sesame_sessions")]


class Settings(BaseSettings):
    app_name: Annotated[str, Field(default="Sesame")]
    log_level: Annotated[str, Field(default="INFO")]

    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def yaml_settings() -> Dict[str, Any]:
            path = Path("settings.yaml")
            if not path.exists():
                return {}
            return yaml.safe_load(path.read_text(encoding="utf-8")) or {}

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )


Config = Settings()
