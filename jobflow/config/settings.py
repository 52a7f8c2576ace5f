"""
JobFlow settings: an optional JSON file, then environment variables and .env.
"""

import json
import os
from pathlib import Path
from typing import Dict, Optional
from functools import lru_cache

from pydantic import BaseModel, ValidationError, Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv


# Load environment variables
load_dotenv()


class AISettings(BaseModel):
    """Model names per feature, picked up by AIService."""
    text_model: str = "gemini-2.5-flash"
    vision_model: str = "gemini-3-pro-preview"
    image_model: str = "gemini-3-pro-image-preview"
    chat_model: str = "gemini-2.5-flash"
    fallback_model: str = "llama3.1"
    temperature: float = 0.7
    max_tokens: int = 4000


class Settings(BaseSettings):
    """Server, storage and logging settings."""

    ai_settings: AISettings = Field(default_factory=AISettings)

    # Application settings from environment
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")
    secret_key: str = Field(default="jobflow-dev-secret", validation_alias="SECRET_KEY")
    host: str = Field(default="127.0.0.1", validation_alias="HOST")
    port: int = Field(default=5001, validation_alias="PORT")
    # In-memory chat and avatar studio sessions kept at once
    max_sessions: int = Field(default=100, ge=1, validation_alias="MAX_SESSIONS")

    # Directories
    data_dir: Path = Field(default=Path("data/storage"), validation_alias="DATA_DIR")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    @classmethod
    def from_json(cls, config_path: str = "config.json") -> "Settings":
        """
        Load settings from an optional JSON configuration file.

        A missing file is not an error: defaults and environment variables
        are used instead.

        Args:
            config_path: Path to JSON configuration file

        Returns:
            Settings instance

        Raises:
            ValueError: If the file is not valid JSON or holds invalid values
        """
        config_data: Dict = {}
        if os.path.exists(config_path):
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    config_data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"❌ Invalid JSON in config file: {e}")

        try:
            settings = cls(**config_data)
        except ValidationError as e:
            raise ValueError(f"❌ Invalid configuration: {e}")

        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


@lru_cache()
def get_settings(config_path: str = "config.json") -> Settings:
    """
    Get cached settings instance.

    Args:
        config_path: Path to JSON configuration file

    Returns:
        Settings instance (cached)
    """
    return Settings.from_json(config_path)
