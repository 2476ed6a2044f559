"""
Configuration settings management with environment variable support.
"""

import json
from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings
from dotenv import load_dotenv


# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Main application settings."""

    # Backend
    api_base_url: str = Field(default="https://admin.ustoyob.tj", validation_alias="API_BASE_URL")
    auth_token: Optional[str] = Field(default=None, validation_alias="AUTH_TOKEN")
    refresh_path: str = "/api/token/refresh"
    locale: str = Field(default="ru", validation_alias="LOCALE")

    # Application settings from environment
    debug: bool = Field(default=False, validation_alias="DEBUG")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, validation_alias="LOG_FILE")
    # None leaves the timeout to the transport
    timeout: Optional[float] = Field(default=None, validation_alias="TIMEOUT")

    # Uploads
    max_gallery_image_bytes: int = 5 * 1024 * 1024
    max_avatar_bytes: int = 2 * 1024 * 1024

    # Presentation
    placeholder_image: str = "../fonTest6.png"
    review_excerpt_length: int = 200

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True

    @classmethod
    def from_json(cls, config_path: str = "config.json") -> "Settings":
        """
        Load settings from JSON configuration file.

        Args:
            config_path: Path to JSON configuration file

        Returns:
            Settings instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)

            return cls(**config_data)

        except FileNotFoundError:
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                "   Create it or configure the client through environment variables"
            )
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file: {e}")
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}")

    @property
    def base_url(self) -> str:
        """API base URL without a trailing slash."""
        return self.api_base_url.rstrip("/")

    def to_dict(self) -> Dict:
        """Convert settings to dictionary, leaving the token out."""
        return self.model_dump(exclude_none=True, exclude={"auth_token"})


@lru_cache()
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Args:
        config_path: Optional path to a JSON configuration file; the
            environment alone is used when omitted

    Returns:
        Settings instance (cached)
    """
    if config_path:
        return Settings.from_json(config_path)
    return Settings()
