from __future__ import annotations

from functools import lru_cache

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables (GITHUB_TOKEN, GITHUB_OWNER, ...)
    - .env file (if present)
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Required: the app refuses every request if any of these is missing
    github_token: str
    github_owner: str
    github_repo: str

    # Where the collection lives inside the repository
    github_branch: str = "main"
    github_file_path: str = "locations.json"

    github_api_base: str = "https://api.github.com"
    user_agent: str = "temperious-manager"
    app_name: str = "Temperious Manager"


@lru_cache
def get_settings() -> Settings:
    """
    Build settings once per process.

    Missing required variables surface as ConfigError instead of pydantic's
    ValidationError so the request boundary renders them like any other
    store failure. A failed attempt is not cached.
    """
    try:
        return Settings()
    except ValidationError as e:
        missing = [
            str(err["loc"][0]).upper()
            for err in e.errors()
            if err.get("type") == "missing" and err.get("loc")
        ]
        if missing:
            raise ConfigError(f"Missing configuration: {', '.join(missing)}") from e
        raise ConfigError(f"Invalid configuration: {e}") from e
