import os
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists, for local development
# In production, environment variables should be set directly.
if os.path.exists(".env"):
    from dotenv import load_dotenv
    load_dotenv()


class AppSettings(BaseSettings):
    phrase_config_path: str = "assets/phrases.yml"
    database_url: str = "sqlite:///./assessment.db"
    database_echo: bool = False
    log_level: str = "INFO"
    persist_results: bool = True
    # In-memory session store size; the oldest sessions (completed first) are evicted beyond it
    max_sessions: int = 1000

    # Auth stub: tokens are opaque to clients, HS256-signed here
    auth_secret: str = "change-me-in-production-use-a-long-random-value"
    auth_algorithm: str = "HS256"
    auth_token_ttl_seconds: int = 86400

    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(env_prefix='KSA_')


def get_settings() -> AppSettings:
    return AppSettings()
