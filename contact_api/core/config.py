from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # MongoDB URI - the database name is taken from the path
    mongodb_uri: str = "mongodb://localhost:27017/contact-us-db"

    # Outbound email. No defaults for credentials: a missing value only
    # fails when a confirmation is actually sent.
    email_service: Optional[str] = None
    email_host: Optional[str] = None
    email_port: Optional[int] = None
    email_user: Optional[str] = None
    email_pass: Optional[str] = None

    # Contact form rate limiting
    rate_limit_max: int = 10
    rate_limit_window_seconds: int = 15 * 60
    trust_proxy: bool = False

    # CORS settings
    allowed_origins: list[str] = ["*"]

@lru_cache
def get_settings():
    return Settings()
