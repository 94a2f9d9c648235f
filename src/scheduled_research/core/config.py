"""Configuration settings for Scheduled Research."""
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Storage
    database_path: Path = Path.home() / ".scheduled-research" / "jobs.db"

    # Firecrawl (search + scrape)
    firecrawl_api_key: Optional[str] = None
    firecrawl_base_url: str = "https://api.firecrawl.dev/v1"
    search_timeout_seconds: int = 60
    scrape_timeout_seconds: int = 30

    # Gemini (report synthesis)
    google_api_key: Optional[str] = None
    analysis_model: str = "gemini-2.5-flash"
    analysis_max_output_tokens: int = 8192

    # Gmail delivery
    oauth_credentials_path: Path = Path.home() / ".scheduled-research" / "oauth-credentials.json"
    oauth_token_path: Path = Path.home() / ".scheduled-research" / "oauth-token.json"
    gmail_scopes: list[str] = [
        "https://www.googleapis.com/auth/gmail.send",
    ]
    gmail_rate_limit: int = 250

    # API authentication (HS256 bearer tokens)
    jwt_secret_key: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 30

    # API Server
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    class Config:
        env_prefix = "SCHEDULED_RESEARCH_"
        env_file = ".env"


settings = Settings()
