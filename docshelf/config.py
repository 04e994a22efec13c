"""Configuration settings for the docshelf service."""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application configuration
    app_env: str = "dev"
    log_level: str = "INFO"
    cors_origins: str = "*"

    # MongoDB (document + user metadata)
    mongo_uri: str = "mongodb://mongo:27017"
    mongo_db: str = "docshelf"

    # Session tokens
    jwt_secret: str = "dev-secret"
    jwt_ttl_min: int = 24 * 60

    # Object storage (MinIO / S3-compatible)
    minio_endpoint: Optional[str] = None
    minio_access_key: Optional[str] = None
    minio_secret_key: Optional[str] = None
    minio_secure: bool = False
    # Base used for public URLs; defaults to the MinIO endpoint itself
    storage_public_url: Optional[str] = None
    default_bucket: str = "default"
    signed_url_ttl_seconds: int = 24 * 60 * 60
    default_bucket_size_limit: int = 50 * 1024 * 1024
    user_bucket_size_limit: int = 10 * 1024 * 1024

    # Hosted summarization providers, tried in this order
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-sonnet-20241022"
    deepseek_api_key: Optional[str] = None
    deepseek_model: str = "deepseek-chat"
    deepseek_base_url: str = "https://api.deepseek.com"
    google_generative_ai_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"

    # Summarizer tuning
    summary_prompt_chars: int = 4000
    summary_max_output_chars: int = 1200
    summary_sentences: int = 2
    fetch_timeout_seconds: float = 10.0
    provider_timeout_seconds: float = 30.0

    @property
    def cors_origin_list(self) -> List[str]:
        """CORS_ORIGINS is a comma-separated string."""
        return [s.strip() for s in self.cors_origins.split(",") if s.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
