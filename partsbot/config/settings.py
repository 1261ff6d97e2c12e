"""
Application configuration and settings.

This module uses pydantic-settings for configuration management with environment variables.
Automatically loads the repository .env file before the settings instance is created.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from partsbot.config.env_loader import load_env

load_env()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "PartSelect Parts Assistant"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # API server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # LLM settings (OpenAI-compatible chat completions endpoint)
    llm_api_key: Optional[str] = None
    llm_base_url: str = "https://api.deepseek.com"
    llm_model: str = "deepseek-chat"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1500

    # Embedding settings
    embedding_api_key: Optional[str] = None
    embedding_base_url: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"

    # ChromaDB settings
    chroma_persist_directory: str = "./chroma_data"
    chroma_host: Optional[str] = None  # Set for client/server mode
    chroma_port: Optional[int] = None  # Set for client/server mode
    product_collection: str = "products"
    hnsw_space: str = "cosine"

    # Seed catalog used by the indexing script
    catalog_path: str = "data/products.json"

    # Search settings
    search_default_limit: int = 3
    compatibility_search_limit: int = 5
    troubleshooting_search_limit: int = 3
    fallback_similarity_threshold: float = 0.3

    # Turn settings
    history_window: int = 10  # Most recent non-system messages sent to the LLM
    turn_timeout_seconds: float = 30.0

    # CORS settings
    allow_origins: list = ["*"]
    allow_credentials: bool = True
    allow_methods: list = ["*"]
    allow_headers: list = ["*"]


# Global settings instance
settings = Settings()
