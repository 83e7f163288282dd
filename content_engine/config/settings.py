"""
Application settings and configuration management.

This module handles all environment variables, API keys, and application
configuration using Pydantic settings management for type safety and validation.
Optional credentials switch features off rather than failing: no Sanity project
means the built-in brand list, no retail keys means no catalog enrichment, no
Anthropic key means description-only analysis.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from content_engine.models.schemas import ProductType


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are stored as SecretStr to prevent accidental logging.
    Settings are validated on load and cached for performance.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generative analysis
    anthropic_api_key: Optional[SecretStr] = Field(default=None, alias="ANTHROPIC_API_KEY")
    claude_model: str = Field(default="claude-sonnet-4-20250514", alias="CLAUDE_MODEL")
    claude_max_tokens: int = Field(default=2000, alias="CLAUDE_MAX_TOKENS")
    analysis_temperature: float = Field(default=0.3, alias="ANALYSIS_TEMPERATURE")

    # Brand directory (Sanity)
    sanity_project_id: Optional[str] = Field(default=None, alias="SANITY_PROJECT_ID")
    sanity_dataset: str = Field(default="production", alias="SANITY_DATASET")
    sanity_token: Optional[SecretStr] = Field(default=None, alias="SANITY_TOKEN")
    sanity_api_version: str = Field(default="2024-01-01", alias="SANITY_API_VERSION")
    brand_cache_ttl_seconds: int = Field(default=1800, alias="BRAND_CACHE_TTL_SECONDS")

    # Retail catalog (Product Advertising API)
    amazon_access_key: Optional[SecretStr] = Field(default=None, alias="AMAZON_ACCESS_KEY")
    amazon_secret_key: Optional[SecretStr] = Field(default=None, alias="AMAZON_SECRET_KEY")
    amazon_partner_tag: Optional[str] = Field(default=None, alias="AMAZON_ASSOCIATE_TAG")
    amazon_marketplace: str = Field(default="www.amazon.com", alias="AMAZON_MARKETPLACE")
    amazon_host: str = Field(default="webservices.amazon.com", alias="AMAZON_HOST")
    amazon_region: str = Field(default="us-east-1", alias="AMAZON_REGION")
    retail_search_index: str = Field(default="Beauty", alias="RETAIL_SEARCH_INDEX")
    retail_cache_ttl_seconds: int = Field(default=86400, alias="RETAIL_CACHE_TTL_SECONDS")
    retail_min_request_interval_seconds: float = Field(
        default=1.1,
        alias="RETAIL_MIN_REQUEST_INTERVAL_SECONDS",
    )
    max_enriched_products: int = Field(default=50, alias="MAX_ENRICHED_PRODUCTS")

    # Extraction policy
    default_product_type: ProductType = Field(
        default=ProductType.OTHER,
        alias="DEFAULT_PRODUCT_TYPE",
    )

    # Application Configuration
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        alias="APP_ENV"
    )
    request_timeout_seconds: int = Field(default=30, alias="REQUEST_TIMEOUT_SECONDS")

    @field_validator(
        "anthropic_api_key",
        "sanity_project_id",
        "sanity_token",
        "amazon_access_key",
        "amazon_secret_key",
        "amazon_partner_tag",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("anthropic_api_key", mode="after")
    @classmethod
    def validate_anthropic_key(cls, v: Optional[SecretStr]) -> Optional[SecretStr]:
        """Validate Anthropic API key format."""
        if v is not None and not v.get_secret_value().startswith("sk-"):
            raise ValueError("Invalid Anthropic API key format")
        return v

    @field_validator("retail_min_request_interval_seconds")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Request interval cannot be negative")
        return v

    def is_retail_configured(self) -> bool:
        """Both halves of the retail API credential pair are present."""
        return self.amazon_access_key is not None and self.amazon_secret_key is not None

    def is_analysis_configured(self) -> bool:
        return self.anthropic_api_key is not None

    def is_brand_directory_configured(self) -> bool:
        return bool(self.sanity_project_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
