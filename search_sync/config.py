"""Configuration management using pydantic-settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Meilisearch settings
    meilisearch_url: str = ""
    meilisearch_api_key: str = ""
    meilisearch_timeout: int = 30

    # Record size limits (bytes of the serialized record)
    # max_record_size_limit overrides the default when set
    max_record_size_limit: Optional[int] = None
    default_max_record_size: int = 10000

    # Extra attributes that must never be type-coerced (comma-separated)
    # Example: "ean,color_code"
    non_castable_attributes: str = ""

    # Send records as partial updates instead of full replacements
    partial_update_enabled: bool = False

    # Admin API token (X-Admin-Token header). Empty disables the check.
    admin_token: str = ""

    @property
    def is_search_configured(self) -> bool:
        """True when both the engine URL and the API key are set."""
        return bool(self.meilisearch_url and self.meilisearch_api_key)

    @property
    def max_record_size(self) -> int:
        """Effective record size budget."""
        if self.max_record_size_limit:
            return self.max_record_size_limit
        return self.default_max_record_size

    @property
    def non_castable_attribute_list(self) -> list[str]:
        """Parse the comma-separated non-castable attribute names."""
        return [
            name.strip()
            for name in self.non_castable_attributes.split(",")
            if name.strip()
        ]


# Global settings instance
settings = Settings()
