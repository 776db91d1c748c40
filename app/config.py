from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings configuration."""

    # API settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Snipbook API"

    # File upload settings
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # CORS settings
    BACKEND_CORS_ORIGINS: list[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # Masking settings (pixel widths of the upright shape)
    OUTPUT_WIDTH: int = 800
    PREVIEW_WIDTH: int = 400
    MAX_OUTPUT_WIDTH: int = 2048
    MASK_SUPERSAMPLE: int = 4

    # Book settings
    DEFAULT_PAGE_CAPACITY: int = 4
    MAX_PAGE_CAPACITY: int = 12
    BOOK_TITLE: str = "My Snipbook"

    class Config:
        """Pydantic configuration class."""

        case_sensitive = True
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Create instance
settings = get_settings()
