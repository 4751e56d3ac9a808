from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # API Settings
    PROJECT_NAME: str = "Masked Image Edit API"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server Settings
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Usage records - Supabase
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    USAGE_TABLE: str = "image_edit_usage"

    # Generation backend - Bedrock
    AWS_REGION: str = "us-east-1"
    TITAN_MODEL_ID: str = "amazon.titan-image-generator-v1"

    # Generation parameters (static, never taken from the request)
    IMAGE_QUALITY: str = "premium"
    OUTPUT_WIDTH: int = 512
    OUTPUT_HEIGHT: int = 512
    CFG_SCALE: float = 8.0
    NUMBER_OF_IMAGES: int = 2
    GENERATION_TIMEOUT_SECONDS: float = 60.0

    # Input limits
    MAX_PROMPT_LENGTH: int = 512
    MIN_IMAGE_SIZE: int = 256
    MAX_IMAGE_SIZE: int = 1408

    # CORS Settings
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173"
    ]

    def validate_usage_sink(self):
        """Validate that the usage sink credentials are present."""
        required_fields = ["SUPABASE_URL", "SUPABASE_KEY"]
        missing_fields = [name for name in required_fields if not getattr(self, name, None)]

        if missing_fields:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing_fields)}\n"
                f"Please check your .env file or environment variables."
            )


@dataclass(frozen=True)
class HandlerConfig:
    """Everything the image edit handler needs, resolved once at startup from Settings."""

    models: Dict[str, str]
    quality: str
    output_width: int
    output_height: int
    cfg_scale: float
    number_of_images: int
    timeout_seconds: float
    max_prompt_length: int
    min_width: int
    min_height: int
    max_width: int
    max_height: int
    usage_table: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "HandlerConfig":
        return cls(
            models={"titan": settings.TITAN_MODEL_ID},
            quality=settings.IMAGE_QUALITY,
            output_width=settings.OUTPUT_WIDTH,
            output_height=settings.OUTPUT_HEIGHT,
            cfg_scale=settings.CFG_SCALE,
            number_of_images=settings.NUMBER_OF_IMAGES,
            timeout_seconds=settings.GENERATION_TIMEOUT_SECONDS,
            max_prompt_length=settings.MAX_PROMPT_LENGTH,
            min_width=settings.MIN_IMAGE_SIZE,
            min_height=settings.MIN_IMAGE_SIZE,
            max_width=settings.MAX_IMAGE_SIZE,
            max_height=settings.MAX_IMAGE_SIZE,
            usage_table=settings.USAGE_TABLE,
        )


# Global settings instance
settings = Settings()
