from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration via environment variables.
    """
    # AWS Configuration
    AWS_REGION: str = Field(
        default="us-west-2",
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
        description="AWS Region used for every service client",
    )

    # Logging
    LOG_LEVEL: str = Field(default="WARNING", description="Logging level")
    LOG_FORMAT: str = Field(default="text", description="Log output format (text, json)")
    BATCHI_DEBUG: bool = Field(default=False, description="Emit diagnostic detail for skipped or failed lookups")

    # Resolution defaults
    BATCHI_LOG_GROUP: str = Field(default="/aws/batch/job", description="CloudWatch Logs group for job streams")
    BATCHI_LOG_LINES: int = Field(default=50, description="Number of trailing log lines to fetch")
    BATCHI_FOLLOW_INTERVAL_SECONDS: float = Field(default=1.5, description="Sleep between pages in follow mode")

    # Artifacts
    BATCHI_PRESIGN_EXPIRES: int = Field(default=3600, description="Presigned URL expiry in seconds")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("BATCHI_LOG_LINES")
    @classmethod
    def _positive_line_count(cls, value: int) -> int:
        return max(1, value)

    @field_validator("BATCHI_FOLLOW_INTERVAL_SECONDS")
    @classmethod
    def _clamp_follow_interval(cls, value: float) -> float:
        return min(2.0, max(1.0, value))

    @field_validator("BATCHI_PRESIGN_EXPIRES")
    @classmethod
    def _minimum_expiry(cls, value: int) -> int:
        return max(60, value)


# Global settings instance
settings = Settings()
