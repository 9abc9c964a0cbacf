from functools import lru_cache

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from url_dispatcher.domain.errors import ConfigurationMissing

# SendMessageBatch accepts at most 10 entries.
MAX_BATCH_SIZE = 10


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"
    port: int = 8080

    # Infra
    database_url: str
    db_pool_max_size: int = Field(default=5, ge=1)
    db_connect_timeout_seconds: int = Field(default=3, ge=1)

    sqs_url: str
    aws_region: str
    iam_access_key: str | None = None
    iam_secret: str | None = None
    sqs_endpoint_url: str | None = None
    sqs_timeout_seconds: float = Field(default=10.0, gt=0)

    # Dispatcher
    batch_size: int = Field(default=10, ge=1, le=MAX_BATCH_SIZE)
    retry_attempts: int = Field(default=3, ge=1)
    retry_backoff_seconds: float = Field(default=2.0, ge=0)
    database_limit: int = Field(default=100, ge=1)
    polling_interval_seconds: float = Field(default=10.0, ge=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _credentials_come_in_pairs(self) -> "Settings":
        if (self.iam_access_key is None) != (self.iam_secret is None):
            raise ValueError("IAM_ACCESS_KEY and IAM_SECRET must be set together")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def load_settings() -> Settings:
    """
    Like get_settings(), but turns validation failures into ConfigurationMissing
    so the entry point can report every missing/invalid variable at once.
    """
    try:
        return get_settings()
    except ValidationError as e:
        fields = sorted(
            {".".join(str(p) for p in err["loc"]) or "settings" for err in e.errors()}
        )
        raise ConfigurationMissing(fields) from e
