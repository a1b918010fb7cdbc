from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="Newsflash API", env="APP_NAME", description="Human readable service name")
    environment: str = Field(default="development", env="ENVIRONMENT", description="Deployment environment name")
    debug: bool = Field(default=False, env="DEBUG", description="Enable debug mode")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:8081",
            "http://localhost:19006",
            "http://127.0.0.1",
        ],
        env="CORS_ORIGINS",
        description="List of allowed CORS origins",
    )

    database_url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy URL; takes precedence over the DB_* parts",
    )
    database_user: str = Field(default="newsflash", env="DB_USER")
    database_password: str = Field(default="newsflash", env="DB_PASSWORD")
    database_host: str = Field(default="db", env="DB_HOST")
    database_port: int = Field(default=3306, env="DB_PORT")
    database_name: str = Field(default="newsflash", env="DB_NAME")

    jwt_secret_key: str = Field(default="changeme", env="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", env="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, env="ACCESS_TOKEN_EXPIRE_MINUTES")

    websocket_keepalive_timeout_seconds: float = Field(
        default=30,
        env="WEBSOCKET_KEEPALIVE_TIMEOUT_SECONDS",
        description="Idle time after which the server pings a live connection.",
    )
    websocket_keepalive_ping_interval_seconds: float = Field(
        default=25,
        env="WEBSOCKET_KEEPALIVE_PING_INTERVAL_SECONDS",
        description="Interval advertised to clients for their own pings.",
    )
    live_send_queue_size: int = Field(
        default=256,
        env="LIVE_SEND_QUEUE_SIZE",
        description="Events buffered per connection before new ones are dropped.",
    )

    push_notifications_enabled: bool = Field(
        default=True,
        env="PUSH_NOTIFICATIONS_ENABLED",
        description="Toggle push notifications to registered devices.",
    )
    push_gateway_url: str = Field(
        default="https://exp.host/--/api/v2/push/send",
        env="PUSH_GATEWAY_URL",
        description="Endpoint of the Expo push service.",
    )
    push_access_token: str | None = Field(
        default=None,
        env="PUSH_ACCESS_TOKEN",
        description="Optional Expo access token sent as a bearer credential.",
    )
    push_batch_size: int = Field(
        default=100,
        env="PUSH_BATCH_SIZE",
        description="Tokens per gateway request; capped at the provider limit of 100.",
    )
    push_request_timeout_seconds: float = Field(default=10, env="PUSH_REQUEST_TIMEOUT_SECONDS")
    push_deactivate_unregistered_tokens: bool = Field(
        default=False,
        env="PUSH_DEACTIVATE_UNREGISTERED_TOKENS",
        description="Deactivate tokens the gateway reports as DeviceNotRegistered.",
    )
    notification_body_max_length: int = Field(default=100, env="NOTIFICATION_BODY_MAX_LENGTH")
    fanout_drain_timeout_seconds: float = Field(
        default=10,
        env="FANOUT_DRAIN_TIMEOUT_SECONDS",
        description="How long shutdown waits for in-flight fan-outs.",
    )

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"mysql+pymysql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v

    @field_validator("push_batch_size")
    @classmethod
    def cap_push_batch_size(cls, value: int) -> int:
        return max(1, min(value, 100))


@lru_cache
def get_settings() -> Settings:
    return Settings()
