"""Config file."""
from urllib.parse import quote_plus

from pydantic import AnyHttpUrl, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field("chain-log-indexer", alias="PROJECT_NAME")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # DATABASE
    postgres_user: str = Field(..., alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(..., alias="POSTGRES_PASSWORD")
    postgres_server: str = Field(..., alias="POSTGRES_SERVER")
    postgres_port: int = Field(..., alias="POSTGRES_PORT")
    postgres_db: str = Field(..., alias="POSTGRES_DB")
    database_url: str | None = None
    sync_database_url: str | None = None

    # RPC
    rpc_url: AnyHttpUrl | None = Field(None, alias="RPC_URL")
    rpc_timeout_seconds: float = Field(30.0, alias="RPC_TIMEOUT_SECONDS", gt=0)

    @model_validator(mode="after")
    def assemble_db_urls(self) -> "Settings":
        user = quote_plus(self.postgres_user)
        password = quote_plus(self.postgres_password.get_secret_value())
        host = self.postgres_server
        port = self.postgres_port
        db = self.postgres_db

        if not self.database_url:
            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        if not self.sync_database_url:
            self.sync_database_url = f"postgresql://{user}:{password}@{host}:{port}/{db}"

        return self

    def default_rpc_url(self) -> str:
        if self.rpc_url is None:
            raise ValueError("RPC_URL is not configured")
        return str(self.rpc_url)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )


settings: Settings = Settings()
