from typing import Literal, Optional

from pydantic import computed_field
from pydantic_core import MultiHostUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_empty=True, extra="ignore"
    )
    PROJECT_NAME: str = "Subflow"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    # Plugin nesting: a plugin calling a plugin calling a plugin...
    # Calls deeper than this are rejected before any graph is loaded.
    MAX_PLUGIN_DEPTH: int = 5

    # Upper bound for a single node inside the in-process dispatcher (seconds)
    NODE_TIMEOUT_SECONDS: float = 300.0

    # Plugin store configuration - defaults to SQLite for easy setup
    # Set POSTGRES_SERVER to use PostgreSQL instead
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "app"
    POSTGRES_PASSWORD: str = "changethis"
    POSTGRES_DB: str = "app"

    SQLITE_DB_PATH: str = "subflow.db"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """
        Returns the database URI. Uses SQLite by default for easy setup.
        Set POSTGRES_SERVER environment variable to use PostgreSQL instead.
        """
        if self.POSTGRES_SERVER:
            return str(
                MultiHostUrl.build(
                    scheme="postgresql+psycopg",
                    username=self.POSTGRES_USER,
                    password=self.POSTGRES_PASSWORD,
                    host=self.POSTGRES_SERVER,
                    port=self.POSTGRES_PORT,
                    path=self.POSTGRES_DB,
                )
            )
        return f"sqlite:///{self.SQLITE_DB_PATH}"


settings = Settings()  # type: ignore
