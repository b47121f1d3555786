"""
Centralized configuration management for the query service.

Handles environment variables, database config, and application settings
with type safety and validation.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


ROOT_DIR = Path(__file__).parent.parent


@dataclass
class DatabaseConfig:
    """Database connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "queries.db"
    username: str = ""
    password: str = ""
    driver: str = "sqlite"  # sqlite, postgresql, mysql, mssql
    pool_size: int = 5
    max_overflow: int = 10
    url: Optional[str] = None

    @property
    def connection_string(self) -> str:
        """Generate SQLAlchemy connection string."""
        if self.url:
            return self.url

        if self.driver == "sqlite":
            return f"sqlite:///{self.database}"

        if self.driver == "mssql":
            # Trusted connection when no credentials are configured
            auth = f"{self.username}:{self.password}@" if self.username else ""
            trusted = "" if self.username else "&trusted_connection=yes"
            return (
                f"mssql+pyodbc://{auth}{self.host}/{self.database}"
                f"?driver=ODBC+Driver+17+for+SQL+Server{trusted}"
            )

        return (
            f"{self.driver}://{self.username}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.connection_string.startswith("sqlite")

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load database config from environment variables."""
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            database=os.getenv("DB_NAME", "queries.db"),
            username=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            driver=os.getenv("DB_DRIVER", "sqlite"),
            pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
            url=os.getenv("DB_URL") or None,
        )


@dataclass
class AppConfig:
    """Application-level configuration."""

    title: str = "Execute Query API"
    version: str = "1.0.0"
    description: str = "Endpoints to run saved queries and inspect results."

    # Stored queries
    queries_dir: Path = ROOT_DIR / "queries"

    # SQL text longer than this is refused before validation
    max_sql_length: int = 4096

    log_level: str = "INFO"

    # Browser origins allowed to call the API; empty disables CORS
    cors_origins: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load app config from environment variables."""
        origins = os.getenv("CORS_ORIGINS", "")
        return cls(
            title=os.getenv("APP_TITLE", "Execute Query API"),
            queries_dir=Path(os.getenv("QUERIES_DIR", str(ROOT_DIR / "queries"))),
            max_sql_length=int(os.getenv("MAX_SQL_LENGTH", "4096")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


class Config:
    """Global configuration manager."""

    _instance: Optional["Config"] = None

    def __init__(self):
        self.db = DatabaseConfig.from_env()
        self.app = AppConfig.from_env()
        self.root_dir = ROOT_DIR

    @classmethod
    def load(cls) -> "Config":
        """Singleton pattern - load or return existing config."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance
