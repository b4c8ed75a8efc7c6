import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

load_dotenv(override=False)

# The HTTP listener port is not configurable.
PORT = 8080
DEFAULT_DB_PORT = 5432


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    db_user: str = ""
    db_password: str = ""
    db_name: str = ""
    db_host: str = "localhost"
    db_port: int = DEFAULT_DB_PORT
    database_url: Optional[str] = None
    log_level: str = "INFO"
    port: int = PORT

    @property
    def sqlalchemy_url(self):
        """DATABASE_URL when given, otherwise a postgres URL from the DB_* parts."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+psycopg2",
            username=self.db_user or None,
            password=self.db_password or None,
            host=self.db_host or None,
            port=self.db_port,
            database=self.db_name or None,
            query={"sslmode": "disable"},
        )


def load_settings() -> Settings:
    return Settings(
        db_user=os.getenv("DB_USER", ""),
        db_password=os.getenv("DB_PASSWORD", ""),
        db_name=os.getenv("DB_NAME", ""),
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=_env_int("DB_PORT", DEFAULT_DB_PORT),
        database_url=os.getenv("DATABASE_URL") or None,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
