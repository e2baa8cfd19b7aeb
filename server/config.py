# server/config.py

import os
from dataclasses import dataclass, field
from functools import lru_cache
from dotenv import load_dotenv


load_dotenv()


# -------------------------------
# Process Settings
# -------------------------------

@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration read once from the environment (and `.env`).
    Handed to the database, token and storage layers at startup.
    """
    database_url: str | None = None
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    dropbox_access_token: str | None = None
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    log_format: str = "json"
    cors_allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ALLOWED_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")),
            dropbox_access_token=os.getenv("DROPBOX_ACCESS_TOKEN"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
            cors_allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )

    def missing_required(self) -> list[str]:
        missing = []
        if not self.database_url:
            missing.append("DATABASE_URL")
        if not self.jwt_secret_key:
            missing.append("JWT_SECRET_KEY")
        return missing


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
