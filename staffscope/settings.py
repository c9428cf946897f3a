from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file next to the package).
    - Every field can be overridden with a `STAFFSCOPE_` environment variable.
    """

    model_config = SettingsConfigDict(env_prefix="STAFFSCOPE_", extra="ignore")

    db_url: str | None = None
    access_config_path: str | None = None
    log_level: str = "INFO"

    # bcrypt cost factor; tests lower it to keep hashing fast.
    password_hash_rounds: int = 12
    initial_password_length: int = 16

    # Optional first administrator, created by init_db when both are set.
    bootstrap_admin_username: str | None = None
    bootstrap_admin_password: str | None = None

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "staffscope.db"
        return f"sqlite:///{db_path}"

    def resolved_access_config_path(self) -> Path:
        if self.access_config_path:
            return Path(self.access_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "access_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
