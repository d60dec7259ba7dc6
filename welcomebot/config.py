from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"

    # Storage backend behind UserState
    # "memory"   - process-local MemoryStorage (dev/tests, lost on restart)
    # "postgres" - AsyncPostgresStorage (bot_state table)
    storage_backend: Literal["memory", "postgres"] = "memory"

    # Database (only used when storage_backend = "postgres")
    database_url: str | None = None
    pg_pool_min: int = 2
    pg_pool_max: int = 10
    pg_command_timeout: int = 30

    # User state
    state_namespace: str = "UserState"  # Prefix of every storage key
    # False keeps the unconditional per-turn commit (a loaded record is written
    # on every turn). True skips the write when the record did not change.
    state_skip_unchanged_commits: bool = False

    # Welcome bot
    bot_language: Literal["pt", "en"] = "pt"

    # Monitoring
    enable_metrics: bool = True
    enable_request_logging: bool = True

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def is_staging(self) -> bool:
        return self.app_env == "staging"

    def validate_required_for_production(self) -> list[str]:
        """Validate that required settings exist for production"""
        if not self.is_production:
            return []

        missing = []
        if self.storage_backend == "postgres" and not self.database_url:
            missing.append("database_url")
        return missing


def warn_on_risky_config(s: "Settings") -> list[str]:
    warnings: list[str] = []

    if s.is_production and s.storage_backend == "memory":
        warnings.append("prod: storage_backend=memory (user state is lost on restart).")

    if s.storage_backend == "postgres" and not s.database_url:
        warnings.append("storage_backend=postgres but database_url is not set.")

    if s.pg_pool_min > s.pg_pool_max:
        warnings.append(f"pg_pool_min={s.pg_pool_min} is greater than pg_pool_max={s.pg_pool_max}.")

    if not s.state_namespace.strip():
        warnings.append("state_namespace is empty: storage keys will start with '/'.")

    return warnings


def validate_or_warn(s: "Settings") -> None:
    """
    In prod: enforce required settings (hard fail).
    In non-prod: warn only.
    """
    missing = s.validate_required_for_production()

    if missing:
        raise RuntimeError(f"Missing required settings for production: {', '.join(missing)}")

    for msg in warn_on_risky_config(s):
        print(f"[WARN][config] {msg}")


settings = Settings()
validate_or_warn(settings)
