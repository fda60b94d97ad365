from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for structured JSON, False for colored console

    # Compiled-matcher cache
    CACHE_COMPILED: bool = True

    # Dispatch tables
    DISPATCH_ENABLED: bool = True
    DISPATCH_MIN_CLAUSES: int = 2

    # Failure reports
    ERROR_VALUE_MAX_LENGTH: int = 200

    model_config = SettingsConfigDict(env_prefix="SCHEMATCH_", env_file=".env", extra="ignore")

    @property
    def dispatch_threshold(self) -> int:
        # A table over a single clause can never prune anything
        return max(2, self.DISPATCH_MIN_CLAUSES)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
