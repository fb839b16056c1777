from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DICE_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Logs go to stderr; stdout carries the MCP stdio transport.
    log_level: str = "WARNING"

    # Refuse to roll anything larger than this (checked before rolling).
    max_quantity: int = 100
    max_sides: int = 1000
    # Expressions in a single ';'-separated request.
    max_terms: int = 50


settings = Settings()
