from functools import lru_cache
from pathlib import Path

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    # Default chain file used by the CLI
    chain_path: Path = Path("chain.json")
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CHAINY_", env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type["Settings"],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment variables take highest priority, then init, dotenv, file secrets
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the process-wide settings, read once from the environment.
    """
    return Settings()
