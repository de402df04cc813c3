# region Docstring
"""
clipstash.config.factory
Factory module for creating settings objects with multi-source configuration support.
Overview:
- Provides a custom Pydantic BaseSettings subclass that resolves values from
    environment variables, a .env file and YAML files in the per-user config directory.
- Implements a cached factory function for settings instantiation across the application.
Contents:
- Constants:
    - T: TypeVar bound to BaseSettings for generic typing support in the factory function.
- Classes:
    - FactoryBaseSettings:
        Configuration Priority (highest to lowest):
            1. Environment variables
            2. .env file values (working directory)
            3. YAML files (config.yaml, then config.{env}.yaml, in CONFIG_DIR)
            4. Init kwargs
            5. Field defaults
- Functions:
    - get_settings(settings_cls: Type[T]) -> T:
        LRU-cached factory. Call get_settings.cache_clear() after changing the
        environment to force a re-read.
"""

# region Imports
from functools import lru_cache
from typing import Type, TypeVar

from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .base import APP_ENV, APP_ROOT, CONFIG_DIR

# endregion
# region FactoryBaseSettings Class
T = TypeVar("T", bound=BaseSettings)


class FactoryBaseSettings(BaseSettings):
    """
    Custom BaseSettings that supports YAML and Env Vars.
    Priority: Env Vars > .env > YAML > Init kwargs > Defaults
    """

    model_config = SettingsConfigDict(
        env_file=APP_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:

        # Missing files are skipped by the YAML source
        yaml_settings = YamlConfigSettingsSource(
            settings_cls,
            yaml_file=[CONFIG_DIR / "config.yaml", CONFIG_DIR / f"config.{APP_ENV}.yaml"],
        )
        return (
            env_settings,  # Environment variables (highest priority)
            dotenv_settings,  # .env file
            yaml_settings,  # YAML files
            init_settings,  # Init kwargs
        )


# endregion
# region get_settings Factory Function


@lru_cache
def get_settings(settings_cls: Type[T]) -> T:
    """
    Factory function to load any settings class.
    Results are cached so we don't re-read files every time.
    """
    return settings_cls()


# endregion
