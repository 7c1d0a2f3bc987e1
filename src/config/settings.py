"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use EMBEDPY_ prefix (e.g., EMBEDPY_VERBOSITY=2).

Settings can also be loaded from a .env file in the project root. They supply
the defaults of every compile Options record, so a deployment can flip
compile_debug or the locals name without touching call sites.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use EMBEDPY_ prefix.

    Examples:
        EMBEDPY_VERBOSITY=3
        EMBEDPY_COMPILE_DEBUG=false
        EMBEDPY_CACHE_MAX_SIZE=256
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDPY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Logging configuration
    verbosity: int = Field(
        default=0,
        description="LOG() verbosity when no explicit level is connected (0=silent, 3=trace)",
    )

    # Compilation defaults
    compile_debug: bool = Field(
        default=True,
        description="Track template line numbers and decorate render errors with source context",
    )

    debug: bool = Field(
        default=False,
        description="Dump generated Python source to stderr on every compile",
    )

    locals_name: str = Field(
        default="locals",
        description="Name of the parameter holding the data context inside templates",
    )

    # Include configuration
    default_extension: str = Field(
        default=".ept",
        description="Extension appended to include paths that have none",
    )

    # Cache configuration
    cache_max_size: int = Field(
        default=0,
        description="Entries kept by the default template store (0 = unbounded)",
    )

    @field_validator("default_extension")
    @classmethod
    def extension_normalize(cls, value: str) -> str:
        """Ensure the default extension carries its leading dot"""
        if value and not value.startswith("."):
            return f".{value}"
        return value

    @field_validator("cache_max_size")
    @classmethod
    def cacheSize_check(cls, value: int) -> int:
        if value < 0:
            raise ValueError("cache_max_size must be zero or positive")
        return value


# Singleton instance - import this in your code
appsettings = AppSettings()
