"""
settings.py

Configuration management for the asynchelpers engine.

Features:
- Centralized engine configuration using Pydantic settings
- Constants for engine-wide use
- Environment overrides with the ASYNCHELPERS_ prefix

Usage:
Import appsettings for configuration values. Engines read the default token
prefix from here at construction time.
"""

from typing import Final
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from asynchelpers.lib.engine.codec import DEFAULT_PREFIX, prefix_check


class App(BaseSettings):
    """
    Engine settings model.

    Settings can be overridden through environment variables with the
    ASYNCHELPERS_ prefix, e.g. ``ASYNCHELPERS_PREFIX='{$ID$'``.

    Attributes:
        beQuiet: Suppress engine debug logging
        prefix: Default token prefix for new engine instances
    """

    beQuiet: bool = False
    prefix: str = DEFAULT_PREFIX

    model_config = SettingsConfigDict(
        env_prefix="ASYNCHELPERS_",
        case_sensitive=False,
        extra="allow",
    )

    @field_validator("prefix")
    @classmethod
    def prefix_validate(cls, value: str) -> str:
        return prefix_check(value)


appsettings: Final[App] = App()
