"""Configuration management for the Quizmeme service.

This module provides centralized configuration management using Pydantic
Settings.  Values are loaded from environment variables with the
``QUIZMEME_`` prefix, and the ``quizmeme`` command line flags override them.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:

1. Keyword arguments (the CLI passes its flags this way)
2. Environment variables (``QUIZMEME_*`` prefix)
3. ``.env`` file in the working directory
4. Default values defined in :class:`QuizmemeConfig`

Example .env file::

    QUIZMEME_BIND=0.0.0.0:8080
    QUIZMEME_DESCRIPTIONS_PATH=/etc/quizmeme/descriptions.json
    QUIZMEME_DEFAULT_BASE=qvgdm
    QUIZMEME_LOG_LEVEL=DEBUG

Unlike a module-level singleton, a config instance is built explicitly by
``main()`` (or by tests) and handed to
:func:`~quizmeme.api.main.create_app`.  It is never mutated afterwards.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class QuizmemeConfig(BaseSettings):
    """Main configuration for the Quizmeme service.

    Attributes
    ----------
    Server Settings:
        bind : str
            ``host:port`` address to listen on.
        shutdown_timeout : int
            Seconds to drain in-flight requests on shutdown.
        cors_origins : list[str]
            Origins allowed by the CORS middleware.

    Template Settings:
        descriptions_path : Path
            JSON file mapping template names to descriptions.
        default_base : str
            Template used when a request does not name one.
        font_path : Path | None
            TrueType/OpenType font to draw with.  ``None`` uses the font
            embedded in Pillow.

    Logging:
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            Root log level configured by ``main()``.

    Examples
    --------
        >>> cfg = QuizmemeConfig(bind="0.0.0.0:9000", _env_file=None)
        >>> cfg.host, cfg.port
        ('0.0.0.0', 9000)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="QUIZMEME_",
        case_sensitive=False,
        frozen=True,
    )

    # Server settings
    bind: str = Field(
        default="localhost:8080",
        description="Address to listen to (host:port)",
    )
    shutdown_timeout: int = Field(
        default=60,
        description="Seconds granted to in-flight requests on shutdown",
        ge=0,
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware",
    )

    # Template settings
    descriptions_path: Path = Field(
        default=Path("./descriptions.json"),
        description="JSON file describing the available templates",
    )
    default_base: str = Field(
        default="qvgdm",
        description="Template used when the request omits 'base'",
        min_length=1,
    )
    font_path: Path | None = Field(
        default=None,
        description="Font file to draw with (None = font embedded in Pillow)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("bind")
    @classmethod
    def _check_bind(cls, value: str) -> str:
        host, sep, port = value.rpartition(":")
        if not sep or not host:
            raise ValueError(f"bind address {value!r} must be of the form host:port")
        if not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"bind address {value!r} has an invalid port")
        return value

    @property
    def host(self) -> str:
        """Host part of :attr:`bind`."""
        return self.bind.rpartition(":")[0]

    @property
    def port(self) -> int:
        """Port part of :attr:`bind`."""
        return int(self.bind.rpartition(":")[2])
