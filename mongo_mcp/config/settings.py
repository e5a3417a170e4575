"""Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration with environment variable support,
validation, and clear defaults. It is the single source of truth for the ambient
settings of the server: logging, driver timeouts and executor sizing.

The MongoDB connection string itself is NOT part of these settings. It is passed
as the single positional command line argument and handed to the store gateway
directly.

Settings can be overridden via environment variables prefixed with ``MONGO_MCP_``
(e.g., ``MONGO_MCP_LOG_LEVEL=DEBUG``) or a ``.env`` file.

Example:
    >>> from mongo_mcp.config.settings import settings
    >>> settings.mongodb_timeout
    30
"""

import logging
import re
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_CREDENTIALS_PATTERN = re.compile(r"(mongodb(?:\+srv)?://)([^@/]+)@")


class Settings(BaseSettings):
    """Application settings loaded from environment variables with validation.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file (if present)
    3. Class defaults (lowest priority)

    Attributes:
        Server identity advertised over MCP
        MongoDB driver settings applied to every per-call client
        Executor sizing for blocking driver calls
        Logging level
    """

    model_config = SettingsConfigDict(
        env_prefix="MONGO_MCP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # MCP Server Identity
    # ========================================================================

    server_name: str = Field(
        default="mongo-mcp",
        description="Server name reported to MCP clients during initialization",
    )

    server_version: str = Field(
        default="0.1.1",
        description="Server version reported to MCP clients during initialization",
    )

    # ========================================================================
    # MongoDB Configuration
    # ========================================================================

    default_database: str = Field(
        default="test",
        description=(
            "Database used when the connection string does not name one. "
            "Format of a URI naming a database: mongodb://host[:port]/database"
        ),
    )

    mongodb_timeout: int = Field(
        default=30,
        description="Server selection and connect timeout in seconds for each client",
        ge=1,
        le=300,
    )

    # ========================================================================
    # Executor Configuration
    # ========================================================================

    async_executor_max_workers: int = Field(
        default=10,
        description="Threads available for running blocking pymongo operations",
        ge=1,
        le=100,
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for application logs. DEBUG provides most detail",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Accept log levels in any case (``debug``, ``Debug``, ...)."""
        if isinstance(value, str):
            return value.upper()
        return value

    @field_validator("default_database")
    @classmethod
    def validate_default_database(cls, value: str) -> str:
        """Reject empty database names.

        Raises:
            ValueError: If the name is empty or whitespace
        """
        if not value.strip():
            raise ValueError("default_database cannot be empty")
        return value

    # ========================================================================
    # Helper Properties
    # ========================================================================

    @property
    def mongodb_timeout_ms(self) -> int:
        """Timeout in milliseconds as expected by pymongo client options."""
        return self.mongodb_timeout * 1000

    @staticmethod
    def redact_connection_string(connection_string: str) -> str:
        """Mask credentials in a MongoDB URI so it can be logged safely.

        Example:
            >>> Settings.redact_connection_string("mongodb://admin:secret@db:27017/app")
            'mongodb://***:***@db:27017/app'
        """
        return _CREDENTIALS_PATTERN.sub(r"\1***:***@", connection_string)


# Global settings instance - initialized once at module import
settings = Settings()
