"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Defaults reproduce the bridge's fixed connection context: profile
``connection.json`` and wallet ``wallet/`` in the working directory,
identity ``User1``, channel ``mychannel``, chaincode ``asset-transfer-basic``.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class FabricMode(str, Enum):
    """Ledger transport mode."""

    FABRIC = "fabric"
    MOCK = "mock"


class FabricSettings(BaseSettings):
    """Hyperledger Fabric connection configuration."""

    model_config = SettingsConfigDict(env_prefix="FABRIC_")

    mode: FabricMode = FabricMode.FABRIC

    # Connection context
    connection_profile: Path = Path("connection.json")
    wallet_path: Path = Path("wallet")
    identity: str = "User1"
    channel: str = "mychannel"
    contract: str = "asset-transfer-basic"

    # Discovery options
    discovery_enabled: bool = True
    as_localhost: bool = True

    # Peer CLI (fabric mode only)
    peer_binary: str = "peer"
    fabric_cfg_path: Path | None = None

    @property
    def connection_profile_path(self) -> Path:
        """Absolute path of the connection profile."""
        return self.connection_profile.expanduser().resolve()

    @property
    def wallet_dir(self) -> Path:
        """Absolute path of the wallet directory."""
        return self.wallet_path.expanduser().resolve()


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "*"
    allow_credentials: bool = False

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    asset_bridge: int = Field(default=3000, alias="ASSET_BRIDGE_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    log_level: LogLevel = LogLevel.INFO

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Ledger
    fabric: FabricSettings = Field(default_factory=FabricSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
