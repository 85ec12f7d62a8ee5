"""
Configuration management for CardLink

Builds configuration from dataclass defaults, an optional JSON file and
CARDLINK_* environment variables, in that order of precedence.
"""

import json
import os
import secrets
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict, field
import logging
import sys

# List of known weak/default JWT secrets that should be rejected
WEAK_JWT_SECRETS = {
    "your-secret-key-change-in-production",
    "secret",
    "key",
    "password",
    "jwt-secret",
    "secret-key",
    "change-me",
    "default",
    "test",
    "development",
    "dev",
    "demo",
    "example",
    "sample",
}


def _validate_jwt_secret_key(jwt_secret_key: str) -> None:
    """Validate JWT secret key security and reject weak/default keys.

    Args:
        jwt_secret_key: The JWT secret key to validate

    Raises:
        SystemExit: If the secret key is weak, default, or insecure
    """
    if not jwt_secret_key:
        logging.critical(
            "JWT secret key is empty - this is a critical security vulnerability"
        )
        sys.exit(1)

    if len(jwt_secret_key) < 32:
        logging.critical(
            f"JWT secret key is too short ({len(jwt_secret_key)} chars). "
            f"Minimum 32 characters required for security."
        )
        sys.exit(1)

    if jwt_secret_key.lower() in WEAK_JWT_SECRETS:
        logging.critical(
            f"JWT secret key '{jwt_secret_key}' is a known weak/default secret. "
            f"Set CARDLINK_JWT_SECRET_KEY environment variable with a secure key."
        )
        sys.exit(1)

    unique_chars = len(set(jwt_secret_key))
    if unique_chars < 8:
        logging.critical(
            f"JWT secret key has insufficient entropy ({unique_chars} unique characters). "
            f"Use a cryptographically secure random key."
        )
        sys.exit(1)

    if any(
        pattern in jwt_secret_key.lower()
        for pattern in ["123", "abc", "password", "secret", "key", "qwerty", "admin"]
    ):
        logging.warning(
            "JWT secret key contains common patterns that may indicate weak security. "
            "Consider using a fully random key generated with secrets.token_urlsafe(64)."
        )

    logging.debug(
        f"JWT secret key validation passed ({len(jwt_secret_key)} chars, {unique_chars} unique)"
    )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DatabaseConfig:
    """Database configuration."""

    url: str = "sqlite:///cardlink.db"
    echo: bool = False
    log_queries: bool = False  # Per-statement timing
    slow_query_ms: int = 100


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    auto_reload: bool = False
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    max_request_bytes: int = 1024 * 1024


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "CardLink"
    version: str = "1.0.0"
    description: str = "Digital profile cards with link tracking and view analytics"

    # Public profile pages live at {public_base_url}/{slug}
    public_base_url: str = "https://linkme.io"

    # JWT verification; tokens are issued by the identity service
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    jwt_access_token_expires_minutes: int = 60

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"


@dataclass
class AssetConfig:
    """Asset store configuration (QR codes, avatars, design images)."""

    directory: str = "data/assets"
    base_url: str = "http://127.0.0.1:8000/assets"
    timeout_seconds: float = 10.0


@dataclass
class TrackingConfig:
    """View tracking configuration."""

    geoip_database: Optional[str] = None  # Path to a MaxMind City database
    trust_proxy_headers: bool = True
    default_retention_days: int = 90


@dataclass
class CardLinkConfig:
    """Complete configuration for CardLink."""

    app: AppConfig
    server: ServerConfig
    database: DatabaseConfig
    assets: AssetConfig
    tracking: TrackingConfig

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "app": asdict(self.app),
            "server": asdict(self.server),
            "database": asdict(self.database),
            "assets": asdict(self.assets),
            "tracking": asdict(self.tracking),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CardLinkConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            server=ServerConfig(**data.get("server", {})),
            database=DatabaseConfig(**data.get("database", {})),
            assets=AssetConfig(**data.get("assets", {})),
            tracking=TrackingConfig(**data.get("tracking", {})),
        )


class ConfigManager:
    """Manages configuration loading and environment overrides."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[CardLinkConfig] = None

    def get_config_file_path(self) -> Optional[Path]:
        """Get the path for the config file, if one is configured."""
        config_file = os.getenv("CARDLINK_CONFIG_FILE")
        return Path(config_file) if config_file else None

    def _read_config_file(self) -> Dict[str, Any]:
        self.config_file = self.get_config_file_path()
        if self.config_file is None:
            return {}

        if not self.config_file.exists():
            logging.warning(f"Config file {self.config_file} not found, using defaults")
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            logging.info(f"Loaded configuration from {self.config_file}")
            return data
        except (OSError, json.JSONDecodeError) as e:
            logging.warning(f"Failed to load config from {self.config_file}: {e}")
            return {}

    def _apply_environment(self, config: CardLinkConfig) -> None:
        """Apply CARDLINK_* environment overrides in place."""
        db_url = os.getenv("CARDLINK_DATABASE_URL") or os.getenv("DATABASE_URL")
        if db_url:
            config.database.url = db_url
        config.database.log_queries = _env_flag(
            "CARDLINK_LOG_QUERIES", config.database.log_queries
        )
        if os.getenv("CARDLINK_SLOW_QUERY_MS"):
            config.database.slow_query_ms = int(os.environ["CARDLINK_SLOW_QUERY_MS"])

        config.server.debug = _env_flag("CARDLINK_DEBUG", config.server.debug)
        if os.getenv("CARDLINK_CORS_ORIGINS"):
            config.server.cors_origins = [
                origin.strip()
                for origin in os.environ["CARDLINK_CORS_ORIGINS"].split(",")
                if origin.strip()
            ]

        if os.getenv("CARDLINK_PUBLIC_BASE_URL"):
            config.app.public_base_url = os.environ["CARDLINK_PUBLIC_BASE_URL"].rstrip("/")
        if os.getenv("CARDLINK_LOG_LEVEL"):
            config.app.log_level = os.environ["CARDLINK_LOG_LEVEL"].upper()
        elif config.server.debug:
            config.app.log_level = "DEBUG"
        config.app.log_to_file = _env_flag("CARDLINK_LOG_TO_FILE", config.app.log_to_file)
        if os.getenv("CARDLINK_LOG_DIR"):
            config.app.log_dir = os.environ["CARDLINK_LOG_DIR"]

        if os.getenv("CARDLINK_ASSET_DIR"):
            config.assets.directory = os.environ["CARDLINK_ASSET_DIR"]
        if os.getenv("CARDLINK_ASSET_BASE_URL"):
            config.assets.base_url = os.environ["CARDLINK_ASSET_BASE_URL"].rstrip("/")
        if os.getenv("CARDLINK_ASSET_TIMEOUT"):
            config.assets.timeout_seconds = float(os.environ["CARDLINK_ASSET_TIMEOUT"])

        if os.getenv("CARDLINK_GEOIP_DATABASE"):
            config.tracking.geoip_database = os.environ["CARDLINK_GEOIP_DATABASE"]
        config.tracking.trust_proxy_headers = _env_flag(
            "CARDLINK_TRUST_PROXY_HEADERS", config.tracking.trust_proxy_headers
        )

        jwt_secret_key = os.getenv("CARDLINK_JWT_SECRET_KEY")
        if jwt_secret_key:
            config.app.jwt_secret_key = jwt_secret_key
            logging.info(
                "Using JWT secret key from CARDLINK_JWT_SECRET_KEY environment variable"
            )
        elif not config.app.jwt_secret_key:
            # Tokens signed with a generated key only verify within this process
            config.app.jwt_secret_key = secrets.token_urlsafe(64)
            logging.info("Generated new JWT secret key (not from environment)")

    def load_config(self) -> CardLinkConfig:
        """Load configuration from file and environment."""
        config = CardLinkConfig.from_dict(self._read_config_file())
        self._apply_environment(config)
        _validate_jwt_secret_key(config.app.jwt_secret_key)
        self.config = config
        return config

    def get(self) -> CardLinkConfig:
        """Return the cached configuration, loading it on first use."""
        if self.config is None:
            self.load_config()
        return self.config

    def reset(self) -> None:
        """Drop the cached configuration so the next access reloads it."""
        self.config = None

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of warnings/errors."""
        config = self.get()
        issues = []

        db_url = config.database.url
        if db_url.startswith("sqlite:///"):
            db_dir = Path(db_url.replace("sqlite:///", "")).parent
            if db_dir.exists() and not os.access(db_dir, os.W_OK):
                issues.append(f"Database directory is not writable: {db_dir}")

        asset_dir = Path(config.assets.directory)
        if asset_dir.exists() and not os.access(asset_dir, os.W_OK):
            issues.append(f"Asset directory is not writable: {asset_dir}")

        geoip_db = config.tracking.geoip_database
        if geoip_db and not Path(geoip_db).exists():
            issues.append(f"GeoIP database not found: {geoip_db}")

        if not config.app.public_base_url.startswith(("http://", "https://")):
            issues.append(
                f"Public base URL must be absolute: {config.app.public_base_url}"
            )

        return issues


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> CardLinkConfig:
    """Get the current configuration."""
    return config_manager.get()


def get_database_url() -> str:
    """Get the database URL."""
    return get_config().database.url


def validate_startup_security() -> None:
    """Validate security configuration at application startup.

    Raises:
        SystemExit: If critical security vulnerabilities are detected
    """
    _validate_jwt_secret_key(get_config().app.jwt_secret_key)
    logging.info("Startup security validation completed successfully")
