"""Configuration management with hierarchical loading."""

import os
from pathlib import Path
from typing import Any

import keyring
import yaml
from pydantic import BaseModel, Field

from agentdeck.infrastructure.logger import get_logger

logger = get_logger(__name__)

KEYRING_SERVICE = "agentdeck"
KEYRING_API_KEY = "anthropic_api_key"


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = Field(default=5000, ge=1, le=65535)
    api_prefix: str = "/api"
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5000"]
    )
    debug: bool = False
    # Responses at least this large are gzip-compressed
    gzip_minimum_size: int = Field(default=1000, ge=0)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    # Relative paths resolve against the project root
    path: str = ".agentdeck/agentdeck.db"


class ModelConfig(BaseModel):
    """Hosted model configuration."""

    name: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = Field(default=8000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_retries: int = Field(default=2, ge=0)
    request_timeout_seconds: float = Field(default=600.0, gt=0)


class ExecutionConfig(BaseModel):
    """Execution lifecycle configuration."""

    timeout_ms: int = Field(default=300_000, ge=1)
    sweep_interval_minutes: float = Field(default=5.0, gt=0)
    stuck_timeout_minutes: float = Field(default=10.0, ge=0)
    max_concurrent_executions: int = Field(default=5, ge=1)
    enforce_concurrency_limit: bool = False


class RateLimitConfig(BaseModel):
    """Per-IP limit on API requests."""

    enabled: bool = False
    window_seconds: float = Field(default=900.0, gt=0)
    max_requests: int = Field(default=100, ge=1)


class SecurityConfig(BaseModel):
    """Request protection configuration."""

    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)


class Config(BaseModel):
    """Main configuration model."""

    version: str = "0.1.0"
    log_level: str = "INFO"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)


class ConfigManager:
    """Manage configuration loading from multiple sources with hierarchy."""

    def __init__(self, project_root: Path | None = None, config: Config | None = None) -> None:
        """Initialize config manager.

        Args:
            project_root: Root directory of the project (default: current directory)
            config: Preloaded configuration that bypasses file and env loading
        """
        self.project_root = project_root or Path.cwd()
        self._config: Config | None = config

    def load_config(self) -> Config:
        """Load configuration from all sources in hierarchy order.

        Configuration hierarchy (highest priority last):
        1. System defaults (embedded in Config model)
        2. Project defaults (.agentdeck/config.yaml)
        3. User overrides (~/.agentdeck/config.yaml)
        4. Project overrides (.agentdeck/local.yaml)
        5. Environment variables (AGENTDECK_* prefix)

        Returns:
            Merged configuration
        """
        if self._config is not None:
            return self._config

        config_dict: dict[str, Any] = {}

        for path in (
            self.project_root / ".agentdeck" / "config.yaml",
            Path.home() / ".agentdeck" / "config.yaml",
            self.project_root / ".agentdeck" / "local.yaml",
        ):
            if path.exists():
                config_dict = self._merge_dicts(config_dict, self._load_yaml(path))

        config_dict = self._apply_env_vars(config_dict)

        self._config = Config(**config_dict)
        return self._config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML configuration file."""
        with open(path) as f:
            return yaml.safe_load(f) or {}

    def _merge_dicts(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge two dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_vars(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variables with AGENTDECK_ prefix."""
        env_mappings = {
            "AGENTDECK_LOG_LEVEL": ["log_level"],
            "AGENTDECK_HOST": ["server", "host"],
            "AGENTDECK_PORT": ["server", "port"],
            "AGENTDECK_DATABASE_PATH": ["database", "path"],
            "AGENTDECK_MODEL": ["model", "name"],
            "AGENTDECK_EXECUTION_TIMEOUT_MS": ["execution", "timeout_ms"],
            "AGENTDECK_SWEEP_INTERVAL_MINUTES": ["execution", "sweep_interval_minutes"],
            "AGENTDECK_STUCK_TIMEOUT_MINUTES": ["execution", "stuck_timeout_minutes"],
            "AGENTDECK_MAX_CONCURRENT_EXECUTIONS": ["execution", "max_concurrent_executions"],
            "AGENTDECK_RATE_LIMIT_ENABLED": ["security", "rate_limit", "enabled"],
            "AGENTDECK_RATE_LIMIT_WINDOW_SECONDS": ["security", "rate_limit", "window_seconds"],
            "AGENTDECK_RATE_LIMIT_MAX_REQUESTS": ["security", "rate_limit", "max_requests"],
        }

        for env_var, path in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                current = config_dict
                for key in path[:-1]:
                    if key not in current:
                        current[key] = {}
                    current = current[key]
                # Numeric strings become ints; pydantic coerces the rest
                try:
                    current[path[-1]] = int(value)
                except ValueError:
                    current[path[-1]] = value

        if origins := os.getenv("AGENTDECK_ALLOWED_ORIGINS"):
            config_dict.setdefault("server", {})["allowed_origins"] = [
                origin.strip() for origin in origins.split(",") if origin.strip()
            ]

        return config_dict

    def get_api_key(self) -> str:
        """Get Anthropic API key from environment, keychain, or .env file.

        Priority:
        1. ANTHROPIC_API_KEY environment variable
        2. System keychain
        3. .env file

        Returns:
            API key

        Raises:
            ValueError: If API key not found
        """
        if key := os.getenv("ANTHROPIC_API_KEY"):
            return key

        try:
            key = keyring.get_password(KEYRING_SERVICE, KEYRING_API_KEY)
            if key:
                return key
        except Exception as e:
            logger.debug("keychain_read_failed", error=str(e))

        env_file = self.project_root / ".env"
        if env_file.exists():
            with open(env_file) as f:
                for line in f:
                    line = line.strip()
                    if line.startswith("ANTHROPIC_API_KEY="):
                        return line.split("=", 1)[1].strip().strip('"').strip("'")

        raise ValueError(
            "ANTHROPIC_API_KEY not found. Set it via:\n"
            "  1. Environment variable: export ANTHROPIC_API_KEY=your-key\n"
            "  2. Keychain: agentdeck config set-key\n"
            "  3. .env file: echo 'ANTHROPIC_API_KEY=your-key' > .env"
        )

    def set_api_key(self, api_key: str, use_keychain: bool = True) -> None:
        """Store API key in keychain or .env file.

        Args:
            api_key: The API key to store
            use_keychain: If True, store in keychain; otherwise in .env file
        """
        if use_keychain:
            try:
                keyring.set_password(KEYRING_SERVICE, KEYRING_API_KEY, api_key)
                return
            except Exception as e:
                raise ValueError(f"Failed to store API key in keychain: {e}") from e

        env_file = self.project_root / ".env"
        with open(env_file, "a") as f:
            f.write(f"\nANTHROPIC_API_KEY={api_key}\n")
        env_file.chmod(0o600)

    def get_database_path(self) -> Path:
        """Get path to SQLite database."""
        raw = self.load_config().database.path
        if raw == ":memory:":
            return Path(raw)
        db_path = Path(raw).expanduser()
        if not db_path.is_absolute():
            db_path = self.project_root / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return db_path

    def get_log_dir(self) -> Path:
        """Get path to log directory."""
        log_dir = self.project_root / ".agentdeck" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir
