"""Configuration management for sharees."""

from pathlib import Path
from typing import Optional
import yaml
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from .models import AuthenticatedSession


class ServerConfig(BaseModel):
    url: str = ""
    user: str = ""
    app_password: str = ""
    verify_tls: bool = True

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


class SearchConfig(BaseModel):
    debounce_ms: int = 500
    page: int = 1
    per_page: int = 50
    timeout_s: float = 10.0

    @field_validator('debounce_ms')
    @classmethod
    def validate_debounce(cls, v: int) -> int:
        if v < 0:
            raise ValueError("debounce_ms must not be negative")
        return v

    @field_validator('page')
    @classmethod
    def validate_page(cls, v: int) -> int:
        if v < 1:
            raise ValueError("page must be at least 1")
        return v

    @field_validator('per_page')
    @classmethod
    def validate_per_page(cls, v: int) -> int:
        if not 1 <= v <= 200:
            raise ValueError("per_page must be between 1 and 200")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Optional[Path] = None


class Config(BaseModel):
    """Main configuration for sharee search."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def session(self) -> Optional[AuthenticatedSession]:
        """Session for the configured server, or None if incomplete."""
        session = AuthenticatedSession(
            server_url=self.server.url,
            user=self.server.user,
            app_password=self.server.app_password,
            verify_tls=self.server.verify_tls
        )
        return session if session.is_valid else None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file."""
        if config_path is None:
            # Try default locations
            candidates = [
                Path("sharees.yaml"),
                Path.home() / ".config" / "sharees" / "config.yaml",
                Path("/etc/sharees/config.yaml"),
            ]
            for candidate in candidates:
                if candidate.exists():
                    config_path = candidate
                    break
            else:
                raise FileNotFoundError(
                    f"No config file found. Searched: {[str(c) for c in candidates]}"
                )

        logger.info(f"Loading config from: {config_path}")
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False)
