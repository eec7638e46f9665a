"""
Configuration management for Presence Backend.
Uses pydantic-settings for environment variable parsing.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)

    # Broadcasting
    send_timeout_seconds: float = Field(
        default=5.0,
        description="Upper bound for a single snapshot send to one client"
    )
    outbox_size: int = Field(
        default=4,
        ge=1,
        description="Pending snapshots kept per connection; the oldest is dropped when full"
    )

    # Identity
    identity_verifier: str = Field(
        default="presence_backend.identity.AcceptAnyIdentity",
        description="Dotted path of the IdentityVerifier class to use"
    )
    max_identity_length: int = Field(
        default=128,
        description="Longest identity accepted from the connection path"
    )

    # Logging
    log_level: str = Field(default="INFO")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Use dependency injection in FastAPI routes.
    """
    return Settings()
