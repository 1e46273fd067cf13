"""
Environment-aware configuration settings for the workflow definition toolkit.

Supports dev, test, and prod environments with appropriate defaults.
"""

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Supported deployment environments."""

    DEV = "dev"
    TEST = "test"
    PROD = "prod"


class EvaluatorSettings(BaseSettings):
    """Expression evaluator settings."""

    model_config = SettingsConfigDict(env_prefix="WORKFLOW_EVALUATOR_")

    default: str = Field(
        default="attribute",
        description="Name of the evaluator used when none (or an unknown one) is requested",
    )


class ValidationSettings(BaseSettings):
    """Initial flags of every new workflow validator."""

    model_config = SettingsConfigDict(env_prefix="WORKFLOW_VALIDATION_")

    enabled: bool = Field(default=True, description="Run validation at all")
    schema_enabled: bool = Field(default=True, description="Run the JSON schema phase")
    strict: bool = Field(
        default=False,
        description="Require exactly one end state",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_",
        case_sensitive=False,  # WORKFLOW_LOG_LEVEL and workflow_log_level both work
        extra="ignore",        # Ignore unknown environment variables
    )

    # Application
    app_name: str = Field(default="Workflow Definition Toolkit")
    environment: Environment = Field(default=Environment.DEV)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Flat key=value file backing {{ property.* }} placeholders in markup
    property_file: Optional[Path] = Field(default=None)
    # Environment variables exposed to {{ env.* }} placeholders
    property_env_vars: list[str] = Field(default_factory=list)

    # Sub-settings
    evaluator: EvaluatorSettings = Field(default_factory=EvaluatorSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str | Environment) -> Environment:
        """Validate and convert environment string to enum."""
        if isinstance(v, Environment):
            return v
        return Environment(v.lower())

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEV

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TEST

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PROD


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging from settings."""
    settings = settings or get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
