"""Configuration management for scanfold.

Loads settings from environment variables using Pydantic models. Every
setting has a default; override via environment.

Provides:
- Config: Pydantic model with all application settings
- load_config: Factory function to create Config instance
"""

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Config(BaseModel):
    """Application configuration loaded from environment.

    Attributes:
        project_name: Name shown in reports (SCANFOLD_PROJECT_NAME)
        scanner_timeout: Seconds before a scanner process is killed (SCANFOLD_SCANNER_TIMEOUT)
        max_concurrent_scanners: Scanner processes run at once (SCANFOLD_MAX_CONCURRENT)
        report_format: Default output format (SCANFOLD_REPORT_FORMAT)
    """

    # Environment values are strings; validate them like explicit input
    model_config = ConfigDict(validate_default=True)

    project_name: str = Field(
        default_factory=lambda: os.getenv("SCANFOLD_PROJECT_NAME", "project")
    )
    scanner_timeout: int = Field(
        default_factory=lambda: os.getenv("SCANFOLD_SCANNER_TIMEOUT", "300"),
        gt=0,
    )
    max_concurrent_scanners: int = Field(
        default_factory=lambda: os.getenv("SCANFOLD_MAX_CONCURRENT", "4"),
        gt=0,
    )
    report_format: Literal["sarif", "markdown", "html"] = Field(
        default_factory=lambda: os.getenv("SCANFOLD_REPORT_FORMAT", "sarif")
    )


def load_config() -> Config:
    """Load configuration from environment.

    Returns:
        Populated Config instance

    Raises:
        ValidationError: If an environment variable holds an invalid value
    """
    return Config()
