"""
Configuration module for the Hot Issue Tagger.

Handles all configuration through environment variables with secure defaults.
Never stores sensitive data directly in code.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load environment variables from .env file
load_dotenv()


class ConfigurationError(Exception):
    """Required configuration (credential or model identifier) is missing."""
    pass


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the completion service (OpenAI compatible)."""

    api_key: str = field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", "")
    )
    api_base_url: Optional[str] = field(
        default_factory=lambda: os.getenv("OPENAI_API_BASE", None)
    )
    # No default: an unset model is a configuration error
    model: str = field(
        default_factory=lambda: os.getenv("ANALYSIS_MODEL", "")
    )
    temperature: float = field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.3"))
    )

    def validate(self) -> list[str]:
        """
        Validate the completion service settings.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors = []
        if not self.api_key:
            errors.append("OPENAI_API_KEY is required for hot issue analysis")
        if not self.model:
            errors.append("ANALYSIS_MODEL is required for hot issue analysis")
        return errors


@dataclass(frozen=True)
class AnalysisSettings:
    """Policy constants for tag classification."""

    max_existing_tags: int = field(
        default_factory=lambda: int(os.getenv("MAX_EXISTING_TAGS", "50"))
    )
    max_description_length: int = field(
        default_factory=lambda: int(os.getenv("MAX_DESCRIPTION_LENGTH", "24"))
    )
    max_reasoning_length: int = field(
        default_factory=lambda: int(os.getenv("MAX_REASONING_LENGTH", "50"))
    )
    similarity_threshold: float = field(
        default_factory=lambda: float(os.getenv("TAG_SIMILARITY_THRESHOLD", "0.7"))
    )
    default_confidence: float = field(
        default_factory=lambda: float(os.getenv("DEFAULT_CONFIDENCE", "0.5"))
    )
    max_images: int = field(
        default_factory=lambda: int(os.getenv("MAX_IMAGES", "6"))
    )
    fallback_name: str = "uncategorized"
    fallback_description: str = "unclassified issue"


@dataclass(frozen=True)
class DatabaseConfig:
    """Configuration for the tag storage database."""

    url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///hot_issues.db")
    )
    echo: bool = field(
        default_factory=lambda: os.getenv("DATABASE_ECHO", "false").lower() == "true"
    )


@dataclass(frozen=True)
class OutputConfig:
    """Configuration for exported stats reports."""

    output_dir: Path = field(
        default_factory=lambda: Path(os.getenv("OUTPUT_DIR", "./output"))
    )
    report_filename: str = field(
        default_factory=lambda: os.getenv(
            "REPORT_FILENAME",
            "hot_issues_report.xlsx"
        )
    )

    @property
    def report_path(self) -> Path:
        """Get full path to the report file."""
        return self.output_dir / self.report_filename


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration aggregating all config sections."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    analysis: AnalysisSettings = field(default_factory=AnalysisSettings)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Logging level
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO")
    )

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors = self.llm.validate()

        if not self.database.url:
            errors.append("DATABASE_URL is required")
        if not 0.0 <= self.analysis.similarity_threshold <= 1.0:
            errors.append("TAG_SIMILARITY_THRESHOLD must be between 0 and 1")
        if self.analysis.max_existing_tags < 0:
            errors.append("MAX_EXISTING_TAGS must not be negative")

        return errors


def require_llm_config(config: LLMConfig) -> None:
    """
    Fail fast when the completion service is not configured.

    Args:
        config: LLM configuration to check.

    Raises:
        ConfigurationError: If the credential or model identifier is missing.
    """
    errors = config.validate()
    if errors:
        raise ConfigurationError("; ".join(errors))


def get_config() -> AppConfig:
    """
    Get application configuration.

    Returns:
        AppConfig instance with all settings loaded from environment.
    """
    return AppConfig()
