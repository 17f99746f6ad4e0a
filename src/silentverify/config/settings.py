"""Core configuration settings for silentverify."""

import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from enum import Enum

from silentverify.domain.exceptions import ConfigurationError
from silentverify.domain.models import NON_DETERMINISTIC, VERIFIED_WITH_ERRORS

logger = logging.getLogger(__name__)

class LogLevel(Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class Command(Enum):
    """CLI sub-commands."""
    SCORE = "score"
    CHECK = "check"

DETERMINISM_VERDICTS = {"DETERMINISTIC", NON_DETERMINISTIC}
VERIFICATION_STATUSES = {"VERIFIED", VERIFIED_WITH_ERRORS}

@dataclass
class PolicySettings:
    """Where the confidence policy comes from."""
    policy_path: Optional[str] = None
    project_dir: Optional[Path] = None

    def validate(self) -> None:
        if self.project_dir is not None and not self.project_dir.is_dir():
            raise ConfigurationError(
                f"Project directory does not exist: {self.project_dir}",
                config_field="policy.project_dir"
            ).add_suggestion("Pass an existing directory to --project-dir")

@dataclass
class ScoringSettings:
    """Run-wide context applied to every finding."""
    determinism_verdict: Optional[str] = None
    verification_status: Optional[str] = None
    enforce_consistency: bool = True
    min_coverage: float = 0.90

    def validate(self) -> None:
        if not 0.0 <= self.min_coverage <= 1.0:
            raise ConfigurationError(
                f"Coverage threshold must be between 0 and 1, got {self.min_coverage}",
                config_field="scoring.min_coverage"
            ).add_suggestion("Pass --min-coverage as a fraction, e.g. 0.9")

        if self.determinism_verdict is not None and self.determinism_verdict not in DETERMINISM_VERDICTS:
            raise ConfigurationError(
                f"Unknown determinism verdict: {self.determinism_verdict}",
                config_field="scoring.determinism_verdict"
            ).add_suggestion(f"Use one of: {sorted(DETERMINISM_VERDICTS)}")

        if self.verification_status is not None and self.verification_status not in VERIFICATION_STATUSES:
            raise ConfigurationError(
                f"Unknown verification status: {self.verification_status}",
                config_field="scoring.verification_status"
            ).add_suggestion(f"Use one of: {sorted(VERIFICATION_STATUSES)}")

@dataclass
class OutputSettings:
    """Output-related configuration."""
    output_path: Optional[Path] = None
    indent: int = 2

    def validate(self) -> None:
        if self.output_path and not self.output_path.parent.exists():
            raise ConfigurationError(
                f"Output directory does not exist: {self.output_path.parent}",
                config_field="output.output_path"
            ).add_suggestion("Create the directory or use a different path")

        if self.indent < 0:
            raise ConfigurationError(
                "indent must be non-negative",
                config_field="output.indent"
            )

@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    file_path: Optional[Path] = None
    console_output: bool = True
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def validate(self) -> None:
        if self.file_path and not self.file_path.parent.exists():
            raise ConfigurationError(
                f"Log directory does not exist: {self.file_path.parent}",
                config_field="logging.file_path"
            ).add_suggestion("Create the directory or omit --log-file")

@dataclass
class Settings:
    """Main configuration settings for silentverify."""

    policy: PolicySettings = field(default_factory=PolicySettings)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    # Runtime settings
    command: Command = Command.SCORE
    input_file: Optional[Path] = None

    # Debug/development settings
    debug_mode: bool = False
    dry_run: bool = False

    def validate(self) -> None:
        """Validate all configuration settings."""
        try:
            self.policy.validate()
            self.scoring.validate()
            self.output.validate()
            self.logging.validate()

            self._validate_input()

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Configuration validation failed: {str(e)}"
            ) from e

    def _validate_input(self) -> None:
        if self.input_file is None:
            raise ConfigurationError(
                "An input file must be specified",
                config_field="input_file"
            ).add_suggestion("Provide -i/--input")

        if not self.input_file.is_file():
            raise ConfigurationError(
                f"Input file does not exist: {self.input_file}",
                config_field="input_file"
            )

    def to_dict(self) -> dict:
        """Convert settings to dictionary for debugging."""
        return {
            'policy': {
                'policy_path': self.policy.policy_path,
                'project_dir': str(self.policy.project_dir) if self.policy.project_dir else None,
            },
            'scoring': {
                'determinism_verdict': self.scoring.determinism_verdict,
                'verification_status': self.scoring.verification_status,
                'enforce_consistency': self.scoring.enforce_consistency,
                'min_coverage': self.scoring.min_coverage,
            },
            'output': {
                'output_path': str(self.output.output_path) if self.output.output_path else None,
                'indent': self.output.indent,
            },
            'runtime': {
                'command': self.command.value,
                'input_file': str(self.input_file) if self.input_file else None,
                'debug_mode': self.debug_mode,
                'dry_run': self.dry_run,
            }
        }

# Global settings instance
_settings: Optional[Settings] = None

def get_settings() -> Settings:
    """Get the current global settings instance."""
    if _settings is None:
        raise ConfigurationError(
            "Settings not initialized. Call set_settings() first."
        ).add_suggestion("Initialize settings in your application startup")
    return _settings

def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    settings.validate()
    _settings = settings
    logger.info("Configuration loaded and validated successfully")
