"""Configuration loading from CLI and programmatic sources."""

import logging
from pathlib import Path
from dataclasses import replace
from silentverify.config.resolvers import default_report_path
from silentverify.config.settings import (
    Settings, PolicySettings, ScoringSettings, OutputSettings,
    LoggingSettings, LogLevel, Command
)
from silentverify.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

class ConfigurationLoader:
    """Loads configuration from CLI args and system defaults."""

    def load_from_cli_args(self, args) -> Settings:
        """Load configuration from CLI arguments."""
        try:
            settings = self.load_defaults()

            policy_updates = {}
            if getattr(args, 'policy', None):
                policy_updates['policy_path'] = args.policy
            if getattr(args, 'project_dir', None):
                policy_updates['project_dir'] = Path(args.project_dir)

            scoring_updates = {}
            if getattr(args, 'determinism_verdict', None):
                scoring_updates['determinism_verdict'] = args.determinism_verdict.upper()
            if getattr(args, 'verification_status', None):
                scoring_updates['verification_status'] = args.verification_status.upper()
            if getattr(args, 'no_consistency', False):
                scoring_updates['enforce_consistency'] = False
            if getattr(args, 'min_coverage', None) is not None:
                scoring_updates['min_coverage'] = args.min_coverage

            logging_updates = {}
            if getattr(args, 'log_file', None):
                logging_updates['file_path'] = Path(args.log_file)
            if getattr(args, 'debug', False):
                logging_updates['level'] = LogLevel.DEBUG

            input_file = Path(args.input) if getattr(args, 'input', None) else None

            output_updates = {}
            if getattr(args, 'output', None):
                output_updates['output_path'] = Path(args.output)
            elif input_file is not None:
                output_updates['output_path'] = default_report_path(input_file)
            if getattr(args, 'indent', None) is not None:
                output_updates['indent'] = args.indent

            command = Command(getattr(args, 'command', None) or Command.SCORE.value)

            return replace(
                settings,
                policy=replace(settings.policy, **policy_updates),
                scoring=replace(settings.scoring, **scoring_updates),
                output=replace(settings.output, **output_updates),
                logging=replace(settings.logging, **logging_updates),
                command=command,
                input_file=input_file,
                debug_mode=getattr(args, 'debug', False),
                dry_run=getattr(args, 'dry_run', False),
            )

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load configuration from CLI arguments: {str(e)}"
            ) from e

    def load_defaults(self) -> Settings:
        """Load default configuration settings."""
        return Settings(
            policy=PolicySettings(policy_path=None, project_dir=None),
            scoring=ScoringSettings(
                determinism_verdict=None,
                verification_status=None,
                enforce_consistency=True,
            ),
            output=OutputSettings(output_path=None, indent=2),
            logging=LoggingSettings(
                level=LogLevel.INFO,
                file_path=None,
                console_output=True,
                format_string="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            ),
            command=Command.SCORE,
            input_file=None,
            debug_mode=False,
            dry_run=False,
        )

def configure_from_cli(args) -> Settings:
    """Main entry point to configure settings from CLI args."""
    loader = ConfigurationLoader()
    settings = loader.load_from_cli_args(args)
    settings.validate()
    return settings
