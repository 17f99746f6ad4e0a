"""Command-line front end for silentverify."""

import argparse
import logging
import sys

from silentverify.config.loader import configure_from_cli
from silentverify.config.resolvers import default_log_dir
from silentverify.config.settings import Command, set_settings
from silentverify.domain.exceptions import (
    ConfigurationError,
    EvidenceViolationError,
    silentverifyError,
)
from silentverify.runners.pipeline import run_scoring
from silentverify.utils.logging import setup_logging

EXIT_OK = 0
EXIT_INTERRUPTED = 130


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-i",
        "--input",
        required=True,
        help="Scan file: JSON list of findings, or an object with findings, executionRecords and judgments.",
    )
    p.add_argument(
        "--min-coverage",
        type=float,
        metavar="RATIO",
        help="Observed coverage below this fraction marks the run INCOMPLETE (default: 0.9).",
    )
    debug_group = p.add_argument_group("Debug Options")
    debug_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with verbose logging.",
    )
    debug_group.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Write logs to this file (default: a timestamped file in the user log directory).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the silentverify CLI."""
    parser = argparse.ArgumentParser(
        prog="silentverify",
        description=(
            "Reconcile confidence and truth status for silent-failure findings, "
            "and check execution-judgment consistency."
        ),
    )
    sub = parser.add_subparsers(dest="command", required=True)

    score_p = sub.add_parser(Command.SCORE.value, help="Score findings and write a confidence report")
    _add_common(score_p)
    score_p.add_argument(
        "-o",
        "--output",
        help="Report path (default: <input stem>.confidence.json next to the input).",
    )
    score_p.add_argument(
        "--indent",
        type=int,
        metavar="N",
        help="JSON indent for the report (default: 2).",
    )

    policy_group = score_p.add_argument_group("Policy Options")
    policy_group.add_argument(
        "-p",
        "--policy",
        help="Confidence policy JSON. Built-in defaults are used when omitted.",
    )
    policy_group.add_argument(
        "--project-dir",
        help="Directory relative policy paths are resolved against.",
    )

    run_group = score_p.add_argument_group("Run Context")
    run_group.add_argument(
        "--determinism-verdict",
        choices=["DETERMINISTIC", "NON_DETERMINISTIC"],
        type=str.upper,
        help="Determinism verdict for the whole run.",
    )
    run_group.add_argument(
        "--verification-status",
        choices=["VERIFIED", "VERIFIED_WITH_ERRORS"],
        type=str.upper,
        help="Verification status for the whole run.",
    )
    run_group.add_argument(
        "--no-consistency",
        action="store_true",
        help="Skip the execution-judgment consistency check before scoring.",
    )
    score_p.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate configuration and input without scoring.",
    )

    check_p = sub.add_parser(Command.CHECK.value, help="Check execution-judgment consistency only")
    _add_common(check_p)

    return parser


def main(argv=None) -> None:
    """Main entry point for the silentverify CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = configure_from_cli(args)
        set_settings(settings)

        log_level = "DEBUG" if settings.debug_mode else settings.logging.level.value
        log_file = settings.logging.file_path
        logger, _ = setup_logging(
            log_dir=str(log_file.parent if log_file else default_log_dir()),
            log_file=str(log_file) if log_file else None,
            console=settings.logging.console_output,
            level=log_level,
            console_level="DEBUG" if settings.debug_mode else "WARNING",
            run_label=settings.command.value,
        )

        if settings.debug_mode:
            logger.debug("Configuration details:")
            for section, values in settings.to_dict().items():
                logger.debug("  %s: %s", section, values)

        res = run_scoring(settings)

        if res.outcome is not None and settings.command is Command.CHECK:
            print(f"{res.outcome.status} (exit {res.outcome.exit_code})")
            sys.exit(res.outcome.exit_code)

        if res.output_path:
            print(f"Scored {res.n_findings} findings -> {res.output_path}")
        sys.exit(EXIT_OK)

    except EvidenceViolationError as e:
        logging.error("Run is untrustworthy: %s", e.message)
        for violation in getattr(e, "violations", []):
            logging.error("  - %s: %s", violation.get("type"), violation.get("message"))
        sys.exit(e.exit_code)

    except ConfigurationError as e:
        logging.error("Configuration error: %s", e.message)
        if e.suggestions:
            logging.error("Suggestions:")
            for suggestion in e.suggestions:
                logging.error("  - %s", suggestion)
        sys.exit(e.exit_code)

    except KeyboardInterrupt:
        logging.info("Run interrupted by user")
        sys.exit(EXIT_INTERRUPTED)

    except silentverifyError as e:
        logging.error("Run failed: %s", e)
        logging.debug("Error details: %s", e.to_dict())
        sys.exit(e.exit_code)


if __name__ == "__main__":
    main()
