#!/usr/bin/env python3
"""Console entry point for github-to-gitea."""

from __future__ import annotations

import sys
from typing import NoReturn, Optional, Sequence

from argument_parser import parse_arguments
from errors import ConfigurationError
from logging_utils import Logger
from migration_orchestrator import (EXIT_CONFIG_ERROR, EXIT_EXECUTION_ERROR,
                                    EXIT_INTERRUPTED, MigrationOrchestrator)


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Run one migration and return the process exit code."""
    try:
        cfg = parse_arguments(argv)
    except ConfigurationError as e:
        Logger.error(f"configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        Logger.configure(cfg.options.log_file)
    except OSError as e:
        Logger.error(f"cannot open log file {cfg.options.log_file}: {e}")
        return EXIT_CONFIG_ERROR

    try:
        report = MigrationOrchestrator(cfg).run()
        return report.exit_code
    except KeyboardInterrupt:
        Logger.warn("interrupted; rerun to resume, completed repositories are kept")
        return EXIT_INTERRUPTED
    except Exception as e:
        Logger.error(f"unexpected error: {e}")
        return EXIT_EXECUTION_ERROR
    finally:
        Logger.close()


def main() -> NoReturn:
    sys.exit(run())


if __name__ == "__main__":
    main()
