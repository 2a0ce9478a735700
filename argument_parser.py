#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import shutil
import tempfile
from typing import Dict, List, Mapping, Optional, Sequence

from dotenv import dotenv_values

from config import (DEFAULT_PER_PAGE, DEFAULT_SOURCE_API_URL, DEFAULT_SOURCE_HOST,
                    MAX_PER_PAGE, Config, DestinationConfig, RunOptions,
                    SourceConfig)
from errors import ConfigurationError
from logging_utils import Logger
from security import SecurityValidator

REQUIRED_SETTINGS = (
    "SOURCE_USERNAME",
    "SOURCE_TOKEN",
    "DEST_URL",
    "DEST_USERNAME",
    "DEST_TOKEN",
)
DEFAULT_WORK_DIR = os.path.join(tempfile.gettempdir(), "gitea_mirror")
DEFAULT_LOG_FILE = os.path.join(tempfile.gettempdir(), "migration.log")


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Mirror every repository a GitHub user owns into Gitea",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Settings are read from the environment (and from a .env file if present):
  SOURCE_USERNAME, SOURCE_TOKEN, DEST_URL, DEST_USERNAME, DEST_TOKEN  (required)
  WORK_DIR, LOG_FILE, SOURCE_API_URL, SOURCE_HOST                     (optional)

Examples:
  %(prog)s
  %(prog)s --dry-run
  %(prog)s --env-file /etc/gitea-migration.env --work-dir /srv/mirror
        """,
    )
    parser.add_argument(
        "--env-file",
        dest="env_file",
        default=".env",
        help="File of KEY=VALUE settings loaded under the environment (default: .env)",
    )
    parser.add_argument(
        "--work-dir",
        dest="work_dir",
        help=f"Directory for temporary mirror clones (default: WORK_DIR or {DEFAULT_WORK_DIR})",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        help=f"Append-only log file (default: LOG_FILE or {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--per-page",
        dest="per_page",
        type=int,
        default=DEFAULT_PER_PAGE,
        help=f"Repositories requested per listing page (default: {DEFAULT_PER_PAGE})",
    )
    parser.add_argument(
        "--git-timeout",
        dest="git_timeout_s",
        type=float,
        help="Seconds before a single git clone/push is abandoned (default: no limit)",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="List the repositories that would be migrated without doing it",
    )
    return parser


def load_settings(env_file: Optional[str], environ: Mapping[str, str]) -> Dict[str, str]:
    """Merge the env file under the given environment; real variables win."""
    settings: Dict[str, str] = {}
    if env_file and os.path.isfile(env_file):
        settings.update(
            {k: v for k, v in dotenv_values(env_file).items() if v is not None}
        )
    settings.update(environ)
    return settings


def _missing_settings(settings: Mapping[str, str]) -> List[str]:
    return [key for key in REQUIRED_SETTINGS if not settings.get(key, "").strip()]


def build_config(
    settings: Mapping[str, str],
    args: Optional[argparse.Namespace] = None,
) -> Config:
    """Validate settings and build the immutable run configuration."""
    missing = _missing_settings(settings)
    if missing:
        raise ConfigurationError(
            f"missing required settings: {', '.join(missing)}"
        )

    work_dir = getattr(args, "work_dir", None) or settings.get("WORK_DIR") or DEFAULT_WORK_DIR
    log_file = getattr(args, "log_file", None) or settings.get("LOG_FILE") or DEFAULT_LOG_FILE
    per_page = getattr(args, "per_page", DEFAULT_PER_PAGE)
    git_timeout_s = getattr(args, "git_timeout_s", None)

    try:
        source = SourceConfig(
            username=SecurityValidator.validate_username(settings["SOURCE_USERNAME"].strip()),
            token=SecurityValidator.validate_token(
                settings["SOURCE_TOKEN"].strip(), "SOURCE_TOKEN"
            ),
            api_url=SecurityValidator.validate_url(
                settings.get("SOURCE_API_URL") or DEFAULT_SOURCE_API_URL, ["https"]
            ),
            host=(settings.get("SOURCE_HOST") or DEFAULT_SOURCE_HOST).strip().rstrip("/"),
        )
        destination = DestinationConfig(
            url=SecurityValidator.validate_url(
                settings["DEST_URL"].strip(), ["https", "http"]
            ),
            username=SecurityValidator.validate_username(settings["DEST_USERNAME"].strip()),
            token=SecurityValidator.validate_token(
                settings["DEST_TOKEN"].strip(), "DEST_TOKEN"
            ),
        )
        if not 1 <= per_page <= MAX_PER_PAGE:
            raise ValueError(f"per-page must be between 1 and {MAX_PER_PAGE}")
        if git_timeout_s is not None and git_timeout_s <= 0:
            raise ValueError("git timeout must be a positive number of seconds")
        options = RunOptions(
            work_dir=SecurityValidator.validate_file_path(work_dir),
            log_file=SecurityValidator.validate_file_path(log_file),
            per_page=per_page,
            git_timeout_s=git_timeout_s,
            dry_run=bool(getattr(args, "dry_run", False)),
        )
    except ValueError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e

    if shutil.which("git") is None:
        raise ConfigurationError("git executable not found on PATH")

    Logger.security_event(
        "CONFIG_VALIDATION", "successfully validated all configuration inputs"
    )
    return Config(source=source, destination=destination, options=options)


def parse_arguments(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    args = parser.parse_args(argv)
    settings = load_settings(args.env_file, os.environ if environ is None else environ)
    return build_config(settings, args)
