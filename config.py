#!/usr/bin/env python3
"""Configuration dataclasses for github-to-gitea."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_SOURCE_API_URL = "https://api.github.com"
DEFAULT_SOURCE_HOST = "github.com"
DEFAULT_PER_PAGE = 100
MAX_PER_PAGE = 100
# client-side pacing of API calls, requests per minute
GITHUB_REQUESTS_PER_MINUTE = 50
GITEA_REQUESTS_PER_MINUTE = 120


@dataclass(frozen=True)
class SourceConfig:
    """GitHub-side configuration."""
    username: str
    token: str = field(repr=False)
    api_url: str = DEFAULT_SOURCE_API_URL
    host: str = DEFAULT_SOURCE_HOST


@dataclass(frozen=True)
class DestinationConfig:
    """Gitea-side configuration."""
    url: str
    username: str
    token: str = field(repr=False)


@dataclass(frozen=True)
class RunOptions:
    """Run behavior configuration."""
    work_dir: str
    log_file: str
    per_page: int = DEFAULT_PER_PAGE
    git_timeout_s: Optional[float] = None
    dry_run: bool = False


@dataclass(frozen=True)
class Config:
    """Main configuration for a GitHub-to-Gitea migration run."""
    source: SourceConfig
    destination: DestinationConfig
    options: RunOptions
