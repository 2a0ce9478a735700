#!/usr/bin/env python3
"""Exception classes for github-to-gitea."""

from __future__ import annotations

from typing import Optional


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised when a required setting is missing or invalid."""


class DecodingError(MigrationError):
    """Raised when an API payload does not match the expected schema."""


class DiscoveryError(MigrationError):
    """Raised when the source repository listing cannot be fetched."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 detail: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ProvisionError(MigrationError):
    """Raised when a destination repository cannot be created."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 detail: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class TransferError(MigrationError):
    """Raised when a git clone or push step fails."""

    def __init__(self, step: str, detail: str) -> None:
        super().__init__(f"git {step} failed: {detail}")
        self.step = step
        self.detail = detail


class WorkspaceError(MigrationError):
    """Raised when a repository's workspace cannot be removed."""

    def __init__(self, name: str, path: str, detail: str) -> None:
        super().__init__(f"failed to remove workspace for '{name}': {detail}")
        self.name = name
        self.path = path
        self.detail = detail
