#!/usr/bin/env python3
"""Full-history mirror transfer of one repository through a local workspace."""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import sys
import tempfile
from contextlib import contextmanager
from typing import Iterator, List, Optional

from config import DestinationConfig, SourceConfig
from errors import TransferError, WorkspaceError
from logging_utils import Logger
from models import RepositoryDescriptor, TransferOutcome
from remote_urls import RemoteUrl, destination_repo_url, source_repo_url
from security import SecurityValidator
from utils import truncate


def _make_writable_and_retry(func, path, _exc) -> None:
    """rmtree error hook: git marks pack files read-only."""
    os.chmod(path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
    func(path)


class MirrorTransfer:
    """Mirror-clones from GitHub and mirror-pushes to Gitea, one repo at a time."""

    def __init__(
        self,
        source: SourceConfig,
        destination: DestinationConfig,
        work_dir: str,
        git_timeout_s: Optional[float] = None,
    ) -> None:
        self.source = source
        self.destination = destination
        self.work_dir = work_dir
        self.git_timeout_s = git_timeout_s

    @contextmanager
    def _workspace(self, name: str) -> Iterator[str]:
        """A fresh, owner-only directory that is removed on every exit path."""
        os.makedirs(self.work_dir, mode=0o700, exist_ok=True)
        path = tempfile.mkdtemp(prefix=f"{name}_", dir=self.work_dir)
        Logger.debug(f"workspace for '{name}': {path}")
        try:
            yield path
        finally:
            self._cleanup_workspace(path, name)

    @staticmethod
    def _cleanup_workspace(path: str, name: str) -> None:
        try:
            if sys.version_info >= (3, 12):
                shutil.rmtree(path, onexc=_make_writable_and_retry)
            else:
                shutil.rmtree(path, onerror=_make_writable_and_retry)
            Logger.debug(f"workspace removed for '{name}'")
        except OSError as e:
            Logger.error(f"failed to remove workspace for '{name}': {e}")
            raise WorkspaceError(name, path, str(e)) from e

    def _git_env(self) -> dict:
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        return env

    def _run_git(self, step: str, args: List[str], remote: RemoteUrl,
                 cwd: Optional[str] = None) -> None:
        """Run a git command; raise TransferError with sanitized output on failure."""
        Logger.debug(f"git {step}: {remote}")
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=cwd,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.git_timeout_s,
                env=self._git_env(),
            )
        except subprocess.TimeoutExpired as e:
            raise TransferError(step, f"timed out after {e.timeout}s") from e
        except OSError as e:
            raise TransferError(step, str(e)) from e

        if result.returncode != 0:
            output = result.stderr or result.stdout
            detail = SecurityValidator.sanitize_for_logging(truncate(output))
            raise TransferError(step, detail or f"exit status {result.returncode}")

    def _clone(self, descriptor: RepositoryDescriptor, workspace: str) -> None:
        remote = source_repo_url(self.source, descriptor.name)
        Logger.info(f"cloning from github: {descriptor.name}")
        self._run_git("clone", ["clone", "--mirror", remote.authenticated(), workspace],
                      remote)

    def _push(self, descriptor: RepositoryDescriptor, workspace: str) -> None:
        remote = destination_repo_url(self.destination, descriptor.name)
        Logger.info(f"pushing to gitea: {descriptor.name}")
        self._run_git("push", ["push", "--mirror", remote.authenticated()], remote,
                      cwd=workspace)

    def transfer(self, descriptor: RepositoryDescriptor) -> TransferOutcome:
        """Copy every branch, tag and ref of one repository to the destination.

        Raises WorkspaceError if the workspace cannot be removed afterwards.
        """
        name = descriptor.name
        with self._workspace(name) as workspace:
            try:
                self._clone(descriptor, workspace)
            except TransferError as e:
                Logger.error(f"clone failed for '{name}': {e.detail}")
                return TransferOutcome.clone_failed(e.detail)

            try:
                self._push(descriptor, workspace)
            except TransferError as e:
                Logger.error(f"push failed for '{name}': {e.detail}")
                return TransferOutcome.push_failed(e.detail)

        Logger.success(f"mirrored '{name}'")
        return TransferOutcome.succeeded()
