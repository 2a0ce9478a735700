#!/usr/bin/env python3
"""Main orchestrator for migrating a GitHub user's repositories to Gitea."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from config import Config
from errors import DiscoveryError, WorkspaceError
from gitea_target import GiteaTarget
from github_source import GitHubSource
from logging_utils import Logger
from mirror_transfer import MirrorTransfer
from models import (RepositoryDescriptor, RepositoryResult, RunSummary,
                    summarize)

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_DISCOVERY_ERROR = 30
EXIT_INTERRUPTED = 130


class RunState(Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    PROCESSING = "processing"
    SUMMARIZING = "summarizing"
    DONE = "done"


@dataclass(frozen=True)
class RunReport:
    summary: RunSummary
    results: Tuple[RepositoryResult, ...] = ()
    discovery_failed: bool = False
    halted: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.discovery_failed and self.summary.failed == 0

    @property
    def exit_code(self) -> int:
        if self.discovery_failed:
            return EXIT_DISCOVERY_ERROR
        return EXIT_SUCCESS if self.summary.failed == 0 else EXIT_EXECUTION_ERROR


class MigrationOrchestrator:
    """Discovers, provisions and mirrors each repository in turn."""

    def __init__(
        self,
        cfg: Config,
        source: Optional[GitHubSource] = None,
        target: Optional[GiteaTarget] = None,
        transfer: Optional[MirrorTransfer] = None,
    ) -> None:
        self.cfg = cfg
        self.source = source or GitHubSource(cfg.source, per_page=cfg.options.per_page)
        self.target = target or GiteaTarget(cfg.destination)
        self.transfer = transfer or MirrorTransfer(
            cfg.source,
            cfg.destination,
            cfg.options.work_dir,
            git_timeout_s=cfg.options.git_timeout_s,
        )
        self.state = RunState.IDLE

    def run(self) -> RunReport:
        Logger.info("starting GitHub -> Gitea migration")
        self.state = RunState.DISCOVERING
        try:
            descriptors = list(self.source.list_repositories())
        except DiscoveryError as e:
            detail = f": {e.detail}" if e.detail else ""
            Logger.error(f"repository discovery failed, nothing migrated: {e}{detail}")
            self.state = RunState.DONE
            return RunReport(summary=summarize([]), discovery_failed=True)

        if self.cfg.options.dry_run:
            self._report_plan(descriptors)
            self.state = RunState.DONE
            return RunReport(summary=summarize([]))

        self.state = RunState.PROCESSING
        results, unprocessed = self._process_all(descriptors)

        self.state = RunState.SUMMARIZING
        summary = summarize(results, unprocessed)
        self._log_summary(summary)
        self._remove_work_dir_if_empty()

        self.state = RunState.DONE
        return RunReport(
            summary=summary,
            results=tuple(results),
            halted=any(r.error is not None for r in results),
        )

    def _process_all(
        self, descriptors: List[RepositoryDescriptor]
    ) -> Tuple[List[RepositoryResult], List[RepositoryDescriptor]]:
        """Return the results and the descriptors never reached.

        A workspace that cannot be removed stops the loop: starting another
        transfer would leave two workspaces on disk.
        """
        results: List[RepositoryResult] = []
        total = len(descriptors)
        for idx, descriptor in enumerate(descriptors, start=1):
            Logger.info(f"[{idx}/{total}] migrating: {descriptor.name}")
            result = self._process_single_repository(descriptor)
            results.append(result)
            if result.error is not None:
                unprocessed = descriptors[idx:]
                if unprocessed:
                    Logger.error(
                        f"halting: {len(unprocessed)} repositories left unprocessed"
                    )
                return results, unprocessed
        return results, []

    def _process_single_repository(self, descriptor: RepositoryDescriptor) -> RepositoryResult:
        provision = self.target.ensure_repo(descriptor)
        if not provision.ok:
            return RepositoryResult(descriptor=descriptor, provision=provision)
        try:
            outcome = self.transfer.transfer(descriptor)
        except WorkspaceError as e:
            return RepositoryResult(
                descriptor=descriptor,
                provision=provision,
                error=f"workspace cleanup failed: {e.detail}",
            )
        return RepositoryResult(descriptor=descriptor, provision=provision, transfer=outcome)

    def _report_plan(self, descriptors: List[RepositoryDescriptor]) -> None:
        total = len(descriptors)
        owner = self.cfg.destination.username.lower()
        for idx, descriptor in enumerate(descriptors, start=1):
            Logger.info(
                f"[{idx}/{total}] would migrate: {descriptor.name} "
                f"({descriptor.visibility.value}) -> {owner}/{descriptor.name}"
            )
        Logger.info("dry-run completed")

    def _log_summary(self, summary: RunSummary) -> None:
        message = (
            f"migration complete: {summary.total} total, "
            f"{summary.succeeded} succeeded, {summary.failed} failed"
        )
        if summary.failed:
            Logger.error(message)
            for name, reason in summary.failures:
                Logger.error(f"  {name}: {reason}")
        else:
            Logger.success(message)

    def _remove_work_dir_if_empty(self) -> None:
        work_dir = self.cfg.options.work_dir
        try:
            if os.path.isdir(work_dir) and not os.listdir(work_dir):
                os.rmdir(work_dir)
        except OSError as e:
            Logger.warn(f"could not remove work directory {work_dir}: {e}")
