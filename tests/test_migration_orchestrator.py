"""Tests for MigrationOrchestrator run control and reporting."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Set
from unittest.mock import MagicMock, patch

from config import Config, DestinationConfig, RunOptions, SourceConfig
from errors import DiscoveryError
from migration_orchestrator import (EXIT_DISCOVERY_ERROR, EXIT_EXECUTION_ERROR,
                                    EXIT_SUCCESS, MigrationOrchestrator, RunState)
from mirror_transfer import MirrorTransfer
from models import (ProvisionOutcome, RepositoryDescriptor, TransferOutcome,
                    Visibility)


def _make_config(tmp_path: Path, dry_run: bool = False) -> Config:
    return Config(
        source=SourceConfig(username='octo', token='src-token'),
        destination=DestinationConfig(url='http://gitea.local:3000',
                                      username='Alice', token='dest-token'),
        options=RunOptions(
            work_dir=str(tmp_path / 'work'),
            log_file=str(tmp_path / 'migration.log'),
            dry_run=dry_run,
        ),
    )


def _descriptors(*names: str) -> List[RepositoryDescriptor]:
    return [
        RepositoryDescriptor(name=n, description=None, visibility=Visibility.PUBLIC)
        for n in names
    ]


class FakeSource:
    def __init__(self, descriptors: Iterable[RepositoryDescriptor] = (),
                 error: Exception = None) -> None:
        self.descriptors = list(descriptors)
        self.error = error

    def list_repositories(self):
        if self.error is not None:
            raise self.error
        yield from self.descriptors


class FakeGitea:
    """Remembers created repositories so reruns see conflicts."""

    def __init__(self, existing: Iterable[str] = (), failing: Iterable[str] = ()) -> None:
        self.repos: Set[str] = set(existing)
        self.failing = set(failing)
        self.calls: List[str] = []

    def ensure_repo(self, descriptor: RepositoryDescriptor) -> ProvisionOutcome:
        self.calls.append(descriptor.name)
        if descriptor.name in self.failing:
            return ProvisionOutcome.failed(500, 'Internal Server Error')
        if descriptor.name in self.repos:
            return ProvisionOutcome.already_exists()
        self.repos.add(descriptor.name)
        return ProvisionOutcome.created()


class FakeTransfer:
    def __init__(self, outcomes: Dict[str, TransferOutcome] = None) -> None:
        self.outcomes = outcomes or {}
        self.calls: List[str] = []

    def transfer(self, descriptor: RepositoryDescriptor) -> TransferOutcome:
        self.calls.append(descriptor.name)
        return self.outcomes.get(descriptor.name, TransferOutcome.succeeded())


def _orchestrator(tmp_path, source, target=None, transfer=None, dry_run=False):
    return MigrationOrchestrator(
        _make_config(tmp_path, dry_run=dry_run),
        source=source,
        target=target or FakeGitea(),
        transfer=transfer or FakeTransfer(),
    )


def test_zero_repositories(tmp_path: Path) -> None:
    orchestrator = _orchestrator(tmp_path, FakeSource())

    report = orchestrator.run()

    summary = report.summary
    assert (summary.total, summary.succeeded, summary.failed) == (0, 0, 0)
    assert report.exit_code == EXIT_SUCCESS
    assert orchestrator.state is RunState.DONE


def test_new_repository_is_created_and_mirrored(tmp_path: Path) -> None:
    target = FakeGitea()
    transfer = FakeTransfer()
    report = _orchestrator(tmp_path, FakeSource(_descriptors('demo')),
                           target, transfer).run()

    assert report.results[0].provision == ProvisionOutcome.created()
    assert report.results[0].transfer == TransferOutcome.succeeded()
    assert (report.summary.total, report.summary.succeeded) == (1, 1)
    assert report.exit_code == EXIT_SUCCESS


def test_existing_repository_is_still_mirrored(tmp_path: Path) -> None:
    transfer = FakeTransfer()
    report = _orchestrator(
        tmp_path, FakeSource(_descriptors('demo')),
        FakeGitea(existing=['demo']), transfer,
    ).run()

    assert report.results[0].provision == ProvisionOutcome.already_exists()
    assert transfer.calls == ['demo']
    assert report.summary.succeeded == 1
    assert report.exit_code == EXIT_SUCCESS


def test_clone_failure_is_isolated(tmp_path: Path, capsys) -> None:
    transfer = FakeTransfer({'b': TransferOutcome.clone_failed('network unreachable')})
    report = _orchestrator(
        tmp_path, FakeSource(_descriptors('a', 'b', 'c')), FakeGitea(), transfer,
    ).run()

    summary = report.summary
    assert (summary.total, summary.succeeded, summary.failed) == (3, 2, 1)
    assert summary.failed_names == ('b',)
    assert transfer.calls == ['a', 'b', 'c']
    assert report.exit_code == EXIT_EXECUTION_ERROR
    assert 'b: clone failed: network unreachable' in capsys.readouterr().err


def test_provision_failure_skips_transfer_only_for_that_repo(tmp_path: Path) -> None:
    target = FakeGitea(failing=['b'])
    transfer = FakeTransfer()
    report = _orchestrator(
        tmp_path, FakeSource(_descriptors('a', 'b', 'c')), target, transfer,
    ).run()

    assert target.calls == ['a', 'b', 'c']
    assert transfer.calls == ['a', 'c']
    failed = report.results[1]
    assert failed.transfer is None
    assert failed.provision.status_code == 500
    assert report.summary.failed_names == ('b',)
    assert report.exit_code == EXIT_EXECUTION_ERROR


def test_tally_invariant(tmp_path: Path) -> None:
    names = [f'repo{i}' for i in range(10)]
    provision_failures = {'repo1', 'repo4'}
    transfer_failures = {
        'repo2': TransferOutcome.clone_failed('x'),
        'repo7': TransferOutcome.push_failed('y'),
        'repo9': TransferOutcome.push_failed('z'),
    }
    report = _orchestrator(
        tmp_path, FakeSource(_descriptors(*names)),
        FakeGitea(failing=provision_failures), FakeTransfer(transfer_failures),
    ).run()

    n, k, m = len(names), len(provision_failures), len(transfer_failures)
    assert report.summary.total == n
    assert report.summary.succeeded == n - k - m
    assert report.summary.failed == k + m


def test_discovery_error_aborts_before_provisioning(tmp_path: Path) -> None:
    target = MagicMock()
    transfer = MagicMock()
    orchestrator = _orchestrator(
        tmp_path, FakeSource(error=DiscoveryError('boom', status_code=500)),
        target, transfer,
    )

    report = orchestrator.run()

    assert report.discovery_failed
    assert not report.succeeded
    assert report.exit_code == EXIT_DISCOVERY_ERROR
    assert report.summary.total == 0
    target.ensure_repo.assert_not_called()
    transfer.transfer.assert_not_called()
    assert orchestrator.state is RunState.DONE


def test_rerun_is_idempotent(tmp_path: Path) -> None:
    """A second run reuses existing repositories and reports no failures."""
    source = FakeSource(_descriptors('a', 'b'))
    target = FakeGitea()

    first = _orchestrator(tmp_path, source, target, FakeTransfer()).run()
    second = _orchestrator(tmp_path, source, target, FakeTransfer()).run()

    assert first.summary.succeeded == second.summary.succeeded == 2
    assert second.summary.failed == 0
    assert sorted(target.repos) == ['a', 'b']
    assert all(r.provision == ProvisionOutcome.already_exists() for r in second.results)


def test_dry_run_touches_nothing(tmp_path: Path) -> None:
    target = MagicMock()
    transfer = MagicMock()
    report = _orchestrator(
        tmp_path, FakeSource(_descriptors('a', 'b')), target, transfer, dry_run=True,
    ).run()

    assert report.exit_code == EXIT_SUCCESS
    target.ensure_repo.assert_not_called()
    transfer.transfer.assert_not_called()


def test_empty_work_dir_is_removed_after_run(tmp_path: Path) -> None:
    (tmp_path / 'work').mkdir()
    _orchestrator(tmp_path, FakeSource(_descriptors('a'))).run()
    assert not (tmp_path / 'work').exists()


def test_workspace_cleanup_failure_still_summarizes(tmp_path: Path, capsys) -> None:
    """A leftover workspace halts processing but the run is still reported."""
    cfg = _make_config(tmp_path)
    transfer = MirrorTransfer(cfg.source, cfg.destination, cfg.options.work_dir)
    orchestrator = MigrationOrchestrator(
        cfg,
        source=FakeSource(_descriptors('a', 'b', 'c')),
        target=FakeGitea(),
        transfer=transfer,
    )
    git_steps: List[str] = []
    real_rmtree = shutil.rmtree
    failures = [PermissionError('busy')]

    def fake_git(cmd, **kwargs):
        git_steps.append(cmd[1])
        return subprocess.CompletedProcess(cmd, 0, stdout='', stderr='')

    def flaky_rmtree(path, *args, **kwargs):
        if failures:
            raise failures.pop()
        return real_rmtree(path, *args, **kwargs)

    with patch('mirror_transfer.subprocess.run', side_effect=fake_git), \
            patch('mirror_transfer.shutil.rmtree', side_effect=flaky_rmtree):
        report = orchestrator.run()

    assert orchestrator.state is RunState.DONE
    assert git_steps == ['clone', 'push']
    assert report.halted
    assert report.exit_code == EXIT_EXECUTION_ERROR
    summary = report.summary
    assert (summary.total, summary.succeeded, summary.failed) == (3, 0, 3)
    assert summary.failed_names == ('a', 'b', 'c')
    assert 'workspace cleanup failed: busy' in summary.failures[0][1]
    assert summary.failures[1][1].startswith('not processed')
    assert len(report.results) == 1

    err = capsys.readouterr().err
    assert 'migration complete: 3 total, 0 succeeded, 3 failed' in err
