#!/usr/bin/env python3
"""Typed records exchanged between discovery, provisioning and transfer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

from errors import DecodingError
from security import SecurityValidator


class Visibility(Enum):
    """Enumeration for repository visibility levels."""
    PRIVATE = "private"
    PUBLIC = "public"


class ProvisionStatus(Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


class TransferStatus(Enum):
    SUCCEEDED = "succeeded"
    CLONE_FAILED = "clone_failed"
    PUSH_FAILED = "push_failed"


def _require(payload: dict, key: str, kinds: Tuple[type, ...], nullable: bool = False) -> Any:
    if key not in payload:
        raise DecodingError(f"missing field '{key}'")
    value = payload[key]
    if value is None and nullable:
        return None
    # bool is an int subclass; only accept it where asked for explicitly
    if not isinstance(value, kinds) or (isinstance(value, bool) and bool not in kinds):
        expected = " or ".join(k.__name__ for k in kinds)
        raise DecodingError(
            f"field '{key}' has type {type(value).__name__}, expected {expected}"
        )
    return value


@dataclass(frozen=True)
class RepositoryDescriptor:
    """Immutable record of one source repository."""
    name: str
    description: Optional[str]
    visibility: Visibility
    updated_at: Optional[str] = None

    @property
    def private(self) -> bool:
        return self.visibility is Visibility.PRIVATE

    @classmethod
    def from_api(cls, payload: Any) -> "RepositoryDescriptor":
        """Decode one entry of the GitHub repository listing."""
        if not isinstance(payload, dict):
            raise DecodingError(
                f"repository entry has type {type(payload).__name__}, expected object"
            )
        name = _require(payload, "name", (str,))
        try:
            SecurityValidator.validate_repo_name(name)
        except ValueError as e:
            raise DecodingError(str(e)) from e
        private = _require(payload, "private", (bool,))
        updated_at = payload.get("updated_at")
        return cls(
            name=name,
            description=_require(payload, "description", (str,), nullable=True),
            visibility=Visibility.PRIVATE if private else Visibility.PUBLIC,
            updated_at=updated_at if isinstance(updated_at, str) else None,
        )


@dataclass(frozen=True)
class GiteaRepository:
    """The fields of a Gitea create-repository response that are relied upon."""
    name: str
    full_name: str
    clone_url: str

    @classmethod
    def from_api(cls, payload: Any) -> "GiteaRepository":
        if not isinstance(payload, dict):
            raise DecodingError(
                f"repository response has type {type(payload).__name__}, "
                "expected object"
            )
        return cls(
            name=_require(payload, "name", (str,)),
            full_name=_require(payload, "full_name", (str,)),
            clone_url=_require(payload, "clone_url", (str,)),
        )


@dataclass(frozen=True)
class ProvisionOutcome:
    status: ProvisionStatus
    status_code: Optional[int] = None
    detail: str = ""

    @classmethod
    def created(cls) -> "ProvisionOutcome":
        return cls(ProvisionStatus.CREATED, 201)

    @classmethod
    def already_exists(cls) -> "ProvisionOutcome":
        return cls(ProvisionStatus.ALREADY_EXISTS, 409)

    @classmethod
    def failed(cls, status_code: Optional[int], detail: str) -> "ProvisionOutcome":
        return cls(ProvisionStatus.FAILED, status_code, detail)

    @property
    def ok(self) -> bool:
        return self.status is not ProvisionStatus.FAILED


@dataclass(frozen=True)
class TransferOutcome:
    status: TransferStatus
    detail: str = ""

    @classmethod
    def succeeded(cls) -> "TransferOutcome":
        return cls(TransferStatus.SUCCEEDED)

    @classmethod
    def clone_failed(cls, detail: str) -> "TransferOutcome":
        return cls(TransferStatus.CLONE_FAILED, detail)

    @classmethod
    def push_failed(cls, detail: str) -> "TransferOutcome":
        return cls(TransferStatus.PUSH_FAILED, detail)

    @property
    def ok(self) -> bool:
        return self.status is TransferStatus.SUCCEEDED


@dataclass(frozen=True)
class RepositoryResult:
    """Final, write-once record of what happened to one repository."""
    descriptor: RepositoryDescriptor
    provision: ProvisionOutcome
    transfer: Optional[TransferOutcome] = None
    # set when the repository could not be finished cleanly, e.g. a leftover workspace
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return (
            self.error is None
            and self.provision.ok
            and self.transfer is not None
            and self.transfer.ok
        )

    @property
    def failure_reason(self) -> str:
        if self.error is not None:
            return self.error
        if not self.provision.ok:
            code = self.provision.status_code
            status = f"HTTP {code}" if code is not None else "request error"
            return f"create repository failed ({status}): {self.provision.detail}"
        if self.transfer is None:
            return "transfer not attempted"
        if self.transfer.status is TransferStatus.CLONE_FAILED:
            return f"clone failed: {self.transfer.detail}"
        if self.transfer.status is TransferStatus.PUSH_FAILED:
            return f"push failed: {self.transfer.detail}"
        return ""


@dataclass(frozen=True)
class RunSummary:
    total: int
    succeeded: int
    failed: int
    failed_names: Tuple[str, ...] = ()
    failures: Tuple[Tuple[str, str], ...] = ()


def summarize(
    results: Iterable[RepositoryResult],
    unprocessed: Iterable[RepositoryDescriptor] = (),
) -> RunSummary:
    """Reduce the ordered result list into a run summary.

    Repositories in ``unprocessed`` were discovered but never attempted because
    the run halted; they count as failed.
    """
    results = list(results)
    unprocessed = list(unprocessed)
    failures = [(r.descriptor.name, r.failure_reason) for r in results if not r.succeeded]
    failures.extend(
        (d.name, "not processed: run halted before this repository")
        for d in unprocessed
    )
    total = len(results) + len(unprocessed)
    return RunSummary(
        total=total,
        succeeded=total - len(failures),
        failed=len(failures),
        failed_names=tuple(name for name, _ in failures),
        failures=tuple(failures),
    )
