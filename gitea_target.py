#!/usr/bin/env python3
"""Gitea API wrapper for provisioning destination repositories."""

from __future__ import annotations

from typing import Optional

import requests

from config import GITEA_REQUESTS_PER_MINUTE, DestinationConfig
from errors import DecodingError, ProvisionError
from logging_utils import Logger
from models import GiteaRepository, ProvisionOutcome, RepositoryDescriptor
from security import SecurityValidator
from utils import RateLimiter, response_detail

REQUEST_TIMEOUT_S = 30
HTTP_CREATED = 201
HTTP_CONFLICT = 409


class GiteaTarget:
    """Creates repositories under the authenticated Gitea user."""

    def __init__(
        self,
        config: DestinationConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.rate_limiter = RateLimiter("Gitea API", GITEA_REQUESTS_PER_MINUTE)

    def _get_api_headers(self) -> dict:
        return {
            "Accept": "application/json",
            "Authorization": f"token {self.config.token}",
            "Content-Type": "application/json",
        }

    def _create_repo(self, descriptor: RepositoryDescriptor) -> requests.Response:
        payload = {
            "name": descriptor.name,
            "description": descriptor.description or "",
            "private": descriptor.private,
            # history arrives via mirror push; an initial commit would conflict
            "auto_init": False,
        }
        try:
            self.rate_limiter.wait_if_needed()
            return self.session.post(
                f"{self.config.url}/api/v1/user/repos",
                headers=self._get_api_headers(),
                json=payload,
                timeout=REQUEST_TIMEOUT_S,
            )
        except requests.RequestException as e:
            raise ProvisionError(
                f"failed to contact gitea api: {e}",
                detail=SecurityValidator.sanitize_for_logging(str(e)),
            ) from e

    def ensure_repo(self, descriptor: RepositoryDescriptor) -> ProvisionOutcome:
        """Create the destination repository; an existing one counts as success."""
        name = descriptor.name
        Logger.info(f"creating '{name}' on gitea")
        try:
            response = self._create_repo(descriptor)
        except ProvisionError as e:
            Logger.error(f"could not create '{name}': {e.detail}")
            return ProvisionOutcome.failed(e.status_code, e.detail)

        if response.status_code == HTTP_CREATED:
            try:
                created = GiteaRepository.from_api(response.json())
            except (ValueError, DecodingError) as e:
                Logger.warn(f"created '{name}' but could not decode the response: {e}")
            else:
                Logger.success(f"created '{created.full_name}'")
            return ProvisionOutcome.created()

        if response.status_code == HTTP_CONFLICT:
            Logger.warn(f"'{name}' already exists")
            return ProvisionOutcome.already_exists()

        detail = SecurityValidator.sanitize_for_logging(response_detail(response))
        Logger.error(f"gitea api returned HTTP {response.status_code} for '{name}': {detail}")
        return ProvisionOutcome.failed(response.status_code, detail)
