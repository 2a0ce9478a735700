#!/usr/bin/env python3
"""GitHub API wrapper for discovering the repositories a user owns."""

from __future__ import annotations

from typing import Iterator, List, Optional, Set

import requests

from config import DEFAULT_PER_PAGE, GITHUB_REQUESTS_PER_MINUTE, SourceConfig
from errors import DecodingError, DiscoveryError
from logging_utils import Logger
from models import RepositoryDescriptor
from security import SecurityValidator
from utils import RateLimiter, response_detail

GITHUB_API_VERSION = "2022-11-28"
REQUEST_TIMEOUT_S = 30


class GitHubSource:
    """Enumerates owned repositories, most recently updated first."""

    def __init__(
        self,
        config: SourceConfig,
        per_page: int = DEFAULT_PER_PAGE,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.per_page = per_page
        self.session = session or requests.Session()
        self.rate_limiter = RateLimiter("GitHub API", GITHUB_REQUESTS_PER_MINUTE)

    def _get_api_headers(self) -> dict:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.config.token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _fetch_page(self, page: int) -> List[object]:
        url = f"{self.config.api_url}/user/repos"
        params = {
            "page": page,
            "per_page": self.per_page,
            "affiliation": "owner",
            "sort": "updated",
            "direction": "desc",
        }
        try:
            self.rate_limiter.wait_if_needed()
            response = self.session.get(
                url,
                headers=self._get_api_headers(),
                params=params,
                timeout=REQUEST_TIMEOUT_S,
            )
        except requests.RequestException as e:
            raise DiscoveryError(
                f"failed to contact github api (page {page})",
                detail=SecurityValidator.sanitize_for_logging(str(e)),
            ) from e

        if response.status_code != 200:
            raise DiscoveryError(
                f"github api returned HTTP {response.status_code} listing "
                f"repositories (page {page})",
                status_code=response.status_code,
                detail=SecurityValidator.sanitize_for_logging(
                    response_detail(response)
                ),
            )

        try:
            body = response.json()
        except ValueError as e:
            raise DiscoveryError(
                f"github api returned a non-JSON body (page {page})",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, list):
            raise DiscoveryError(
                f"github api returned {type(body).__name__} instead of a list "
                f"(page {page})",
                status_code=response.status_code,
            )
        return body

    def list_repositories(self) -> Iterator[RepositoryDescriptor]:
        """Yield every owned repository once, stopping at the first empty page.

        Raises DiscoveryError if any page cannot be fetched or decoded; an error
        is never mistaken for the end of the listing.
        """
        Logger.info(f"discovering repositories owned by: {self.config.username}")
        seen: Set[str] = set()
        page = 1
        while True:
            entries = self._fetch_page(page)
            if not entries:
                Logger.debug(f"page {page} is empty, listing complete")
                break

            Logger.debug(f"page {page}: {len(entries)} entries")
            for entry in entries:
                try:
                    descriptor = RepositoryDescriptor.from_api(entry)
                except DecodingError as e:
                    raise DiscoveryError(
                        f"malformed repository entry on page {page}: {e}"
                    ) from e

                if descriptor.name in seen:
                    Logger.warn(f"skipping duplicate listing entry: {descriptor.name}")
                    continue
                seen.add(descriptor.name)
                Logger.debug(f"found: {descriptor.name} ({descriptor.visibility.value})")
                yield descriptor
            page += 1

        Logger.info(f"found {len(seen)} repositories to migrate")
