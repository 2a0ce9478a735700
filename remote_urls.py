#!/usr/bin/env python3
"""Construction of credential-bearing git remote URLs.

Every authenticated URL used for git transport is produced here, so that
the host/path rules (scheme handling, owner case-folding) live in exactly one
place. ``RemoteUrl`` renders its credentials only through ``authenticated()``;
``str()`` and ``repr()`` give a redacted form that is safe to log.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, urlparse

from config import DestinationConfig, SourceConfig


@dataclass(frozen=True)
class Credential:
    """A token, optionally paired with a username, for HTTPS git auth."""
    token: str = field(repr=False)
    username: Optional[str] = None

    def userinfo(self) -> str:
        token = quote(self.token, safe="")
        if self.username:
            return f"{quote(self.username, safe='')}:{token}"
        return token


@dataclass(frozen=True)
class RemoteUrl:
    scheme: str
    host: str
    path: str
    credential: Optional[Credential] = field(default=None, repr=False)

    def authenticated(self) -> str:
        """Full URL including credentials; only ever handed to git."""
        if self.credential is None:
            return self.anonymous()
        return f"{self.scheme}://{self.credential.userinfo()}@{self.host}/{self.path}"

    def anonymous(self) -> str:
        return f"{self.scheme}://{self.host}/{self.path}"

    def redacted(self) -> str:
        if self.credential is None:
            return self.anonymous()
        return f"{self.scheme}://[REDACTED]@{self.host}/{self.path}"

    def __str__(self) -> str:
        return self.redacted()

    def __repr__(self) -> str:
        return f"RemoteUrl({self.redacted()!r})"


def split_base_url(url: str) -> tuple[str, str]:
    """Split a base URL into (scheme, host[:port][/prefix]).

    A URL given without a scheme is treated as https.
    """
    if "://" not in url:
        url = f"https://{url}"
    parsed = urlparse(url)
    location = parsed.netloc.rsplit("@", 1)[-1]
    prefix = parsed.path.strip("/")
    if prefix:
        location = f"{location}/{prefix}"
    return (parsed.scheme or "https").lower(), location


def source_repo_url(source: SourceConfig, name: str) -> RemoteUrl:
    """``https://<token>@<host>/<owner>/<name>.git``"""
    scheme, host = split_base_url(source.host)
    return RemoteUrl(
        scheme=scheme,
        host=host,
        path=f"{source.username}/{name}.git",
        credential=Credential(token=source.token),
    )


def destination_repo_url(destination: DestinationConfig, name: str) -> RemoteUrl:
    """``<scheme>://<user>:<token>@<host>/<lowercased user>/<name>.git``

    Gitea owner namespaces are case-insensitive but served lowercased, so the
    owner segment is always folded; the credential keeps the login as given.
    """
    scheme, host = split_base_url(destination.url)
    return RemoteUrl(
        scheme=scheme,
        host=host,
        path=f"{destination.username.lower()}/{name}.git",
        credential=Credential(token=destination.token, username=destination.username),
    )
