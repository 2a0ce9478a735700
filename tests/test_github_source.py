"""Tests for GitHubSource paginated discovery."""

from __future__ import annotations

from typing import Any, List
from unittest.mock import MagicMock

import pytest
import requests

from config import SourceConfig
from errors import DiscoveryError
from github_source import GitHubSource


def _response(status: int, body: Any = None, text: str = '') -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.text = text
    response.reason = 'reason'
    response.json.return_value = body
    return response


def _repo(name: str, private: bool = False) -> dict:
    return {
        'name': name,
        'description': f'{name} description',
        'private': private,
        'updated_at': '2025-01-01T00:00:00Z',
    }


def _make_source(responses: List[MagicMock], per_page: int = 2) -> GitHubSource:
    session = MagicMock()
    session.get.side_effect = responses
    return GitHubSource(
        SourceConfig(username='octo', token='ghp_sourcetoken'),
        per_page=per_page,
        session=session,
    )


def test_pagination_stops_at_first_empty_page() -> None:
    source = _make_source([
        _response(200, [_repo('a'), _repo('b', private=True)]),
        _response(200, [_repo('c')]),
        _response(200, []),
    ])

    repos = list(source.list_repositories())

    assert [r.name for r in repos] == ['a', 'b', 'c']
    assert repos[1].private is True
    assert source.session.get.call_count == 3
    pages = [call.kwargs['params']['page'] for call in source.session.get.call_args_list]
    assert pages == [1, 2, 3]


def test_request_parameters_and_auth() -> None:
    source = _make_source([_response(200, [])], per_page=100)

    assert list(source.list_repositories()) == []

    call = source.session.get.call_args
    assert call.args[0] == 'https://api.github.com/user/repos'
    assert call.kwargs['params'] == {
        'page': 1,
        'per_page': 100,
        'affiliation': 'owner',
        'sort': 'updated',
        'direction': 'desc',
    }
    assert call.kwargs['headers']['Authorization'] == 'Bearer ghp_sourcetoken'


def test_duplicates_across_pages_are_dropped() -> None:
    """A repo shifting pages between fetches must only be yielded once."""
    source = _make_source([
        _response(200, [_repo('a'), _repo('b')]),
        _response(200, [_repo('b'), _repo('c')]),
        _response(200, []),
    ])

    assert [r.name for r in source.list_repositories()] == ['a', 'b', 'c']


def test_http_error_is_not_end_of_listing() -> None:
    source = _make_source([
        _response(200, [_repo('a')]),
        _response(502, text='Bad Gateway'),
    ])

    with pytest.raises(DiscoveryError) as excinfo:
        list(source.list_repositories())

    assert excinfo.value.status_code == 502
    assert 'Bad Gateway' in excinfo.value.detail


def test_network_error_raises_discovery_error() -> None:
    source = _make_source([requests.ConnectionError('connection refused')])

    with pytest.raises(DiscoveryError):
        list(source.list_repositories())


def test_non_list_body_raises_discovery_error() -> None:
    source = _make_source([_response(200, {'message': 'Bad credentials'})])

    with pytest.raises(DiscoveryError):
        list(source.list_repositories())


def test_non_json_body_raises_discovery_error() -> None:
    response = _response(200)
    response.json.side_effect = ValueError('not json')
    source = _make_source([response])

    with pytest.raises(DiscoveryError):
        list(source.list_repositories())


def test_malformed_entry_raises_discovery_error() -> None:
    source = _make_source([_response(200, [{'name': 'a'}])])

    with pytest.raises(DiscoveryError, match='malformed'):
        list(source.list_repositories())
