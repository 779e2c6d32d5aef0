"""Shared test fixtures and configuration."""

from typing import Any, Callable, Dict, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from npm_readme_mcp.cache import MemoryCache, MemoryCacheConfig
from npm_readme_mcp.clients import GitHubClient, NpmRegistryClient
from npm_readme_mcp.config import CacheConfig, UpstreamConfig


class FakeClock:
    """Millisecond clock advanced manually by tests."""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """Controllable clock for cache expiry tests."""
    return FakeClock()


@pytest.fixture
def cache(clock):
    """Memory cache driven by the fake clock (no running loop, so no sweeper)."""
    memory_cache = MemoryCache(MemoryCacheConfig(default_ttl_ms=60_000), clock=clock)
    yield memory_cache
    memory_cache.destroy()


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    """Factory for httpx responses that support raise_for_status()."""

    def _make(
        status_code: int = 200,
        json_data: Any = None,
        text: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        url: str = "https://registry.npmjs.org/test",
    ) -> httpx.Response:
        request = httpx.Request("GET", url)
        if json_data is not None:
            return httpx.Response(status_code, json=json_data, headers=headers, request=request)
        return httpx.Response(status_code, text=text or "", headers=headers, request=request)

    return _make


@pytest.fixture
def mock_http() -> Callable[..., AsyncMock]:
    """Replace an upstream client's httpx client with an AsyncMock."""

    def _attach(client, *responses: Any) -> AsyncMock:
        http = AsyncMock(spec=httpx.AsyncClient)
        if len(responses) == 1 and callable(responses[0]):
            http.get.side_effect = responses[0]
        else:
            http.get.side_effect = list(responses)
        client._session_manager._client = http
        return http

    return _attach


@pytest.fixture
def upstream_config():
    """Upstream settings with fast retries."""
    return UpstreamConfig(max_retries=2, timeout_seconds=5.0)


@pytest.fixture
def npm_client(upstream_config):
    return NpmRegistryClient(upstream_config, backoff_base=0.0)


@pytest.fixture
def github_client(upstream_config):
    return GitHubClient(upstream_config, backoff_base=0.0)


@pytest.fixture
def cache_config():
    return CacheConfig()


@pytest.fixture
def lodash_packument() -> Dict[str, Any]:
    """Trimmed registry packument for lodash."""
    return {
        "name": "lodash",
        "description": "Lodash modular utilities.",
        "dist-tags": {"latest": "4.17.21", "next": "5.0.0-beta.1"},
        "versions": {
            "4.17.20": {
                "name": "lodash",
                "version": "4.17.20",
                "description": "Lodash modular utilities.",
            },
            "4.17.21": {
                "name": "lodash",
                "version": "4.17.21",
                "description": "Lodash modular utilities.",
                "main": "lodash.js",
                "license": "MIT",
                "author": {"name": "John-David Dalton", "email": "john.david.dalton@gmail.com"},
                "keywords": ["modules", "stdlib", "util"],
                "homepage": "https://lodash.com/",
                "bugs": {"url": "https://github.com/lodash/lodash/issues"},
                "repository": {"type": "git", "url": "git+https://github.com/lodash/lodash.git"},
                "dependencies": {},
                "devDependencies": {"mocha": "^10.0.0"},
            },
            "5.0.0-beta.1": {"name": "lodash", "version": "5.0.0-beta.1"},
        },
        "readme": (
            "# lodash\n\n"
            "![build](https://img.shields.io/badge/build-passing.svg)\n\n"
            "The [Lodash](https://lodash.com/) library exported as Node.js modules.\n\n\n\n"
            "## Installation\n\n"
            "```bash\n$ npm i --save lodash\n```\n\n"
            "```js\nvar _ = require('lodash');\n```\n"
        ),
        "license": "MIT",
        "repository": {"type": "git", "url": "git+https://github.com/lodash/lodash.git"},
    }


@pytest.fixture
def search_payload() -> Dict[str, Any]:
    """Registry search response with two results of differing scores."""
    return {
        "objects": [
            {
                "package": {
                    "name": "react",
                    "version": "18.2.0",
                    "description": "React is a JavaScript library for building user interfaces.",
                    "keywords": ["react"],
                    "author": {"name": "Meta"},
                    "publisher": {"username": "react-bot"},
                    "maintainers": [{"username": "gaearon"}, {"username": "acdlite"}],
                },
                "score": {
                    "final": 0.95,
                    "detail": {"quality": 0.9, "popularity": 0.98, "maintenance": 0.99},
                },
                "searchScore": 100000.5,
            },
            {
                "package": {
                    "name": "react-tiny",
                    "version": "0.0.1",
                    "publisher": {"username": "someone"},
                    "maintainers": [{"username": "someone"}],
                },
                "score": {
                    "final": 0.2,
                    "detail": {"quality": 0.3, "popularity": 0.05, "maintenance": 0.4},
                },
                "searchScore": 12.0,
            },
        ],
        "total": 2,
    }
