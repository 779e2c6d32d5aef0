"""Unit tests for the search_packages tool."""

from unittest.mock import AsyncMock

import pytest

from npm_readme_mcp.clients import GitHubClient, NpmRegistryClient
from npm_readme_mcp.exceptions import ValidationError
from npm_readme_mcp.tools import SearchPackagesTool, ToolDependencies, to_search_result


@pytest.fixture
def npm(search_payload):
    client = AsyncMock(spec=NpmRegistryClient)
    client.search_packages.return_value = search_payload
    return client


@pytest.fixture
def tool(npm, cache, cache_config):
    return SearchPackagesTool(
        ToolDependencies(
            npm_client=npm,
            github_client=AsyncMock(spec=GitHubClient),
            cache=cache,
            cache_config=cache_config,
        )
    )


class TestSearchResultMapping:
    """Test registry object mapping."""

    def test_maps_fields(self, search_payload):
        """Author, publisher, maintainers and scores are flattened."""
        result = to_search_result(search_payload["objects"][0])

        assert result.name == "react"
        assert result.author == "Meta"
        assert result.publisher == "react-bot"
        assert result.maintainers == ["gaearon", "acdlite"]
        assert result.score.detail.popularity == 0.98
        assert result.search_score == 100000.5

    def test_missing_fields_use_defaults(self, search_payload):
        """Sparse objects get placeholder values."""
        result = to_search_result(search_payload["objects"][1])

        assert result.description == "No description available"
        assert result.author == "Unknown"
        assert result.keywords == []


@pytest.mark.asyncio
class TestSearchTool:
    """Test search responses and caching."""

    async def test_search_response(self, tool, npm):
        """Results are counted and the query echoed."""
        result = await tool.run({"query": "react", "limit": 10})

        assert result["query"] == "react"
        assert result["total"] == 2
        npm.search_packages.assert_awaited_once_with("react", 10, quality=None, popularity=None)

    async def test_different_filters_do_not_collide(self, tool, npm, cache):
        """Each filter combination gets its own cache entry."""
        await tool.run({"query": "react", "quality": 0.5})
        await tool.run({"query": "react", "quality": 0.8})
        await tool.run({"query": "react", "popularity": 0.5})
        await tool.run({"query": "react", "quality": 0.5})

        assert npm.search_packages.await_count == 3
        assert cache.size() == 3

    async def test_search_ttl_is_shorter(self, tool, cache, clock, cache_config):
        """Search entries expire after the search TTL."""
        await tool.run({"query": "react"})

        clock.advance(cache_config.ttl_search_ms + 1)

        assert cache.size() == 1
        assert cache.cleanup() == 1

    async def test_integral_float_limit_accepted(self, tool, npm):
        """20.0 is a valid limit and normalized to 20."""
        await tool.run({"query": "react", "limit": 20.0})

        npm.search_packages.assert_awaited_once_with("react", 20, quality=None, popularity=None)

    @pytest.mark.parametrize(
        "arguments, kind",
        [
            ({"query": ""}, "INVALID_SEARCH_QUERY"),
            ({"query": "x" * 251}, "INVALID_SEARCH_QUERY"),
            ({"query": "react", "limit": 0}, "INVALID_LIMIT"),
            ({"query": "react", "limit": 251}, "INVALID_LIMIT"),
            ({"query": "react", "limit": 2.5}, "INVALID_LIMIT"),
            ({"query": "react", "quality": 1.5}, "INVALID_SCORE"),
            ({"query": "react", "popularity": -0.1}, "INVALID_SCORE"),
            ({"limit": 10}, "INVALID_PARAMS"),
        ],
    )
    async def test_invalid_arguments(self, tool, npm, arguments, kind):
        """Invalid inputs raise the matching validation kind."""
        with pytest.raises(ValidationError) as exc_info:
            await tool.run(arguments)

        assert exc_info.value.kind == kind
        npm.search_packages.assert_not_called()
