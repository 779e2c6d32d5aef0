"""Unit tests for the npm registry client."""

import pytest

from npm_readme_mcp.exceptions import (
    NetworkError,
    PackageNotFoundError,
    VersionNotFoundError,
)


@pytest.mark.asyncio
class TestPackageInfo:
    """Test packument and version lookups."""

    async def test_get_package_info(self, npm_client, mock_http, make_response, lodash_packument):
        """Returns the raw packument."""
        http = mock_http(npm_client, make_response(200, lodash_packument))

        info = await npm_client.get_package_info("lodash")

        assert info["name"] == "lodash"
        http.get.assert_awaited_once()
        assert http.get.call_args.args[0] == "https://registry.npmjs.org/lodash"

    async def test_scoped_package_url_is_encoded(self, npm_client, mock_http, make_response):
        """The scope slash is percent-encoded."""
        http = mock_http(npm_client, make_response(200, {"name": "@babel/core"}))

        await npm_client.get_package_info("@babel/core")

        assert http.get.call_args.args[0] == "https://registry.npmjs.org/@babel%2Fcore"

    async def test_missing_package_raises(self, npm_client, mock_http, make_response):
        """404 maps to PackageNotFoundError."""
        mock_http(npm_client, make_response(404, {"error": "Not found"}))

        with pytest.raises(PackageNotFoundError) as exc_info:
            await npm_client.get_package_info("no-such-package")

        assert exc_info.value.kind == "PACKAGE_NOT_FOUND"
        assert exc_info.value.package_name == "no-such-package"

    async def test_version_resolves_dist_tags(self, npm_client, lodash_packument):
        """latest and other dist-tags resolve through the packument."""
        latest = await npm_client.get_version_info("lodash", "latest", package_info=lodash_packument)
        tagged = await npm_client.get_version_info("lodash", "next", package_info=lodash_packument)
        exact = await npm_client.get_version_info("lodash", "4.17.20", package_info=lodash_packument)

        assert latest["version"] == "4.17.21"
        assert tagged["version"] == "5.0.0-beta.1"
        assert exact["version"] == "4.17.20"

    async def test_unknown_version_raises(self, npm_client, lodash_packument):
        """Versions missing from the packument raise VersionNotFoundError."""
        with pytest.raises(VersionNotFoundError) as exc_info:
            await npm_client.get_version_info("lodash", "9.9.9", package_info=lodash_packument)

        assert exc_info.value.kind == "VERSION_NOT_FOUND"

    async def test_version_lookup_fetches_packument_when_missing(
        self, npm_client, mock_http, make_response, lodash_packument
    ):
        """Without package_info the packument is fetched."""
        http = mock_http(npm_client, make_response(200, lodash_packument))

        version_info = await npm_client.get_version_info("lodash", "latest")

        assert version_info["version"] == "4.17.21"
        assert http.get.await_count == 1


@pytest.mark.asyncio
class TestSearch:
    """Test registry search."""

    async def test_search_passes_query_and_size(self, npm_client, mock_http, make_response, search_payload):
        """text and size are sent as query parameters."""
        http = mock_http(npm_client, make_response(200, search_payload))

        result = await npm_client.search_packages("react", 10)

        assert len(result["objects"]) == 2
        assert http.get.call_args.kwargs["params"] == {"text": "react", "size": 10}

    async def test_search_filters_by_minimum_scores(
        self, npm_client, mock_http, make_response, search_payload
    ):
        """Objects under the quality/popularity floor are dropped."""
        mock_http(npm_client, make_response(200, search_payload))

        result = await npm_client.search_packages("react", 20, quality=0.5, popularity=0.5)

        assert [obj["package"]["name"] for obj in result["objects"]] == ["react"]
        assert result["total"] == 2


@pytest.mark.asyncio
class TestDownloadStats:
    """Test best-effort download statistics."""

    async def test_download_stats(self, npm_client, mock_http, make_response):
        """Returns the download count for a period."""
        http = mock_http(npm_client, make_response(200, {"downloads": 1234, "package": "lodash"}))

        count = await npm_client.get_download_stats("lodash", "last-week")

        assert count == 1234
        assert http.get.call_args.args[0] == "https://api.npmjs.org/downloads/point/last-week/lodash"

    async def test_download_stats_failure_returns_zero(self, npm_client, mock_http, make_response):
        """Upstream failures degrade to zero."""
        mock_http(npm_client, make_response(404, {"error": "package not found"}))

        assert await npm_client.get_download_stats("lodash", "last-day") == 0

    async def test_all_download_stats(self, npm_client, mock_http, make_response):
        """All periods are collected into one mapping."""

        async def respond(url, **kwargs):
            counts = {"last-day": 1, "last-week": 7, "last-month": 30}
            period = url.split("/point/")[1].split("/")[0]
            return make_response(200, {"downloads": counts[period]}, url=url)

        mock_http(npm_client, respond)

        stats = await npm_client.get_all_download_stats("lodash")

        assert stats == {"last_day": 1, "last_week": 7, "last_month": 30}

    async def test_server_error_propagates_for_metadata(self, npm_client, mock_http, make_response):
        """Non-retryable HTTP errors on metadata calls raise NetworkError."""
        mock_http(npm_client, make_response(403, {"error": "forbidden"}))

        with pytest.raises(NetworkError) as exc_info:
            await npm_client.get_package_info("lodash")

        assert exc_info.value.data["status_code"] == 403
