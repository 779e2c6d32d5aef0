"""Unit tests for server configuration."""

import os
from unittest.mock import patch

from npm_readme_mcp.config import (
    CacheConfig,
    LoggingConfig,
    ServerConfig,
    UpstreamConfig,
    validate_config,
)


class TestConfigDefaults:
    """Test default values."""

    def test_cache_defaults(self):
        config = CacheConfig()

        assert config.default_ttl_ms == 3_600_000
        assert config.max_size_bytes == 104_857_600
        assert config.ttl_search_ms < config.ttl_package_info_ms

    def test_upstream_defaults(self):
        config = UpstreamConfig()

        assert config.npm_registry_url == "https://registry.npmjs.org"
        assert config.github_token is None
        assert config.max_retries == 3

    def test_server_defaults(self):
        config = ServerConfig()

        assert config.transport == "stdio"
        assert config.get_enabled_features() == [
            "cache",
            "error_handler",
            "enhanced_logging",
            "download_stats",
        ]


class TestFromEnv:
    """Test environment loading."""

    def test_cache_from_env(self):
        env = {"CACHE_TTL_SEARCH_MS": "1000", "CACHE_MAX_SIZE_BYTES": "2048"}
        with patch.dict(os.environ, env):
            config = CacheConfig.from_env()

        assert config.ttl_search_ms == 1000
        assert config.max_size_bytes == 2048

    def test_feature_overrides(self):
        """MCP_ENABLE_<FEATURE> toggles individual features."""
        env = {"MCP_ENABLE_CACHE": "false", "MCP_TRANSPORT": "http", "MCP_SERVER_PORT": "9000"}
        with patch.dict(os.environ, env):
            config = ServerConfig.from_env()

        assert config.features["cache"] is False
        assert config.features["error_handler"] is True
        assert config.transport == "http"
        assert config.port == 9000

    def test_logging_from_env(self):
        env = {"LOG_LEVEL": "debug", "LOG_FORMAT": "JSON", "USE_EMOJI": "false"}
        with patch.dict(os.environ, env):
            config = LoggingConfig.from_env()

        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        assert config.use_emoji is False


class TestValidation:
    """Test configuration validation."""

    def test_default_config_is_valid(self):
        is_valid, errors = validate_config(ServerConfig())

        assert is_valid, errors

    def test_invalid_values_reported(self):
        config = ServerConfig(transport="websocket")
        config.cache_config.ttl_search_ms = 0
        config.upstream_config.npm_registry_url = "ftp://registry"
        config.logging_config.log_format = "xml"

        is_valid, errors = validate_config(config)

        assert not is_valid
        assert len(errors) == 4

    def test_ttl_upper_bound(self):
        config = ServerConfig()
        config.cache_config.ttl_readme_ms = 86_400_001

        is_valid, errors = validate_config(config)

        assert not is_valid
        assert any("README" in error for error in errors)

    def test_cache_settings_skipped_when_disabled(self):
        config = ServerConfig()
        config.features["cache"] = False
        config.cache_config.max_size_bytes = 0

        assert validate_config(config)[0] is True

    def test_to_dict_masks_token(self):
        config = ServerConfig(upstream_config=UpstreamConfig(github_token="ghp_secret"))

        data = config.to_dict()

        assert data["upstream_config"]["github_token"] == "***"
        assert data["features"]["cache"] is True
