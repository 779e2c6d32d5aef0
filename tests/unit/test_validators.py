"""Unit tests for tool parameter validation."""

import pytest

from npm_readme_mcp.exceptions import ErrorCode, ValidationError
from npm_readme_mcp.validators import (
    validate_get_package_info_params,
    validate_get_package_readme_params,
    validate_limit,
    validate_package_name,
    validate_score,
    validate_search_packages_params,
    validate_search_query,
    validate_version,
)


class TestPackageName:
    """Test npm package name rules."""

    @pytest.mark.parametrize(
        "name",
        [
            "lodash",
            "express",
            "@babel/core",
            "@types/node",
            "@scope/npm",
            "lodash.debounce",
            "my_pkg",
            "a-b-c",
            "~tilde",
        ],
    )
    def test_valid_names(self, name):
        assert validate_package_name(name) == name

    def test_whitespace_is_trimmed(self):
        """Surrounding whitespace is removed."""
        assert validate_package_name("  lodash  ") == "lodash"

    @pytest.mark.parametrize(
        "name, fragment",
        [
            ("Lodash", 'Suggestion: "lodash"'),
            (".hidden", "start or end with a dot"),
            ("trailing-", "start or end with a hyphen"),
            ("a..b", "consecutive dots"),
            ("a_-b", "underscore-hyphen"),
            ("my package", 'Suggestion: "my-package"'),
            ("@scope", "must include a slash"),
            ("@/name", "valid scope name"),
            ("@scope/", "package name after the slash"),
            ("@scope/a/b", "only contain one slash"),
            ("foo@bar", "only allowed at the beginning"),
            ("foo!bar", "Invalid characters found: !"),
            ("node_modules", "reserved name"),
            ("npm", "reserved name"),
        ],
    )
    def test_invalid_names(self, name, fragment):
        """Each rule reports a specific message."""
        with pytest.raises(ValidationError) as exc_info:
            validate_package_name(name)

        assert exc_info.value.kind == "INVALID_PACKAGE_NAME"
        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert fragment in exc_info.value.message

    def test_too_long(self):
        with pytest.raises(ValidationError, match="cannot exceed 214"):
            validate_package_name("a" * 215)

    @pytest.mark.parametrize("name", [None, "", "   ", 42])
    def test_missing_or_wrong_type(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_package_name(name)

        assert exc_info.value.kind == "INVALID_PACKAGE_NAME"


class TestVersion:
    """Test version validation."""

    @pytest.mark.parametrize("version", ["1.0.0", "4.17.21", "1.0.0-beta.1", "1.0.0+build.5", "latest", "next", "beta", "alpha"])
    def test_valid(self, version):
        assert validate_version(version) == version

    @pytest.mark.parametrize("version", ["1.0", "v1.0.0", "canary", "01.0.0", "", None])
    def test_invalid(self, version):
        with pytest.raises(ValidationError) as exc_info:
            validate_version(version)

        assert exc_info.value.kind == "INVALID_VERSION"


class TestSearchInputs:
    """Test query, limit and score validation."""

    def test_query_limits(self):
        assert validate_search_query("react hooks") == "react hooks"
        assert validate_search_query("x" * 250) == "x" * 250

        for bad in ("", "   ", "x" * 251, None):
            with pytest.raises(ValidationError) as exc_info:
                validate_search_query(bad)
            assert exc_info.value.kind == "INVALID_SEARCH_QUERY"

    @pytest.mark.parametrize("limit, expected", [(1, 1), (250, 250), (20.0, 20)])
    def test_valid_limits(self, limit, expected):
        assert validate_limit(limit) == expected

    @pytest.mark.parametrize("limit", [0, 251, 2.5, -1, True, "20", float("nan")])
    def test_invalid_limits(self, limit):
        with pytest.raises(ValidationError) as exc_info:
            validate_limit(limit)

        assert exc_info.value.kind == "INVALID_LIMIT"

    @pytest.mark.parametrize("score", [0, 0.5, 1])
    def test_valid_scores(self, score):
        assert validate_score(score, "Quality") == score

    @pytest.mark.parametrize("score", [-0.01, 1.01, float("inf"), False, "0.5"])
    def test_invalid_scores(self, score):
        with pytest.raises(ValidationError) as exc_info:
            validate_score(score, "Popularity")

        assert exc_info.value.kind == "INVALID_SCORE"
        assert exc_info.value.data["field"] == "popularity"


class TestParamModels:
    """Test whole-argument validation."""

    def test_readme_defaults(self):
        params = validate_get_package_readme_params({"package_name": "lodash"})

        assert params.version == "latest"
        assert params.include_examples is True

    def test_info_defaults(self):
        params = validate_get_package_info_params({"package_name": "lodash", "unknown": 1})

        assert params.include_dependencies is True
        assert params.include_dev_dependencies is False

    def test_search_defaults(self):
        params = validate_search_packages_params({"query": "react"})

        assert params.limit == 20
        assert params.quality is None

    @pytest.mark.parametrize(
        "arguments",
        [
            {},
            {"package_name": ["lodash"]},
            "lodash",
        ],
    )
    def test_type_errors_are_invalid_params(self, arguments):
        with pytest.raises(ValidationError) as exc_info:
            validate_get_package_info_params(arguments)

        assert exc_info.value.kind == "INVALID_PARAMS"
