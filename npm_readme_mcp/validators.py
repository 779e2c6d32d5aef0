"""
도구 파라미터 검증 모듈

모든 검증은 캐시 조회 이전에 수행되며 실패 시 ValidationError를
발생시킵니다. 에러 종류(kind)로 실패 원인을 구분합니다.

에러 종류:
    - INVALID_PARAMS: 인자 타입/필수값 오류
    - INVALID_PACKAGE_NAME: npm 패키지 이름 규칙 위반 (수정 제안 포함)
    - INVALID_VERSION: semver 또는 허용된 dist-tag가 아님
    - INVALID_SEARCH_QUERY: 빈 검색어 또는 250자 초과
    - INVALID_LIMIT: 1~250 범위의 정수가 아님
    - INVALID_SCORE: 0~1 범위의 숫자가 아님
"""

import math
import re
from typing import Any, Type, TypeVar

import pydantic

from .exceptions import ValidationError
from .models import (
    GetPackageInfoParams,
    GetPackageReadmeParams,
    SearchPackagesParams,
    ToolParams,
)

MAX_PACKAGE_NAME_LENGTH = 214
MAX_QUERY_LENGTH = 250
MIN_LIMIT = 1
MAX_LIMIT = 250

ALLOWED_DIST_TAGS = frozenset({"latest", "next", "beta", "alpha"})

RESERVED_NAMES = frozenset(
    {
        "node_modules",
        "favicon.ico",
        ".ds_store",
        "thumbs.db",
        "package.json",
        "npm",
        "node",
        "javascript",
        "js",
        "nodejs",
    }
)

VALID_NAME_EXAMPLES = (
    "Examples of valid package names:\n"
    "• Regular packages: lodash, express, react\n"
    "• Scoped packages: @babel/core, @types/node, @my-org/utils"
)

_PACKAGE_NAME = re.compile(r"^(?:@[a-z0-9\-*~][a-z0-9\-*._~]*/)?[a-z0-9\-~][a-z0-9\-._~]*$")
_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9\-._~@/]")
_SEMVER = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

P = TypeVar("P", bound=ToolParams)


def _invalid_name(message: str, value: Any) -> ValidationError:
    return ValidationError(
        message, kind="INVALID_PACKAGE_NAME", field="package_name", value=value
    )


def validate_package_name(package_name: Any) -> str:
    """
    npm 패키지 이름 검증

    흔한 실수(대문자, 공백, 앞뒤 점/하이픈 등)에는 수정 제안을 메시지에
    포함합니다.

    Args:
        package_name: 검증할 패키지 이름

    Returns:
        str: 앞뒤 공백을 제거한 패키지 이름

    Raises:
        ValidationError: kind="INVALID_PACKAGE_NAME"
    """
    if not package_name or not isinstance(package_name, str):
        raise _invalid_name(
            "Package name is required and must be a string.\n" + VALID_NAME_EXAMPLES,
            package_name,
        )

    name = package_name.strip()
    if not name:
        raise _invalid_name("Package name cannot be empty.\n" + VALID_NAME_EXAMPLES, package_name)

    if len(name) > MAX_PACKAGE_NAME_LENGTH:
        raise _invalid_name(
            f"Package name cannot exceed {MAX_PACKAGE_NAME_LENGTH} characters "
            f"(current: {len(name)}).",
            name,
        )

    if name != name.lower():
        raise _invalid_name(
            "Package name cannot contain uppercase letters.\n"
            f'Suggestion: "{name.lower()}"',
            name,
        )

    if name.startswith(".") or name.endswith("."):
        raise _invalid_name(
            "Package name cannot start or end with a dot.\n"
            f'Suggestion: "{name.strip(".")}"',
            name,
        )

    if name.startswith("-") or name.endswith("-"):
        raise _invalid_name(
            "Package name cannot start or end with a hyphen.\n"
            f'Suggestion: "{name.strip("-")}"',
            name,
        )

    if ".." in name:
        raise _invalid_name(
            "Package name cannot contain consecutive dots.\n"
            f'Suggestion: "{re.sub(r"[.]{2,}", ".", name)}"',
            name,
        )

    if "_-" in name or "-_" in name:
        raise _invalid_name(
            "Package name cannot contain underscore-hyphen sequences.\n"
            f'Suggestion: "{re.sub(r"_-|-_", "-", name)}"',
            name,
        )

    if " " in name:
        raise _invalid_name(
            "Package name cannot contain spaces.\n"
            f'Suggestion: "{re.sub(r"[ ]+", "-", name)}"',
            name,
        )

    if name.startswith("@"):
        _validate_scoped_name(name)

    if not _PACKAGE_NAME.match(name):
        hint = ""
        if "@" in name and not name.startswith("@"):
            hint = "\nNote: @ symbol is only allowed at the beginning for scoped packages."
        elif invalid := sorted(set(_INVALID_NAME_CHARS.findall(name))):
            hint = (
                f"\nInvalid characters found: {', '.join(invalid)}\n"
                f'Suggestion: "{_INVALID_NAME_CHARS.sub("-", name)}"'
            )
        raise _invalid_name(
            f"Package name contains invalid characters.{hint}\n\n" + VALID_NAME_EXAMPLES,
            name,
        )

    # 예약어 제한은 스코프 없는 이름에만 적용 (@types/node는 유효)
    if not name.startswith("@") and name in RESERVED_NAMES:
        raise _invalid_name(
            f'"{name}" is a reserved name and cannot be used as a package name.\n'
            f"Try adding a prefix or suffix: {name}-lib, my-{name}",
            name,
        )

    return name


def _validate_scoped_name(name: str) -> None:
    if "/" not in name:
        raise _invalid_name(
            "Scoped package name must include a slash after the scope.\n"
            f'Example: "{name}/package-name"',
            name,
        )

    parts = name.split("/")
    scope, bare_name = parts[0], parts[1]
    if scope == "@":
        raise _invalid_name(
            "Scoped package must have a valid scope name.\n" + VALID_NAME_EXAMPLES,
            name,
        )
    if not bare_name:
        raise _invalid_name(
            "Scoped package must have a package name after the slash.\n"
            f'Example: "{scope}/package-name"',
            name,
        )
    if len(parts) > 2:
        raise _invalid_name(
            "Scoped package name can only contain one slash.\n"
            "Format: @scope/package-name (exactly one slash)",
            name,
        )


def validate_version(version: Any) -> str:
    """semver 또는 허용된 dist-tag(latest, next, beta, alpha)인지 검증"""
    if not version or not isinstance(version, str):
        raise ValidationError(
            "Version must be a string", kind="INVALID_VERSION", field="version", value=version
        )

    trimmed = version.strip()
    if not trimmed:
        raise ValidationError(
            "Version cannot be empty", kind="INVALID_VERSION", field="version", value=version
        )

    if trimmed in ALLOWED_DIST_TAGS:
        return trimmed

    if not _SEMVER.match(trimmed):
        raise ValidationError(
            "Version must be a valid semantic version (e.g., 1.0.0) "
            "or a dist-tag (e.g., latest)",
            kind="INVALID_VERSION",
            field="version",
            value=version,
        )
    return trimmed


def validate_search_query(query: Any) -> str:
    if not query or not isinstance(query, str):
        raise ValidationError(
            "Search query is required and must be a string",
            kind="INVALID_SEARCH_QUERY",
            field="query",
            value=query,
        )

    trimmed = query.strip()
    if not trimmed:
        raise ValidationError(
            "Search query cannot be empty", kind="INVALID_SEARCH_QUERY", field="query"
        )

    if len(trimmed) > MAX_QUERY_LENGTH:
        raise ValidationError(
            f"Search query cannot exceed {MAX_QUERY_LENGTH} characters",
            kind="INVALID_SEARCH_QUERY",
            field="query",
            value=query,
        )
    return query


def validate_limit(limit: Any) -> int:
    """1~250 범위의 정수인지 검증. 20.0 같은 정수 값 float도 허용합니다."""
    is_integral = (
        isinstance(limit, int)
        or (isinstance(limit, float) and math.isfinite(limit) and limit.is_integer())
    ) and not isinstance(limit, bool)

    if not is_integral or not (MIN_LIMIT <= limit <= MAX_LIMIT):
        raise ValidationError(
            f"Limit must be an integer between {MIN_LIMIT} and {MAX_LIMIT}",
            kind="INVALID_LIMIT",
            field="limit",
            value=limit,
        )
    return int(limit)


def validate_score(score: Any, name: str) -> float:
    is_number = isinstance(score, (int, float)) and not isinstance(score, bool)
    if not is_number or not math.isfinite(score) or not (0 <= score <= 1):
        raise ValidationError(
            f"{name} must be a number between 0 and 1",
            kind="INVALID_SCORE",
            field=name.lower(),
            value=score,
        )
    return score


def _parse_params(model: Type[P], arguments: Any) -> P:
    """인자 딕셔너리를 파라미터 모델로 변환 (타입 오류는 INVALID_PARAMS)"""
    if not isinstance(arguments, dict):
        raise ValidationError("Arguments must be an object")
    try:
        return model.model_validate(arguments)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"{field or 'arguments'}: {first.get('msg', 'invalid value')}",
            field=field or None,
            data={"error_count": e.error_count()},
        ) from e


def validate_get_package_readme_params(arguments: Any) -> GetPackageReadmeParams:
    params = _parse_params(GetPackageReadmeParams, arguments)
    params.package_name = validate_package_name(params.package_name)
    if params.version != "latest":
        params.version = validate_version(params.version)
    return params


def validate_get_package_info_params(arguments: Any) -> GetPackageInfoParams:
    params = _parse_params(GetPackageInfoParams, arguments)
    params.package_name = validate_package_name(params.package_name)
    return params


def validate_search_packages_params(arguments: Any) -> SearchPackagesParams:
    params = _parse_params(SearchPackagesParams, arguments)
    params.query = validate_search_query(params.query)
    params.limit = validate_limit(params.limit)
    if params.quality is not None:
        params.quality = validate_score(params.quality, "Quality")
    if params.popularity is not None:
        params.popularity = validate_score(params.popularity, "Popularity")
    return params
