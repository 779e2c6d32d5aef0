"""
응답 빌더

npm 레지스트리의 원본 packument와 버전 매니페스트를 도구 응답 형태로
변환하는 순수 함수 모음입니다. 레지스트리 데이터는 필드 형태가 일정하지
않으므로 (author가 문자열 또는 객체, license가 객체 등) 여기서 정규화합니다.
"""

from typing import Any, Optional, Union

from ..models import (
    AuthorInfo,
    InstallationInfo,
    PackageBasicInfo,
    PackageInfoResponse,
    PackageReadmeResponse,
    RepositoryInfo,
)

NO_DESCRIPTION = "No description available"
UNKNOWN = "Unknown"
NOT_FOUND_DESCRIPTION = "Package not found"


def _first(*values: Any) -> Any:
    """첫 번째 truthy 값 (없으면 None)"""
    for value in values:
        if value:
            return value
    return None


def _normalize_license(value: Any) -> Optional[str]:
    # 오래된 패키지는 {"type": "MIT", "url": "..."} 형태를 사용
    if isinstance(value, dict):
        return value.get("type")
    if isinstance(value, str):
        return value
    return None


def _normalize_keywords(value: Any) -> list[str]:
    if isinstance(value, str):
        return [keyword.strip() for keyword in value.split(",") if keyword.strip()]
    if isinstance(value, list):
        return [str(keyword) for keyword in value]
    return []


def _to_author_info(value: Any) -> Optional[AuthorInfo]:
    if isinstance(value, dict) and value.get("name"):
        return AuthorInfo(name=value["name"], email=value.get("email"), url=value.get("url"))
    return None


def format_author(author: Any) -> Optional[str]:
    """
    작성자 정보를 "name <email>" 문자열로 변환

    문자열은 그대로, 객체는 name과 email을 조합합니다.
    """
    if isinstance(author, str):
        return author or None
    if isinstance(author, dict) and author.get("name"):
        name = author["name"]
        if author.get("email"):
            return f"{name} <{author['email']}>"
        return name
    return None


def build_package_basic_info(
    version_info: dict[str, Any], package_info: dict[str, Any]
) -> PackageBasicInfo:
    """버전 정보를 우선으로 하고 패키지 정보로 보완한 기본 정보"""
    bugs = version_info.get("bugs")
    if isinstance(bugs, dict):
        bugs = bugs.get("url")

    author: Union[str, AuthorInfo] = UNKNOWN
    raw_author = _first(version_info.get("author"), package_info.get("author"))
    if isinstance(raw_author, str):
        author = raw_author
    elif (author_info := _to_author_info(raw_author)) is not None:
        author = author_info

    contributors = None
    if isinstance(version_info.get("contributors"), list):
        contributors = [
            info
            for info in (_to_author_info(item) for item in version_info["contributors"])
            if info is not None
        ] or None

    return PackageBasicInfo(
        name=version_info.get("name") or package_info.get("name", ""),
        version=version_info.get("version", ""),
        description=_first(
            version_info.get("description"), package_info.get("description")
        )
        or NO_DESCRIPTION,
        main=version_info.get("main") or None,
        types=_first(version_info.get("types"), version_info.get("typings")),
        homepage=_first(version_info.get("homepage"), package_info.get("homepage")),
        bugs=bugs if isinstance(bugs, str) and bugs else None,
        license=_first(
            _normalize_license(version_info.get("license")),
            _normalize_license(package_info.get("license")),
        )
        or UNKNOWN,
        author=author,
        contributors=contributors,
        keywords=_normalize_keywords(
            _first(version_info.get("keywords"), package_info.get("keywords"))
        ),
    )


def build_repository_info(repository: Any) -> Optional[RepositoryInfo]:
    """repository 필드(객체 또는 URL 문자열)를 RepositoryInfo로 변환"""
    if isinstance(repository, str) and repository:
        return RepositoryInfo(type="git", url=repository)
    if isinstance(repository, dict) and repository.get("url"):
        return RepositoryInfo(
            type=repository.get("type") or "git",
            url=repository["url"],
            directory=repository.get("directory") or None,
        )
    return None


def build_installation_info(package_name: str) -> InstallationInfo:
    return InstallationInfo(
        command=f"install {package_name}",
        alternatives=[f"yarn add {package_name}", f"pnpm add {package_name}"],
    )


def build_readme_not_found_response(
    package_name: str, version: Optional[str] = None
) -> PackageReadmeResponse:
    """존재하지 않는 패키지에 대한 README 응답 (exists=False)"""
    version = version or "latest"
    return PackageReadmeResponse(
        package_name=package_name,
        version=version,
        description=NOT_FOUND_DESCRIPTION,
        readme_content="",
        usage_examples=[],
        installation=build_installation_info(package_name),
        basic_info=PackageBasicInfo(
            name=package_name,
            version=version,
            description=NOT_FOUND_DESCRIPTION,
            license=UNKNOWN,
            author=UNKNOWN,
            keywords=[],
        ),
        exists=False,
    )


def build_info_not_found_response(package_name: str) -> PackageInfoResponse:
    """존재하지 않는 패키지에 대한 패키지 정보 응답 (exists=False)"""
    return PackageInfoResponse(
        package_name=package_name,
        latest_version="unknown",
        description=NOT_FOUND_DESCRIPTION,
        author=UNKNOWN,
        license=UNKNOWN,
        keywords=[],
        exists=False,
    )


def build_package_info_response(
    package_name: str,
    package_info: dict[str, Any],
    version_info: dict[str, Any],
    download_stats: Optional[dict[str, int]] = None,
) -> PackageInfoResponse:
    """
    패키지 정보 응답 생성

    dependencies와 dev_dependencies는 항상 포함해서 만들고,
    포함 여부 플래그는 도구가 응답을 반환할 때 적용합니다.
    """
    return PackageInfoResponse(
        package_name=package_name,
        latest_version=version_info.get("version", ""),
        description=_first(
            version_info.get("description"), package_info.get("description")
        )
        or NO_DESCRIPTION,
        author=_first(
            format_author(version_info.get("author")),
            format_author(package_info.get("author")),
        )
        or UNKNOWN,
        license=_first(
            _normalize_license(version_info.get("license")),
            _normalize_license(package_info.get("license")),
        )
        or UNKNOWN,
        keywords=_normalize_keywords(
            _first(version_info.get("keywords"), package_info.get("keywords"))
        ),
        dependencies=version_info.get("dependencies") or None,
        dev_dependencies=version_info.get("devDependencies") or None,
        download_stats=download_stats or {},
        repository=build_repository_info(
            _first(version_info.get("repository"), package_info.get("repository"))
        ),
        exists=True,
    )
