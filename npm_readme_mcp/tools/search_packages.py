"""
search_packages 도구

npm 레지스트리 검색 결과를 점수 하한(quality, popularity)으로 필터링해
반환합니다. 검색 결과는 메타데이터보다 짧은 TTL로 캐시됩니다.
"""

from typing import Any

from ..cache import search_results_key
from ..models import (
    PackageSearchResult,
    ScoreDetail,
    SearchPackagesParams,
    SearchPackagesResponse,
    SearchScore,
)
from ..services.package_info_builder import NO_DESCRIPTION, UNKNOWN
from ..validators import validate_search_packages_params
from .base import PackageTool


def to_search_result(search_object: dict[str, Any]) -> PackageSearchResult:
    """레지스트리 검색 객체 하나를 PackageSearchResult로 변환"""
    package = search_object.get("package") or {}
    score = search_object.get("score") or {}
    detail = score.get("detail") or {}
    author = package.get("author") or {}
    publisher = package.get("publisher") or {}

    return PackageSearchResult(
        name=package.get("name", ""),
        version=package.get("version", ""),
        description=package.get("description") or NO_DESCRIPTION,
        keywords=package.get("keywords") or [],
        author=(author.get("name") if isinstance(author, dict) else author) or UNKNOWN,
        publisher=publisher.get("username") or UNKNOWN,
        maintainers=[
            maintainer.get("username", "")
            for maintainer in package.get("maintainers") or []
        ],
        score=SearchScore(
            final=score.get("final") or 0.0,
            detail=ScoreDetail(
                quality=detail.get("quality") or 0.0,
                popularity=detail.get("popularity") or 0.0,
                maintenance=detail.get("maintenance") or 0.0,
            ),
        ),
        search_score=search_object.get("searchScore") or 0.0,
    )


class SearchPackagesTool(PackageTool[SearchPackagesParams]):
    """패키지 검색 도구"""

    name = "search_packages"

    def parse_params(self, arguments: dict[str, Any]) -> SearchPackagesParams:
        return validate_search_packages_params(arguments)

    def cache_key(self, params: SearchPackagesParams) -> str:
        return search_results_key(
            params.query, params.limit, params.quality, params.popularity
        )

    def cache_ttl(self) -> int:
        return self.deps.cache_config.ttl_search_ms

    async def fetch(self, params: SearchPackagesParams) -> SearchPackagesResponse:
        raw = await self.deps.npm_client.search_packages(
            params.query,
            params.limit,
            quality=params.quality,
            popularity=params.popularity,
        )
        packages = [to_search_result(obj) for obj in raw.get("objects") or []]

        self.logger.info(
            "패키지 검색 완료", query=params.query, total=len(packages)
        )
        return SearchPackagesResponse(
            query=params.query, total=len(packages), packages=packages
        )
