"""
npm 레지스트리 클라이언트

npm 공개 레지스트리에서 패키지 메타데이터(packument), 버전 매니페스트,
검색 결과, 다운로드 통계를 조회합니다.

주요 기능:
    - 패키지 정보 조회 (404 → PackageNotFoundError)
    - dist-tag(latest, next 등) 해석을 포함한 버전 정보 조회
    - 최소 품질/인기도 점수 필터링을 포함한 패키지 검색
    - 다운로드 통계 조회 (실패 시 0으로 대체)

환경 변수:
    NPM_REGISTRY_URL, NPM_SEARCH_URL, NPM_DOWNLOADS_URL
"""

import asyncio
from typing import Any, Optional
from urllib.parse import quote

from .base import UpstreamClient
from ..config.settings import UpstreamConfig
from ..exceptions import MCPError, PackageNotFoundError, VersionNotFoundError

# 다운로드 통계 조회 기간 (npm downloads API 기간 이름)
DOWNLOAD_PERIODS = {
    "last_day": "last-day",
    "last_week": "last-week",
    "last_month": "last-month",
}


class NpmRegistryClient(UpstreamClient):
    """
    npm 레지스트리 API 클라이언트

    Attributes:
        registry_url (str): 레지스트리 기본 URL
        search_url (str): 검색 API URL
        downloads_url (str): 다운로드 통계 API URL
    """

    service_name = "npm"

    def __init__(self, config: Optional[UpstreamConfig] = None, **kwargs: Any) -> None:
        """
        Args:
            config: 업스트림 설정 (없으면 기본값)
            **kwargs: UpstreamClient 인자 오버라이드 (예: session_manager)
        """
        config = config or UpstreamConfig()
        self.registry_url = config.npm_registry_url.rstrip("/")
        self.search_url = config.npm_search_url
        self.downloads_url = config.npm_downloads_url.rstrip("/")

        kwargs.setdefault("timeout", config.timeout_seconds)
        kwargs.setdefault("max_retries", config.max_retries)
        kwargs.setdefault("user_agent", config.user_agent)
        kwargs.setdefault("health_check_url", self.registry_url)
        super().__init__(**kwargs)

    def _package_url(self, package_name: str) -> str:
        # 스코프 패키지의 "/"도 인코딩 (@scope%2Fname)
        return f"{self.registry_url}/{quote(package_name, safe='@')}"

    async def get_package_info(self, package_name: str) -> dict[str, Any]:
        """
        패키지 packument 조회

        Args:
            package_name: 패키지 이름

        Returns:
            dict[str, Any]: 레지스트리가 반환한 원본 packument

        Raises:
            PackageNotFoundError: 레지스트리가 404를 반환한 경우
        """
        response = await self._get(
            self._package_url(package_name), passthrough_statuses=(404,)
        )
        if response.status_code == 404:
            self._log_operation("get_package_info", status="not_found", package=package_name)
            raise PackageNotFoundError(package_name)
        return response.json()

    async def get_version_info(
        self,
        package_name: str,
        version: str,
        package_info: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        버전 매니페스트 조회

        version이 dist-tag 이름이면 해당 태그가 가리키는 버전으로 해석합니다.
        이미 조회한 packument를 package_info로 넘기면 재요청하지 않습니다.

        Raises:
            PackageNotFoundError: 패키지가 없는 경우
            VersionNotFoundError: 버전이나 태그가 없는 경우
        """
        if package_info is None:
            package_info = await self.get_package_info(package_name)

        dist_tags = package_info.get("dist-tags") or {}
        actual_version = dist_tags.get(version, version)

        version_info = (package_info.get("versions") or {}).get(actual_version)
        if not version_info:
            raise VersionNotFoundError(package_name, version)
        return version_info

    async def search_packages(
        self,
        query: str,
        limit: int = 20,
        quality: Optional[float] = None,
        popularity: Optional[float] = None,
    ) -> dict[str, Any]:
        """
        패키지 검색

        레지스트리 검색 API는 최소 점수 필터를 지원하지 않으므로
        결과를 받은 뒤 quality/popularity 하한으로 걸러냅니다.

        Returns:
            dict[str, Any]: 원본 검색 응답 (objects는 필터링된 목록)
        """
        response = await self._get(self.search_url, params={"text": query, "size": limit})
        data = response.json()

        objects = data.get("objects") or []
        if quality is not None:
            objects = [obj for obj in objects if _score_detail(obj, "quality") >= quality]
        if popularity is not None:
            objects = [obj for obj in objects if _score_detail(obj, "popularity") >= popularity]

        self._log_operation("search", query=query, limit=limit, result_count=len(objects))
        return {**data, "objects": objects}

    async def get_download_stats(self, package_name: str, period: str) -> int:
        """
        기간별 다운로드 수 조회

        Args:
            package_name: 패키지 이름
            period: npm downloads API 기간 (예: "last-week")

        Returns:
            int: 다운로드 수. 조회에 실패하면 0
        """
        url = f"{self.downloads_url}/point/{period}/{quote(package_name, safe='@/')}"
        try:
            response = await self._get(url)
        except MCPError as e:
            # 다운로드 통계는 부가 정보이므로 실패해도 응답을 막지 않음
            self.logger.warning(
                "다운로드 통계 조회 실패",
                package=package_name,
                period=period,
                error_kind=e.kind,
            )
            return 0
        return int(response.json().get("downloads") or 0)

    async def get_all_download_stats(self, package_name: str) -> dict[str, int]:
        """last_day, last_week, last_month 다운로드 수를 동시에 조회합니다."""
        counts = await asyncio.gather(
            *(self.get_download_stats(package_name, period) for period in DOWNLOAD_PERIODS.values())
        )
        return dict(zip(DOWNLOAD_PERIODS.keys(), counts))


def _score_detail(search_object: dict[str, Any], name: str) -> float:
    return float(((search_object.get("score") or {}).get("detail") or {}).get(name) or 0)
