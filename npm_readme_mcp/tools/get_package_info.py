"""
get_package_info 도구

최신 버전 기준의 패키지 메타데이터(작성자, 라이선스, 의존성, 다운로드 통계)를
반환합니다.
"""

from typing import Any, Optional

from ..cache import download_stats_key, package_info_key
from ..exceptions import PackageNotFoundError
from ..models import GetPackageInfoParams, PackageInfoResponse
from ..services import build_info_not_found_response, build_package_info_response
from ..validators import validate_get_package_info_params
from .base import PackageTool

# 캐시 키는 항상 최신 버전 기준
LATEST = "latest"


class GetPackageInfoTool(PackageTool[GetPackageInfoParams]):
    """
    패키지 정보 조회 도구

    dependencies/dev_dependencies를 모두 포함한 응답을 캐시하고,
    include_dependencies / include_dev_dependencies 플래그는 반환 시 적용합니다.
    """

    name = "get_package_info"

    def parse_params(self, arguments: dict[str, Any]) -> GetPackageInfoParams:
        return validate_get_package_info_params(arguments)

    def cache_key(self, params: GetPackageInfoParams) -> str:
        return package_info_key(params.package_name, LATEST)

    def cache_ttl(self) -> int:
        return self.deps.cache_config.ttl_package_info_ms

    async def fetch(self, params: GetPackageInfoParams) -> PackageInfoResponse:
        package_name = params.package_name
        npm = self.deps.npm_client

        try:
            package_info = await npm.get_package_info(package_name)
        except PackageNotFoundError:
            self.logger.warning("패키지를 찾을 수 없음", package=package_name)
            return build_info_not_found_response(package_name)

        version_info = await npm.get_version_info(
            package_name, LATEST, package_info=package_info
        )

        download_stats = None
        if self.deps.include_download_stats:
            download_stats = await self._get_download_stats(package_name)

        response = build_package_info_response(
            package_name, package_info, version_info, download_stats
        )
        self.logger.info(
            "패키지 정보 조회 완료",
            package=package_name,
            version=response.latest_version,
        )
        return response

    async def _get_download_stats(self, package_name: str) -> dict[str, int]:
        """다운로드 통계 조회 (날짜별 키로 별도 캐시)"""
        cache = self.deps.cache
        key = download_stats_key(package_name, "all")

        if cache is not None:
            cached: Optional[dict[str, int]] = cache.get(key)
            if cached is not None:
                return cached

        stats = await self.deps.npm_client.get_all_download_stats(package_name)

        # 조회 실패는 0으로 채워지므로 모두 0이면 캐시하지 않음
        if cache is not None and any(stats.values()):
            cache.set(key, stats, self.deps.cache_config.ttl_download_stats_ms)
        return stats

    def present(
        self, payload: dict[str, Any], params: GetPackageInfoParams
    ) -> dict[str, Any]:
        result = super().present(payload, params)
        if not params.include_dependencies:
            result.pop("dependencies", None)
        if not params.include_dev_dependencies:
            result.pop("dev_dependencies", None)
        return result
