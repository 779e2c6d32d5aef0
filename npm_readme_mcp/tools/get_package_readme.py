"""
get_package_readme 도구

패키지 README와 사용 예제, 설치 방법, 기본 정보를 반환합니다.
README는 npm 레지스트리를 우선 사용하고 없으면 GitHub에서 가져옵니다.
"""

from typing import Any, Optional

from ..cache import package_readme_key
from ..exceptions import PackageNotFoundError
from ..models import GetPackageReadmeParams, PackageReadmeResponse
from ..services import (
    ReadmeParser,
    build_installation_info,
    build_package_basic_info,
    build_readme_not_found_response,
    build_repository_info,
    fetch_readme_content,
)
from ..services.package_info_builder import NO_DESCRIPTION
from ..validators import validate_get_package_readme_params
from .base import PackageTool, ToolDependencies


class GetPackageReadmeTool(PackageTool[GetPackageReadmeParams]):
    """
    README 조회 도구

    응답은 항상 사용 예제를 포함해 캐시하고, include_examples=False 요청에는
    반환 시점에 usage_examples를 비웁니다. 같은 캐시 항목을 두 요청이 공유합니다.
    """

    name = "get_package_readme"

    def __init__(self, deps: ToolDependencies, parser: Optional[ReadmeParser] = None):
        super().__init__(deps)
        self.parser = parser or ReadmeParser()

    def parse_params(self, arguments: dict[str, Any]) -> GetPackageReadmeParams:
        return validate_get_package_readme_params(arguments)

    def cache_key(self, params: GetPackageReadmeParams) -> str:
        return package_readme_key(params.package_name, params.version)

    def cache_ttl(self) -> int:
        return self.deps.cache_config.ttl_readme_ms

    async def fetch(self, params: GetPackageReadmeParams) -> PackageReadmeResponse:
        package_name = params.package_name
        npm = self.deps.npm_client

        try:
            package_info = await npm.get_package_info(package_name)
        except PackageNotFoundError:
            self.logger.warning("패키지를 찾을 수 없음", package=package_name)
            return build_readme_not_found_response(package_name, params.version)

        version_info = await npm.get_version_info(
            package_name, params.version, package_info=package_info
        )
        readme = await fetch_readme_content(
            package_info, version_info, self.deps.github_client
        )

        basic_info = build_package_basic_info(version_info, package_info)
        response = PackageReadmeResponse(
            package_name=package_name,
            version=basic_info.version,
            description=self._describe(basic_info.description, readme.content),
            readme_content=self.parser.clean_markdown(readme.content),
            usage_examples=self.parser.parse_usage_examples(readme.content),
            installation=build_installation_info(package_name),
            basic_info=basic_info,
            repository=build_repository_info(version_info.get("repository")),
            exists=True,
        )

        self.logger.info(
            "README 조회 완료",
            package=package_name,
            version=basic_info.version,
            readme_source=readme.source,
            example_count=len(response.usage_examples),
        )
        return response

    def _describe(self, description: str, readme: str) -> str:
        """매니페스트에 설명이 없으면 README 본문에서 추출"""
        if description != NO_DESCRIPTION:
            return description
        return self.parser.extract_description(readme)

    def present(
        self, payload: dict[str, Any], params: GetPackageReadmeParams
    ) -> dict[str, Any]:
        result = super().present(payload, params)
        if not params.include_examples:
            result["usage_examples"] = []
        return result
