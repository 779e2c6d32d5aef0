"""
README 소스 선택

npm packument의 readme 필드를 우선 사용하고, 없으면 버전 매니페스트의
repository 정보로 GitHub README를 조회합니다. GitHub 조회 실패는 빈
README로 처리되며 도구 호출을 실패시키지 않습니다.
"""

from dataclasses import dataclass
from typing import Any, Literal

import structlog

from ..clients.github import GitHubClient
from ..exceptions import MCPError

logger = structlog.get_logger(__name__)

ReadmeSource = Literal["npm", "github", "none"]


@dataclass
class ReadmeResult:
    content: str
    source: ReadmeSource


async def fetch_readme_content(
    package_info: dict[str, Any],
    version_info: dict[str, Any],
    github_client: GitHubClient,
) -> ReadmeResult:
    """
    README 본문과 출처 조회

    Args:
        package_info: 레지스트리 packument
        version_info: 요청한 버전의 매니페스트
        github_client: GitHub 대체 조회용 클라이언트

    Returns:
        ReadmeResult: 본문과 출처 ("npm", "github", "none")
    """
    package_name = version_info.get("name") or package_info.get("name")

    readme = package_info.get("readme")
    if readme:
        logger.debug("npm 레지스트리 README 사용", package=package_name)
        return ReadmeResult(content=readme, source="npm")

    repository = version_info.get("repository") or package_info.get("repository")
    if repository:
        try:
            github_readme = await github_client.get_readme_from_repository(repository)
        except MCPError as e:
            logger.debug("GitHub README 조회 실패", package=package_name, error_kind=e.kind)
            github_readme = None

        if github_readme:
            logger.debug("GitHub README 사용", package=package_name)
            return ReadmeResult(content=github_readme, source="github")

    logger.debug("README 없음", package=package_name)
    return ReadmeResult(content="", source="none")
