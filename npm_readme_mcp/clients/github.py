"""
GitHub API 클라이언트

npm 레지스트리에 README가 없을 때 대체 소스로 GitHub 저장소의
README 원문을 조회합니다.

지원하는 저장소 URL 형식:
    - https://github.com/owner/repo(.git)(/)
    - http://github.com/owner/repo
    - git+https://github.com/owner/repo.git
    - git://github.com/owner/repo.git
    - git@github.com:owner/repo.git
    - https://github.com/owner/repo/tree/main/...

환경 변수:
    GITHUB_TOKEN: 설정 시 "Authorization: token ..." 헤더로 인증
"""

import re
from typing import Any, Optional
from urllib.parse import quote

from .base import UpstreamClient
from ..config.settings import UpstreamConfig
from ..exceptions import MCPError

# 원시(raw) README 본문을 요청하는 미디어 타입
GITHUB_RAW_MEDIA_TYPE = "application/vnd.github.v3.raw"

_SCHEME_PREFIX = re.compile(r"^(?:git\+)?(?:https?|git|ssh)://(?:[^@/]+@)?", re.IGNORECASE)
_SSH_PREFIX = re.compile(r"^git@github\.com:", re.IGNORECASE)


class GitHubClient(UpstreamClient):
    """
    GitHub README 조회 클라이언트

    Attributes:
        api_url (str): GitHub API 기본 URL
        token (str | None): 개인 액세스 토큰
    """

    service_name = "github"

    def __init__(self, config: Optional[UpstreamConfig] = None, **kwargs: Any) -> None:
        config = config or UpstreamConfig()
        self.api_url = config.github_api_url.rstrip("/")
        self.token = config.github_token

        kwargs.setdefault("timeout", config.timeout_seconds)
        kwargs.setdefault("max_retries", config.max_retries)
        kwargs.setdefault("user_agent", config.user_agent)
        # /rate_limit 조회는 API 요청 한도에 포함되지 않음
        kwargs.setdefault("health_check_url", f"{self.api_url}/rate_limit")
        super().__init__(**kwargs)

    @staticmethod
    def parse_repository_url(url: str) -> Optional[tuple[str, str]]:
        """
        저장소 URL에서 (owner, repo) 추출

        Returns:
            tuple[str, str] | None: GitHub URL이 아니거나 경로가 비어 있으면 None
        """
        if not url:
            return None

        if _SSH_PREFIX.match(url):
            path = _SSH_PREFIX.sub("", url)
        else:
            remainder = _SCHEME_PREFIX.sub("", url)
            if remainder == url:
                return None
            host, _, path = remainder.partition("/")
            if host.lower() not in ("github.com", "www.github.com"):
                return None

        segments = [segment for segment in path.split("/") if segment]
        if len(segments) < 2:
            return None

        owner, repo = segments[0], segments[1]
        if repo.endswith(".git"):
            repo = repo[: -len(".git")]
        if not owner or not repo:
            return None
        return owner, repo

    async def get_readme(self, owner: str, repo: str) -> str:
        """
        저장소 README 원문 조회

        Raises:
            NetworkError: HTTP 오류 (404 포함)
            TimeoutError: 요청 시간 초과
        """
        url = f"{self.api_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/readme"
        headers = {"Accept": GITHUB_RAW_MEDIA_TYPE}
        if self.token:
            headers["Authorization"] = f"token {self.token}"

        response = await self._get(url, headers=headers)
        return response.text

    async def get_readme_from_repository(self, repository: Any) -> Optional[str]:
        """
        package.json의 repository 필드로 README 조회

        repository는 {"type": "git", "url": "..."} 형태의 딕셔너리 또는
        URL 문자열입니다. git 저장소가 아니거나, GitHub 저장소가 아니거나,
        조회에 실패하면 None을 반환합니다.
        """
        if isinstance(repository, str):
            repo_type, url = "git", repository
        elif isinstance(repository, dict):
            repo_type, url = repository.get("type", "git"), repository.get("url", "")
        else:
            return None

        if repo_type != "git":
            return None

        parsed = self.parse_repository_url(url)
        if parsed is None:
            return None

        owner, repo = parsed
        try:
            return await self.get_readme(owner, repo)
        except MCPError as e:
            self.logger.debug(
                "GitHub README 조회 실패",
                owner=owner,
                repo=repo,
                error_kind=e.kind,
            )
            return None
