"""
업스트림 API 클라이언트 모음

    NpmRegistryClient: npm 레지스트리 (패키지 정보, 버전, 검색, 다운로드 통계)
    GitHubClient: GitHub README 대체 소스
"""

from .base import UpstreamClient, UpstreamHealth
from .github import GitHubClient
from .npm_registry import NpmRegistryClient

__all__ = [
    "UpstreamClient",
    "UpstreamHealth",
    "NpmRegistryClient",
    "GitHubClient",
]
