"""
응답 빌더 및 파서

    ReadmeParser: README 코드 블록 추출과 마크다운 정리
    package_info_builder: 레지스트리 데이터를 응답 모델로 변환
    readme_fetcher: npm 또는 GitHub에서 README 선택
"""

from .package_info_builder import (
    build_info_not_found_response,
    build_installation_info,
    build_package_basic_info,
    build_package_info_response,
    build_readme_not_found_response,
    build_repository_info,
    format_author,
)
from .readme_fetcher import ReadmeResult, fetch_readme_content
from .readme_parser import ReadmeParser

__all__ = [
    "ReadmeParser",
    "ReadmeResult",
    "fetch_readme_content",
    "build_package_basic_info",
    "build_package_info_response",
    "build_repository_info",
    "build_installation_info",
    "build_readme_not_found_response",
    "build_info_not_found_response",
    "format_author",
]
