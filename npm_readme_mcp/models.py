"""
도구 요청/응답 모델

MCP 도구의 입력 파라미터와 응답 형태를 Pydantic 모델로 정의합니다.
응답 모델은 model_dump(exclude_none=True)로 딕셔너리가 되어 캐시에
저장되고 FastMCP가 도구 결과로 직렬화합니다.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# 요청 파라미터
# ---------------------------------------------------------------------------


class ToolParams(BaseModel):
    """도구 파라미터 공통 설정 (알 수 없는 인자는 무시)"""

    model_config = ConfigDict(extra="ignore")


class GetPackageReadmeParams(ToolParams):
    package_name: str
    version: str = "latest"
    include_examples: bool = True


class GetPackageInfoParams(ToolParams):
    package_name: str
    include_dependencies: bool = True
    include_dev_dependencies: bool = False


class SearchPackagesParams(ToolParams):
    """
    검색 파라미터

    limit의 정수 여부와 점수 범위는 도메인 검증기(validators)에서
    INVALID_LIMIT / INVALID_SCORE로 확인하므로 여기서는 숫자 타입만 요구합니다.
    """

    query: str
    limit: Union[int, float] = 20
    quality: Optional[float] = None
    popularity: Optional[float] = None


# ---------------------------------------------------------------------------
# 응답 구성 요소
# ---------------------------------------------------------------------------


class UsageExample(BaseModel):
    title: str
    description: Optional[str] = None
    code: str
    language: str = "text"


class InstallationInfo(BaseModel):
    command: str
    alternatives: list[str] = Field(default_factory=list)


class AuthorInfo(BaseModel):
    name: str
    email: Optional[str] = None
    url: Optional[str] = None


class RepositoryInfo(BaseModel):
    type: str
    url: str
    directory: Optional[str] = None


class PackageBasicInfo(BaseModel):
    name: str
    version: str
    description: str
    main: Optional[str] = None
    types: Optional[str] = None
    homepage: Optional[str] = None
    bugs: Optional[str] = None
    license: str
    author: Union[str, AuthorInfo]
    contributors: Optional[list[AuthorInfo]] = None
    keywords: list[str] = Field(default_factory=list)


class DownloadStats(BaseModel):
    last_day: int = 0
    last_week: int = 0
    last_month: int = 0


class ScoreDetail(BaseModel):
    quality: float = 0.0
    popularity: float = 0.0
    maintenance: float = 0.0


class SearchScore(BaseModel):
    final: float = 0.0
    detail: ScoreDetail = Field(default_factory=ScoreDetail)


class PackageSearchResult(BaseModel):
    name: str
    version: str
    description: str
    keywords: list[str] = Field(default_factory=list)
    author: str
    publisher: str
    maintainers: list[str] = Field(default_factory=list)
    score: SearchScore
    search_score: float = 0.0


# ---------------------------------------------------------------------------
# 도구 응답
# ---------------------------------------------------------------------------


class PackageReadmeResponse(BaseModel):
    """get_package_readme 응답"""

    package_name: str
    version: str
    description: str
    readme_content: str
    usage_examples: list[UsageExample] = Field(default_factory=list)
    installation: InstallationInfo
    basic_info: PackageBasicInfo
    repository: Optional[RepositoryInfo] = None
    exists: bool = True


class PackageInfoResponse(BaseModel):
    """get_package_info 응답"""

    package_name: str
    latest_version: str
    description: str
    author: str
    license: str
    keywords: list[str] = Field(default_factory=list)
    dependencies: Optional[dict[str, str]] = None
    dev_dependencies: Optional[dict[str, str]] = None
    download_stats: DownloadStats = Field(default_factory=DownloadStats)
    repository: Optional[RepositoryInfo] = None
    exists: bool = True


class SearchPackagesResponse(BaseModel):
    """search_packages 응답"""

    query: str
    total: int
    packages: list[PackageSearchResult] = Field(default_factory=list)
