"""
설정 관리 모듈

npm README MCP 서버의 모든 설정을 중앙에서 관리합니다.

주요 구성요소:
    - ServerConfig: 메인 서버 설정 클래스
    - CacheConfig, UpstreamConfig, LoggingConfig: 컴포넌트 설정
    - 설정 검증기
"""

from .settings import CacheConfig, LoggingConfig, ServerConfig, UpstreamConfig
from .validators import validate_config

__all__ = [
    "ServerConfig",
    "CacheConfig",
    "UpstreamConfig",
    "LoggingConfig",
    "validate_config",
]
