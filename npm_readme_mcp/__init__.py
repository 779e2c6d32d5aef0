"""
npm README MCP 서버

npm 레지스트리와 GitHub에서 패키지 README와 메타데이터를 가져와
MCP 도구로 제공합니다. 응답은 TTL과 크기 제한이 있는 인메모리 캐시에
저장됩니다.
"""

__version__ = "1.0.0"
