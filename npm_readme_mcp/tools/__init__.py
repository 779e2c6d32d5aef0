"""
MCP 도구 구현

각 도구는 PackageTool을 상속하며 ToolDependencies를 주입받습니다.
"""

from .base import PackageTool, ToolDependencies
from .get_package_info import GetPackageInfoTool
from .get_package_readme import GetPackageReadmeTool
from .search_packages import SearchPackagesTool, to_search_result

__all__ = [
    "PackageTool",
    "ToolDependencies",
    "GetPackageReadmeTool",
    "GetPackageInfoTool",
    "SearchPackagesTool",
    "to_search_result",
]
