"""
README 마크다운 파서

캐시 미스 이후 README 원문을 가공하는 상태 없는 텍스트 변환입니다.

주요 기능:
    - 펜스 코드 블록에서 사용 예제 추출 (최대 5개)
    - 이미지/링크 마크업 제거 및 과도한 빈 줄 정리
    - 첫 번째 의미 있는 문장을 설명으로 추출
"""

import re

from ..models import UsageExample

# 추출할 최대 예제 수
MAX_USAGE_EXAMPLES = 5

DEFAULT_DESCRIPTION = "No description available"

_CODE_BLOCK = re.compile(r"```(\w+)?\n(.*?)```", re.DOTALL)
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


class ReadmeParser:
    """README 텍스트 변환기"""

    def __init__(self, max_examples: int = MAX_USAGE_EXAMPLES):
        self.max_examples = max_examples

    def parse_usage_examples(
        self, readme_content: str, include_examples: bool = True
    ) -> list[UsageExample]:
        """
        코드 블록을 사용 예제로 변환

        언어 표기가 없는 블록은 "text"로, 제목은 "Example N"으로 지정합니다.
        """
        if not include_examples or not readme_content:
            return []

        examples = []
        for index, match in enumerate(_CODE_BLOCK.finditer(readme_content)):
            if index >= self.max_examples:
                break
            language, code = match.group(1), match.group(2)
            examples.append(
                UsageExample(
                    title=f"Example {index + 1}",
                    code=code.strip(),
                    language=language or "text",
                )
            )
        return examples

    def clean_markdown(self, content: str) -> str:
        """이미지는 대체 텍스트로, 링크는 링크 텍스트로 바꾸고 빈 줄을 정리"""
        content = _IMAGE.sub(r"\1", content)
        content = _LINK.sub(r"\1", content)
        content = _EXCESS_NEWLINES.sub("\n\n", content)
        return content.strip()

    def extract_description(self, content: str) -> str:
        # 제목(#)과 이미지 줄을 건너뛴 첫 번째 20자 초과 줄
        for line in content.split("\n"):
            stripped = line.strip()
            if len(stripped) > 20 and not stripped.startswith(("#", "![")):
                return stripped
        return DEFAULT_DESCRIPTION
