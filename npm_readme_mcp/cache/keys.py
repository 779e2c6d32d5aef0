"""
캐시 키 생성 모듈

도구 요청(작업 이름 + 정규화된 파라미터)을 결정적인 캐시 키 문자열로
변환하는 순수 함수들을 제공합니다. 같은 요청은 항상 바이트 단위로
동일한 키를 만들고, 서로 다른 요청은 충돌하지 않습니다.

키 형식:
    - pkg_info:{name}:{version}
    - pkg_readme:{name}:{version}
    - search:{base64(query)}:{limit}[:q:{quality}][:p:{popularity}]
    - stats:{name}:{period}:{YYYY-MM-DD}

검색어는 구분자(":")를 포함할 수 있으므로 base64로 인코딩합니다.
패키지 이름과 버전은 검증 단계에서 ":"가 허용되지 않습니다.
"""

import base64
import math
from datetime import date
from typing import Optional, Union

Number = Union[int, float]

KEY_DELIMITER = ":"


def _format_number(value: Number) -> str:
    """숫자를 키 문자열로 변환합니다. 정수 값은 ".0" 없이 표기합니다."""
    if isinstance(value, bool):
        raise ValueError(f"숫자 파라미터가 필요합니다: {value!r}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"유한하지 않은 숫자 파라미터: {value!r}")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _encode_query(query: str) -> str:
    return base64.b64encode(query.encode("utf-8")).decode("ascii")


def package_info_key(name: str, version: str) -> str:
    """패키지 정보 응답의 캐시 키"""
    return KEY_DELIMITER.join(["pkg_info", name, version])


def package_readme_key(name: str, version: str) -> str:
    """패키지 README 응답의 캐시 키"""
    return KEY_DELIMITER.join(["pkg_readme", name, version])


def search_results_key(
    query: str,
    limit: Number,
    quality: Optional[Number] = None,
    popularity: Optional[Number] = None,
) -> str:
    """
    검색 결과의 캐시 키

    quality와 popularity 필터는 지정된 경우에만 키에 포함되며,
    필터 값이 다르면 서로 다른 캐시 항목이 됩니다.

    Args:
        query: 검색어 (base64로 인코딩되어 키에 포함)
        limit: 최대 결과 수
        quality: 최소 품질 점수 (선택사항)
        popularity: 최소 인기도 점수 (선택사항)

    Returns:
        str: "search:" 접두사를 가진 캐시 키

    Raises:
        ValueError: 숫자 파라미터가 NaN 또는 무한대인 경우
    """
    parts = ["search", _encode_query(query), _format_number(limit)]
    if quality is not None:
        parts.extend(["q", _format_number(quality)])
    if popularity is not None:
        parts.extend(["p", _format_number(popularity)])
    return KEY_DELIMITER.join(parts)


def download_stats_key(name: str, period: str, today: Optional[date] = None) -> str:
    """
    다운로드 통계의 캐시 키

    날짜가 키에 포함되므로 통계 캐시는 하루 단위로 자연스럽게 무효화됩니다.
    """
    day = (today or date.today()).isoformat()
    return KEY_DELIMITER.join(["stats", name, period, day])
