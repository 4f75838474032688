"""LLM 응답 텍스트 처리 유틸리티."""
import json
import math
from typing import Any, Optional


def strip_code_fence(text: str) -> str:
    """```json ... ``` 코드 블록 마커 제거."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def find_json_object(text: str) -> Optional[str]:
    """텍스트에서 처음 나오는 균형 잡힌 최상위 JSON 객체 문자열을 찾는다.

    문자열 리터럴 안의 중괄호와 이스케이프는 무시한다.
    닫히지 않은 객체만 있으면 None.

    Examples:
        >>> find_json_object('Sure! {"a": {"b": "}"}} trailing {"c": 1}')
        '{"a": {"b": "}"}}'
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # 이 위치에서 시작한 객체가 닫히지 않음 → 다음 후보
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str) -> dict:
    """LLM 응답에서 JSON 객체 추출 후 파싱.

    Raises:
        ValueError: 객체가 없거나 JSON 파싱 실패
    """
    if not text or not text.strip():
        raise ValueError("Empty response")

    cleaned = strip_code_fence(text)
    candidate = find_json_object(cleaned)
    if candidate is None:
        raise ValueError("No JSON object found")

    parsed = json.loads(candidate)
    if not isinstance(parsed, dict):
        raise ValueError("Top-level JSON value is not an object")
    return parsed


def round_sig(value: Any, digits: int = 4) -> Any:
    """유효숫자 digits 자리로 반올림 (프롬프트 크기 제한용, 원본 정밀도 아님).

    숫자가 아니거나 None/NaN/inf 이면 그대로 반환.
    """
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return value
    if value == 0:
        return 0
    return float(f"{value:.{digits}g}")
