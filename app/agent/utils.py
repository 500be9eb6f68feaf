"""
LLM 응답 파싱 유틸리티
"""
import json
import logging

logger = logging.getLogger(__name__)


def parse_json_from_response(text: str) -> dict:
    """
    LLM 응답 텍스트에서 JSON을 추출하여 파싱

    Args:
        text: LLM 응답 텍스트 (마크다운 코드 블록 포함 가능)

    Returns:
        파싱된 딕셔너리 (실패 시 빈 딕셔너리)
    """
    try:
        text = text.strip()
        if "```json" in text:
            text = text.split("```json")[1].split("```")[0].strip()
        elif "```" in text:
            text = text.split("```")[1].split("```")[0].strip()

        parsed = json.loads(text)
        if not isinstance(parsed, dict):
            logger.error(f"JSON 객체가 아님: {type(parsed).__name__}")
            return {}
        return parsed
    except json.JSONDecodeError:
        logger.error(f"JSON 파싱 실패: {text[:50]}...")
        return {}
    except Exception as e:
        logger.error(f"JSON 추출 중 오류: {str(e)}")
        return {}
