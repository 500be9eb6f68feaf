"""
유사 피드백 빈도 탐지 (키워드 겹침 기반, 임베딩 미사용)
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.models.feedback import Feedback
from app.services.feedback_repository import FeedbackRepository

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 5  # 4글자 초과 단어만 사용
MAX_KEYWORDS = 3


def extract_keywords(content: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """소문자 변환 후 공백으로 분리, 4글자 초과 단어 중 앞에서부터 limit개"""
    words = (content or "").lower().split()
    return [w for w in words if len(w) >= MIN_KEYWORD_LENGTH][:limit]


def get_similar_feedback_count(
    repository: FeedbackRepository,
    content: str,
    category_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    최근 30일 내 유사 피드백 수 (현재 피드백 포함, 최소 1)
    - 키워드별 매칭 건수의 최댓값 + 1 (합산하지 않음)
    """
    keywords = extract_keywords(content)
    if not keywords:
        return 1

    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=settings.FREQUENCY_WINDOW_DAYS)

    max_count = 0
    try:
        for keyword in keywords:
            count = repository.count_feedback_containing(keyword, since, category_id)
            if count > max_count:
                max_count = count
    except (SQLAlchemyError, PersistenceError) as e:
        logger.warning(f"유사 피드백 집계 실패, 기본값 1 사용: {e}")
        return 1

    return max_count + 1


def get_similar_feedback(
    repository: FeedbackRepository,
    content: str,
    category_id: Optional[int] = None,
    exclude_id: Optional[uuid.UUID] = None,
    limit: int = 5,
) -> List[Feedback]:
    """첫 번째 키워드를 포함하는 유사 피드백 목록 (상세 조회용)"""
    keywords = extract_keywords(content)
    if not keywords:
        return []

    try:
        return repository.find_feedback_containing(keywords[0], category_id, exclude_id, limit)
    except SQLAlchemyError as e:
        logger.warning(f"유사 피드백 조회 실패: {e}")
        return []
