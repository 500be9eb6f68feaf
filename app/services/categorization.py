"""
키워드 기반 분류 / 감정 판별 / 태그 추출
"""
import re
from typing import Any, Dict, List, Optional, Sequence

from app.models.category import Category
from app.models.feedback import Sentiment

POSITIVE_KEYWORDS = [
    "love", "great", "amazing", "awesome", "excellent", "perfect",
    "thank", "fantastic", "best", "wonderful", "incredible", "outstanding",
    "happy", "pleased", "satisfied", "appreciate", "brilliant",
]

NEGATIVE_KEYWORDS = [
    "hate", "terrible", "awful", "worst", "horrible", "disappointed",
    "frustrated", "angry", "useless", "waste", "poor", "bad",
    "annoying", "broken", "crash", "error", "fail", "slow",
]

FEATURE_AREAS = [
    "checkout", "payment", "billing", "auth", "authentication", "login",
    "signup", "dashboard", "profile", "settings", "notification", "email",
    "mobile", "ios", "android", "api", "integration", "export", "import",
    "search", "filter", "upload", "download", "performance", "speed",
]

CRITICAL_KEYWORDS = [
    "crash", "down", "not working", "broken", "can't", "cannot",
    "error", "fail", "unable", "doesn't work", "stopped working",
    "data loss", "lost data", "security", "breach", "hack",
    "payment fail", "charge", "refund",
]

# 메타데이터 필드 -> 태그 접두어
METADATA_TAG_FIELDS = (
    ("channel", "channel"),
    ("store", "store"),
    ("platform", "platform"),
    ("app_version", "version"),
)

MAX_TAGS = 10


def _count_keyword(content: str, keyword: str) -> int:
    """단어 경계 기준 대소문자 무시 출현 횟수"""
    pattern = r"\b" + re.escape(keyword.lower()) + r"\b"
    return len(re.findall(pattern, content))


def categorize(content: str, categories: Sequence[Category]) -> Optional[Category]:
    """
    키워드 매칭 수가 가장 많은 카테고리 반환
    - 동점이면 카탈로그 순서상 먼저 나온 카테고리 유지
    - 매칭이 하나도 없으면 None
    """
    if not content or not categories:
        return None

    normalized = content.lower()
    best_match: Optional[Category] = None
    best_count = 0

    for category in categories:
        match_count = sum(_count_keyword(normalized, kw) for kw in (category.keywords or []))
        if match_count > best_count:
            best_match = category
            best_count = match_count

    return best_match


def determine_sentiment(content: str, category_type: Optional[str] = None) -> Sentiment:
    """감정 판별 (칭찬/불만 카테고리는 바로 결정)"""
    if not content:
        return Sentiment.NEUTRAL

    category_type = getattr(category_type, "value", category_type)
    if category_type == "praise":
        return Sentiment.POSITIVE
    if category_type == "complaint":
        return Sentiment.NEGATIVE

    normalized = content.lower()
    positive_count = sum(1 for kw in POSITIVE_KEYWORDS if kw in normalized)
    negative_count = sum(1 for kw in NEGATIVE_KEYWORDS if kw in normalized)

    if positive_count > negative_count and positive_count > 0:
        return Sentiment.POSITIVE
    if negative_count > positive_count and negative_count > 0:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def extract_tags(content: str, metadata: Optional[Dict[str, Any]] = None) -> List[str]:
    """기능 영역 태그 + 메타데이터 태그 (입력 순서 유지, 최대 10개)"""
    tags: List[str] = []
    normalized = (content or "").lower()

    for area in FEATURE_AREAS:
        if area in normalized and area not in tags:
            tags.append(area)

    if metadata:
        for field, prefix in METADATA_TAG_FIELDS:
            value = metadata.get(field)
            if value:
                tag = f"{prefix}:{value}"
                if tag not in tags:
                    tags.append(tag)

    return tags[:MAX_TAGS]


def is_critical(content: str) -> bool:
    """치명적 이슈 키워드 포함 여부"""
    normalized = (content or "").lower()
    return any(kw in normalized for kw in CRITICAL_KEYWORDS)
