"""
수집 경로별 페이로드 정규화
"""
from typing import Any, Dict, Optional, Type
from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.core.exceptions import NormalizationError, ValidationError
from app.dto.feedback import (
    CanonicalPayload,
    SupportTicketPayload,
    SurveyPayload,
    AppStoreReviewPayload,
    SocialMentionPayload,
    NormalizedFeedback,
)
from app.models.feedback import FeedbackSource


# 형태별 메타데이터 필드 (필수 필드 먼저)
_METADATA_FIELDS = {
    SupportTicketPayload: ("ticket_id", "channel", "assigned_agent", "resolution_time"),
    SurveyPayload: ("nps_score", "survey_campaign", "response_date"),
    AppStoreReviewPayload: ("store", "app_version", "star_rating", "reviewer_username"),
    SocialMentionPayload: ("platform", "author_handle", "engagement_count", "post_url"),
}

_SHAPE_SOURCES = {
    SupportTicketPayload: FeedbackSource.SUPPORT,
    SurveyPayload: FeedbackSource.NPS,
    AppStoreReviewPayload: FeedbackSource.APPSTORE,
    SocialMentionPayload: FeedbackSource.SOCIAL,
}


def detect_payload_shape(payload: Dict[str, Any]) -> Optional[Type[BaseModel]]:
    """
    페이로드 형태 판별 (먼저 일치하는 규칙 우선)

    1. source 필드 -> 표준 형태
    2. ticket_id + channel -> 고객지원 티켓
    3. nps_score -> NPS 설문
    4. store + star_rating + app_version -> 앱스토어 리뷰
    5. platform + author_handle -> 소셜 언급
    """
    if payload.get("source"):
        return CanonicalPayload
    if "ticket_id" in payload and "channel" in payload:
        return SupportTicketPayload
    if "nps_score" in payload:
        return SurveyPayload
    if "store" in payload and "star_rating" in payload and "app_version" in payload:
        return AppStoreReviewPayload
    if "platform" in payload and "author_handle" in payload:
        return SocialMentionPayload
    return None


def _format_validation_error(e: PydanticValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "; ".join(parts)


def normalize_feedback_payload(payload: Any) -> NormalizedFeedback:
    """
    임의 형태의 페이로드를 표준 레코드로 변환 (부수효과 없음)

    Raises:
        NormalizationError: 소스를 판별할 수 없는 형태
        ValidationError: 형태는 판별되었으나 필드 값이 잘못됨
    """
    if not isinstance(payload, dict):
        raise NormalizationError("Payload must be a JSON object.")

    shape = detect_payload_shape(payload)
    if shape is None:
        raise NormalizationError(
            'Unable to determine feedback source from payload. '
            'Please include a "source" field or use source-specific fields.'
        )

    try:
        parsed = shape.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(_format_validation_error(e)) from e

    if isinstance(parsed, CanonicalPayload):
        return NormalizedFeedback(
            source=parsed.source,
            content=parsed.content,
            customer_email=parsed.customer_email,
            customer_tier=parsed.customer_tier,
            customer_company=parsed.customer_company,
            metadata=dict(parsed.metadata),
        )

    metadata = {}
    for field in _METADATA_FIELDS[shape]:
        value = getattr(parsed, field)
        if value is not None:
            metadata[field] = value

    return NormalizedFeedback(
        source=_SHAPE_SOURCES[shape],
        content=parsed.content,
        customer_email=parsed.customer_email,
        customer_tier=parsed.customer_tier,
        customer_company=parsed.customer_company,
        metadata=metadata,
    )
