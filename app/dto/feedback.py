"""
피드백 관련 DTO
"""
from pydantic import BaseModel, Field, EmailStr, ConfigDict, AliasChoices, field_validator
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime
import uuid

from app.models.customer import CustomerTier
from app.models.category import CategoryType
from app.models.feedback import FeedbackSource, FeedbackStatus, Sentiment, RecommendedAction


# ---------------------------------------------------------------------------
# 수집 경로별 페이로드 (닫힌 유니온: Canonical | SupportTicket | Survey | AppStoreReview | SocialMention)
# ---------------------------------------------------------------------------

class _PayloadBase(BaseModel):
    """공통 필드 - 경로별 추가 필드는 무시"""
    model_config = ConfigDict(extra="ignore")

    content: str = Field(..., min_length=1, description="피드백 본문")
    customer_email: Optional[EmailStr] = None
    customer_tier: Optional[CustomerTier] = None
    customer_company: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content는 비어 있을 수 없습니다.")
        return v


class CanonicalPayload(_PayloadBase):
    """source 필드를 직접 포함한 표준 형태"""
    source: FeedbackSource
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SupportTicketPayload(_PayloadBase):
    """고객지원 티켓 (예: {"ticket_id": "TKT-123", "channel": "email", ...})"""
    ticket_id: str = Field(..., min_length=1)
    channel: str = Field(..., min_length=1, description="email, chat, phone")
    assigned_agent: Optional[str] = None
    resolution_time: Optional[float] = Field(None, ge=0)


class SurveyPayload(_PayloadBase):
    """NPS 설문 응답"""
    nps_score: int = Field(..., ge=0, le=10)
    survey_campaign: Optional[str] = None
    response_date: Optional[str] = None


class AppStoreReviewPayload(_PayloadBase):
    """앱스토어 리뷰"""
    store: str = Field(..., min_length=1, description="ios, android")
    app_version: str = Field(..., min_length=1)
    star_rating: int = Field(..., ge=1, le=5)
    reviewer_username: Optional[str] = None


class SocialMentionPayload(_PayloadBase):
    """소셜 미디어 언급"""
    platform: str = Field(..., min_length=1, description="twitter, linkedin, reddit")
    author_handle: str = Field(..., min_length=1)
    engagement_count: Optional[int] = Field(None, ge=0)
    post_url: Optional[str] = None


class NormalizedFeedback(BaseModel):
    """정규화된 내부 표준 레코드"""
    source: FeedbackSource
    content: str
    customer_email: Optional[str] = None
    customer_tier: Optional[CustomerTier] = None
    customer_company: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# 배치 수집 요청/응답
# ---------------------------------------------------------------------------

class BatchCreateRequest(BaseModel):
    """배치 수집 요청 - 각 항목은 서비스 계층에서 정규화"""
    items: List[Any] = Field(..., description="경로별 페이로드 목록")


class BatchItemError(BaseModel):
    """실패 항목 (원본 인덱스 기준)"""
    index: int
    error: str


class BatchIngestResponse(BaseModel):
    """배치 수집 결과"""
    success: bool = True
    ingested_count: int
    failed_count: int
    feedback_ids: List[uuid.UUID]
    errors: Optional[List[BatchItemError]] = None


# ---------------------------------------------------------------------------
# 조회/수정
# ---------------------------------------------------------------------------

class FeedbackQuery(BaseModel):
    """피드백 목록 조회 조건"""
    source: Optional[FeedbackSource] = None
    category: Optional[str] = Field(None, description="카테고리 이름")
    customer_tier: Optional[CustomerTier] = None
    status: Optional[FeedbackStatus] = None
    sentiment: Optional[Sentiment] = None
    min_urgency: Optional[int] = Field(None, ge=0, le=100)
    max_urgency: Optional[int] = Field(None, ge=0, le=100)
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None
    sort_by: Literal["urgency_score", "created_at", "frequency_count"] = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


class FeedbackUpdateRequest(BaseModel):
    """
    피드백 수정 요청 (상태/담당자/메모)
    - 보내지 않은 필드는 유지, assigned_to/notes에 null을 보내면 비움
    """
    status: Optional[FeedbackStatus] = None
    assigned_to: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[FeedbackStatus]) -> FeedbackStatus:
        if v is None:
            raise ValueError("status는 null일 수 없습니다.")
        return v


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    tier: CustomerTier
    company_name: Optional[str] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: CategoryType


class SimilarFeedbackResponse(BaseModel):
    """유사 피드백 요약"""
    id: uuid.UUID
    content: str
    created_at: datetime
    customer_tier: Optional[CustomerTier] = None


class FeedbackResponse(BaseModel):
    """피드백 응답"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    source: FeedbackSource
    content: str
    urgency_score: Optional[int] = None
    urgency_reasoning: Optional[str] = None
    recommended_action: Optional[RecommendedAction] = None
    sentiment: Sentiment
    status: FeedbackStatus
    frequency_count: int
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("metadata_", "metadata"))
    created_at: datetime
    updated_at: Optional[datetime] = None
    customer: Optional[CustomerResponse] = None
    category: Optional[CategoryResponse] = None
    tags: List[str] = Field(default_factory=list, validation_alias=AliasChoices("tag_names", "tags"))


class FeedbackDetailResponse(FeedbackResponse):
    """피드백 상세 응답 (유사 피드백 포함)"""
    similar_feedback: List[SimilarFeedbackResponse] = Field(default_factory=list)


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class FeedbackListResponse(BaseModel):
    """피드백 목록 응답"""
    data: List[FeedbackResponse]
    pagination: PaginationMeta
