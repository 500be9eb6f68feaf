"""
피드백 테이블 (Feedback, FeedbackTag)
"""
from sqlalchemy import Column, String, Text, Integer, ForeignKey, DateTime, JSON, Uuid, CheckConstraint, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from datetime import datetime, timezone
import uuid
import enum

from app.core.database import Base


class FeedbackSource(str, enum.Enum):
    """피드백 수집 경로"""
    SUPPORT = "support"
    NPS = "nps"
    APPSTORE = "appstore"
    SOCIAL = "social"


class FeedbackStatus(str, enum.Enum):
    """처리 상태 (new -> reviewed -> assigned -> resolved)"""
    NEW = "new"
    REVIEWED = "reviewed"
    ASSIGNED = "assigned"
    RESOLVED = "resolved"


class Sentiment(str, enum.Enum):
    """감정"""
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class RecommendedAction(str, enum.Enum):
    """권장 대응 시점"""
    IMMEDIATE = "immediate"
    SAME_DAY = "same_day"
    THIS_WEEK = "this_week"
    BACKLOG = "backlog"


def _enum_column(enum_cls, name):
    return SQLEnum(enum_cls, values_callable=lambda e: [m.value for m in e], name=name)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Feedback(Base):
    """피드백 테이블 - 생성 시 긴급도/카테고리/감정이 한 번만 기록됨"""
    __tablename__ = "feedback"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    source = Column(_enum_column(FeedbackSource, "feedback_source"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    urgency_score = Column(Integer, nullable=True, index=True, comment="긴급도 점수 (0~100)")
    urgency_reasoning = Column(Text, nullable=True)
    recommended_action = Column(_enum_column(RecommendedAction, "recommended_action"), nullable=True)
    sentiment = Column(_enum_column(Sentiment, "sentiment"), default=Sentiment.NEUTRAL, nullable=False)
    status = Column(_enum_column(FeedbackStatus, "feedback_status"), default=FeedbackStatus.NEW, nullable=False, index=True)
    frequency_count = Column(Integer, default=1, nullable=False, comment="유사 피드백 수 (자기 자신 포함)")
    assigned_to = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False)

    # 제약조건
    __table_args__ = (
        CheckConstraint("urgency_score IS NULL OR (urgency_score >= 0 AND urgency_score <= 100)", name="check_urgency_score"),
        CheckConstraint("frequency_count >= 1", name="check_frequency_count"),
    )

    # 관계 설정
    customer = relationship("Customer", back_populates="feedbacks")
    category = relationship("Category", back_populates="feedbacks")
    tags = relationship("FeedbackTag", back_populates="feedback", cascade="all, delete-orphan", order_by="FeedbackTag.id")

    @property
    def tag_names(self) -> list[str]:
        return [t.tag for t in self.tags]

    def __repr__(self):
        return f"<Feedback(id={self.id}, source={self.source}, urgency_score={self.urgency_score})>"


class FeedbackTag(Base):
    """피드백-태그 연결 테이블 (추가 전용)"""
    __tablename__ = "feedback_tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    feedback_id = Column(Uuid(as_uuid=True), ForeignKey("feedback.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = Column(String(100), nullable=False, index=True)

    feedback = relationship("Feedback", back_populates="tags")

    def __repr__(self):
        return f"<FeedbackTag(feedback_id={self.feedback_id}, tag={self.tag})>"
