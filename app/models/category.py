"""
카테고리 테이블 (Category) - 읽기 위주의 기준 데이터
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from app.core.database import Base


class CategoryType(str, enum.Enum):
    """카테고리 유형"""
    BUG = "bug"
    FEATURE = "feature"
    COMPLAINT = "complaint"
    PRAISE = "praise"
    QUESTION = "question"


class Category(Base):
    """카테고리 테이블 - 키워드 매칭으로 피드백을 분류"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    type = Column(
        SQLEnum(CategoryType, values_callable=lambda e: [m.value for m in e], name="category_type"),
        nullable=False
    )
    keywords = Column(JSON, nullable=False, default=list, comment="매칭 키워드 목록 (순서 유지)")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # 관계 설정
    feedbacks = relationship("Feedback", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name}, type={self.type})>"


# 기본 카테고리 카탈로그 (카탈로그 순서 = 동점 시 우선순위)
DEFAULT_CATEGORIES = [
    {
        "name": "Bug Report",
        "type": CategoryType.BUG,
        "description": "Something is broken or behaves incorrectly",
        "keywords": [
            "bug", "error", "crash", "crashes", "broken", "fail", "fails", "failed",
            "not working", "doesn't work", "freeze", "freezes", "glitch", "500", "exception"
        ],
    },
    {
        "name": "Feature Request",
        "type": CategoryType.FEATURE,
        "description": "Request for new functionality or an enhancement",
        "keywords": [
            "feature", "add", "would like", "wish", "please add", "request",
            "suggestion", "support for", "ability to", "integration", "option to"
        ],
    },
    {
        "name": "Complaint",
        "type": CategoryType.COMPLAINT,
        "description": "Dissatisfaction with the product, pricing or service",
        "keywords": [
            "terrible", "awful", "worst", "frustrated", "frustrating", "disappointed",
            "expensive", "overpriced", "annoying", "unacceptable", "hate", "refund"
        ],
    },
    {
        "name": "Praise",
        "type": CategoryType.PRAISE,
        "description": "Positive feedback about the product or team",
        "keywords": [
            "love", "great", "amazing", "awesome", "excellent", "thank", "thanks",
            "fantastic", "perfect", "best", "wonderful"
        ],
    },
    {
        "name": "Question",
        "type": CategoryType.QUESTION,
        "description": "The customer is asking how something works",
        "keywords": [
            "how", "how do", "how to", "why", "where", "can i", "is there",
            "question", "wondering", "help"
        ],
    },
]
