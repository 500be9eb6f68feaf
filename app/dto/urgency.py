"""
긴급도 분석 입력/결과 양식
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

from app.models.customer import CustomerTier
from app.models.feedback import FeedbackSource, RecommendedAction


class UrgencyInput(BaseModel):
    """긴급도 분석 입력"""
    feedback_content: str
    customer_tier: Optional[CustomerTier] = None
    category: Optional[str] = Field(None, description="카테고리 이름")
    frequency_count: int = Field(1, ge=1)
    created_at: datetime
    source: FeedbackSource
    metadata: Dict[str, Any] = Field(default_factory=dict)


class UrgencyResult(BaseModel):
    """긴급도 분석 결과"""
    urgency_score: int = Field(..., ge=0, le=100)
    reasoning: str
    recommended_action: RecommendedAction
