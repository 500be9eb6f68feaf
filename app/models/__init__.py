"""
데이터베이스 모델 export
"""
from app.models.customer import Customer, CustomerTier
from app.models.category import Category, CategoryType, DEFAULT_CATEGORIES
from app.models.feedback import (
    Feedback,
    FeedbackTag,
    FeedbackSource,
    FeedbackStatus,
    Sentiment,
    RecommendedAction,
)

__all__ = [
    "Customer",
    "CustomerTier",
    "Category",
    "CategoryType",
    "DEFAULT_CATEGORIES",
    "Feedback",
    "FeedbackTag",
    "FeedbackSource",
    "FeedbackStatus",
    "Sentiment",
    "RecommendedAction",
]
