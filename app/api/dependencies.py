"""
서비스 의존성 주입 함수
"""
from fastapi import Depends
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.services.feedback_repository import FeedbackRepository
from app.services.feedback_service import FeedbackService
from app.services.insights_service import InsightsService
from app.services.prioritization import PrioritizationService, get_prioritization_service


def get_repository(db: Session = Depends(get_db)) -> FeedbackRepository:
    """요청 단위 저장소"""
    return FeedbackRepository(db)


def get_feedback_service(
    repository: FeedbackRepository = Depends(get_repository),
    prioritization: PrioritizationService = Depends(get_prioritization_service),
) -> FeedbackService:
    """피드백 서비스 (저장소 + 긴급도 산정기)"""
    return FeedbackService(repository, prioritization)


def get_insights_service(repository: FeedbackRepository = Depends(get_repository)) -> InsightsService:
    """집계 서비스"""
    return InsightsService(repository)
