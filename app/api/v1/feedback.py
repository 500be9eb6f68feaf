"""
피드백 API
"""
from fastapi import APIRouter, Depends, status, HTTPException, Body, Query
from typing import Annotated, Any, Dict
import logging
import uuid
from app.api.dependencies import get_feedback_service
from app.core.exceptions import NormalizationError, NotFoundError, PersistenceError, ValidationError
from app.dto.feedback import (
    BatchCreateRequest,
    BatchIngestResponse,
    FeedbackDetailResponse,
    FeedbackListResponse,
    FeedbackQuery,
    FeedbackResponse,
    FeedbackUpdateRequest,
)
from app.services.feedback_service import FeedbackService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/feedback/batch",
    response_model=BatchIngestResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK
)
async def create_feedback_batch(
    request: BatchCreateRequest,
    service: FeedbackService = Depends(get_feedback_service)
):
    """
    피드백 배치 수집
    - 각 항목은 경로별 형태(티켓/NPS/앱스토어/소셜) 또는 source 필드를 포함한 표준 형태
    - 일부 항목이 실패해도 200을 반환하며 errors에 원본 인덱스와 사유를 담음
    """
    try:
        return await service.create_batch(request.items)
    except PersistenceError as e:
        logger.error(f"배치 저장 실패: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": str(e),
                "errors": [err.model_dump() for err in e.errors],
            }
        )


@router.post(
    "/feedback",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_feedback(
    payload: Dict[str, Any] = Body(...),
    service: FeedbackService = Depends(get_feedback_service)
):
    """피드백 단건 수집"""
    try:
        return await service.create_one(payload)
    except (NormalizationError, ValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )


@router.get("/feedback", response_model=FeedbackListResponse)
async def list_feedback(
    query: Annotated[FeedbackQuery, Query()],
    service: FeedbackService = Depends(get_feedback_service)
):
    """
    피드백 목록 조회
    - 필터: source, category, customer_tier, status, sentiment, min/max_urgency, date_from/date_to, search
    - 정렬: urgency_score, created_at, frequency_count
    """
    return await service.find_all(query)


@router.get("/feedback/{feedback_id}", response_model=FeedbackDetailResponse)
async def get_feedback(
    feedback_id: uuid.UUID,
    service: FeedbackService = Depends(get_feedback_service)
):
    """피드백 상세 조회 (고객/카테고리/태그/유사 피드백 포함)"""
    try:
        return await service.find_one(feedback_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@router.patch("/feedback/{feedback_id}", response_model=FeedbackResponse)
async def update_feedback(
    feedback_id: uuid.UUID,
    request: FeedbackUpdateRequest,
    service: FeedbackService = Depends(get_feedback_service)
):
    """피드백 상태/담당자/메모 수정"""
    try:
        return await service.update(feedback_id, request)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
