"""
대시보드 인사이트 API
"""
from fastapi import APIRouter, Depends, Query
from typing import Literal
from app.api.dependencies import get_insights_service
from app.services.insights_service import InsightsService

router = APIRouter()


@router.get("/insights/urgent")
async def get_urgent_queue(
    min_urgency: int = Query(70, ge=0, le=100),
    hours: int = Query(24, ge=1, le=8760),
    service: InsightsService = Depends(get_insights_service)
):
    """긴급 처리 대상 목록 (긴급도 내림차순, 최대 50건)"""
    return await service.get_urgent_queue(min_urgency, hours)


@router.get("/insights/trends")
async def get_trends(
    period: Literal["day", "week", "month"] = "week",
    group_by: Literal["category", "source", "customer_tier"] = "category",
    service: InsightsService = Depends(get_insights_service)
):
    """기간별 수집량 추이 및 분류별 분포"""
    return await service.get_trends(period, group_by)


@router.get("/insights/summary")
async def get_summary(
    period: Literal["week", "month", "quarter"] = "month",
    service: InsightsService = Depends(get_insights_service)
):
    """경영진 요약 (NPS, 감정 분포, 주요 이슈)"""
    return await service.get_summary(period)
