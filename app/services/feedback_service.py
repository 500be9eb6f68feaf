"""
피드백 수집 파이프라인 및 조회 서비스
"""
import asyncio
import logging
import math
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.core.config import settings
from app.core.exceptions import NotFoundError, PersistenceError
from app.dto.feedback import (
    BatchIngestResponse,
    BatchItemError,
    FeedbackDetailResponse,
    FeedbackListResponse,
    FeedbackQuery,
    FeedbackResponse,
    FeedbackUpdateRequest,
    NormalizedFeedback,
    PaginationMeta,
    SimilarFeedbackResponse,
)
from app.dto.urgency import UrgencyInput, UrgencyResult
from app.models.category import Category
from app.models.customer import CustomerTier
from app.models.feedback import Feedback, FeedbackStatus, Sentiment
from app.services import categorization
from app.services.feedback_repository import FeedbackRepository
from app.services.frequency import get_similar_feedback, get_similar_feedback_count
from app.services.normalizer import normalize_feedback_payload
from app.services.prioritization import PrioritizationService

logger = logging.getLogger(__name__)


@dataclass
class ProcessedItem:
    """
    Stage 2 결과 - ORM 객체 대신 값만 보관 (이후 단계는 이벤트 루프에서 DB 접근 없이 사용)
    feedback_id는 저장 전에 발급하는 상관 키
    """
    index: int
    payload: NormalizedFeedback
    customer_id: Optional[uuid.UUID]
    customer_tier: Optional[CustomerTier]
    category_id: Optional[int]
    category_name: Optional[str]
    sentiment: Sentiment
    frequency_count: int
    tags: List[str]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    feedback_id: uuid.UUID = field(default_factory=uuid.uuid4)

    def to_urgency_input(self) -> UrgencyInput:
        return UrgencyInput(
            feedback_content=self.payload.content,
            customer_tier=self.customer_tier,
            category=self.category_name,
            frequency_count=self.frequency_count,
            created_at=self.created_at,
            source=self.payload.source,
            metadata=self.payload.metadata,
        )

    def to_record(self, urgency: UrgencyResult) -> Feedback:
        return Feedback(
            id=self.feedback_id,
            customer_id=self.customer_id,
            category_id=self.category_id,
            source=self.payload.source,
            content=self.payload.content,
            urgency_score=urgency.urgency_score,
            urgency_reasoning=urgency.reasoning,
            recommended_action=urgency.recommended_action,
            sentiment=self.sentiment,
            status=FeedbackStatus.NEW,
            frequency_count=self.frequency_count,
            metadata_=self.payload.metadata,
            created_at=self.created_at,
        )


class FeedbackService:
    """피드백 수집/조회 서비스 (저장소와 긴급도 산정기는 생성자로 주입)"""

    def __init__(
        self,
        repository: FeedbackRepository,
        prioritization: PrioritizationService,
        urgency_batch_size: Optional[int] = None,
    ):
        self.repository = repository
        self.prioritization = prioritization
        self.urgency_batch_size = urgency_batch_size or settings.URGENCY_BATCH_SIZE

    # ------------------------------------------------------------------
    # 수집
    # ------------------------------------------------------------------
    def _process_item(self, index: int, payload: NormalizedFeedback, categories: Sequence[Category]) -> ProcessedItem:
        """동기 DB 작업: 고객 upsert, 분류, 감정, 빈도, 태그 (to_thread로 호출)"""
        customer = None
        if payload.customer_email:
            customer = self.repository.get_or_create_customer(
                payload.customer_email,
                payload.customer_tier or CustomerTier.FREE,
                payload.customer_company,
            )

        category = categorization.categorize(payload.content, categories)
        sentiment = categorization.determine_sentiment(
            payload.content,
            category.type if category else None,
        )
        frequency_count = get_similar_feedback_count(
            self.repository,
            payload.content,
            category.id if category else None,
        )
        tags = categorization.extract_tags(payload.content, payload.metadata)

        return ProcessedItem(
            index=index,
            payload=payload,
            customer_id=customer.id if customer else None,
            customer_tier=customer.tier if customer else None,
            category_id=category.id if category else None,
            category_name=category.name if category else None,
            sentiment=sentiment,
            frequency_count=frequency_count,
            tags=tags,
        )

    def _persist_tags(self, items: Sequence[ProcessedItem]) -> None:
        """동기 DB 작업: 태그 일괄 저장 (실패해도 배치는 성공으로 처리)"""
        pairs = [(item.feedback_id, tag) for item in items for tag in item.tags]
        if not pairs:
            return
        try:
            self.repository.insert_tags_bulk(pairs)
        except PersistenceError as e:
            logger.warning(f"태그 일괄 저장 실패 (무시): {e}")

    async def create_batch(self, items: Sequence[Any]) -> BatchIngestResponse:
        """
        단계별 배치 수집

        0. 페이로드 정규화
        1. 카테고리 1회 조회
        2. 항목별 고객/분류/감정/빈도/태그
        3. 긴급도 산정 (하위 배치 단위, 하위 배치 실패 시 해당 항목 전체 실패)
        4. 피드백 일괄 저장 (실패 시 전체 요청 실패)
        5. 태그 일괄 저장 (실패해도 무시)
        """
        logger.info(f"🚀 배치 수집 시작: {len(items)}건")
        start_time = time.monotonic()
        errors: List[BatchItemError] = []

        # Stage 0
        logger.info("🔄 Stage 0: 페이로드 정규화")
        normalized: List[tuple] = []
        for i, raw in enumerate(items):
            try:
                normalized.append((i, normalize_feedback_payload(raw)))
            except Exception as e:
                logger.warning(f"정규화 실패 index={i}: {e}")
                errors.append(BatchItemError(index=i, error=f"Normalization failed: {e}"))

        # Stage 1
        logger.info("📊 Stage 1: 카테고리 조회")
        categories = await asyncio.to_thread(self.repository.get_categories) if normalized else []

        # Stage 2
        logger.info("👥 Stage 2: 고객/분류/빈도 처리")
        processed: List[ProcessedItem] = []
        for index, payload in normalized:
            try:
                processed.append(await asyncio.to_thread(self._process_item, index, payload, categories))
            except Exception as e:
                logger.error(f"항목 처리 실패 index={index}: {e}", exc_info=True)
                errors.append(BatchItemError(index=index, error=str(e)))

        # Stage 3
        batch_size = self.urgency_batch_size
        logger.info(f"🤖 Stage 3: 긴급도 산정 ({batch_size}건 단위)")
        scored: List[tuple] = []
        for start in range(0, len(processed), batch_size):
            batch = processed[start:start + batch_size]
            try:
                results = await self.prioritization.calculate_urgency_batch(
                    [item.to_urgency_input() for item in batch]
                )
                if len(results) != len(batch):
                    raise ValueError(f"expected {len(batch)} results, got {len(results)}")
                scored.extend(zip(batch, results))
            except Exception as e:
                logger.error(f"하위 배치 {start // batch_size} 긴급도 산정 실패: {e}")
                for item in batch:
                    errors.append(BatchItemError(index=item.index, error=f"Urgency calculation failed: {e}"))

        # Stage 4
        logger.info("💾 Stage 4: 피드백 일괄 저장")
        records = [item.to_record(urgency) for item, urgency in scored]
        if records:
            try:
                await asyncio.to_thread(self.repository.insert_feedback_bulk, records)
            except PersistenceError as e:
                errors.sort(key=lambda err: err.index)
                logger.error(f"❌ 피드백 일괄 저장 실패, 배치 중단 (이전 항목 오류 {len(errors)}건): {e}")
                raise PersistenceError(str(e), errors=errors) from e
        persisted = [item for item, _ in scored]
        feedback_ids = [item.feedback_id for item in persisted]

        # Stage 5
        if persisted:
            logger.info("🏷️ Stage 5: 태그 일괄 저장")
            await asyncio.to_thread(self._persist_tags, persisted)

        errors.sort(key=lambda err: err.index)
        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(f"✅ 배치 수집 완료: 성공 {len(feedback_ids)}건, 실패 {len(errors)}건 ({duration_ms}ms)")

        return BatchIngestResponse(
            success=True,
            ingested_count=len(feedback_ids),
            failed_count=len(errors),
            feedback_ids=feedback_ids,
            errors=errors or None,
        )

    async def create_one(self, raw: Any) -> FeedbackResponse:
        """단건 수집 (정규화/검증 오류는 그대로 전달)"""
        payload = normalize_feedback_payload(raw)
        categories = await asyncio.to_thread(self.repository.get_categories)
        item = await asyncio.to_thread(self._process_item, 0, payload, categories)

        urgency = await self.prioritization.calculate_urgency(item.to_urgency_input())

        await asyncio.to_thread(self.repository.insert_feedback_bulk, [item.to_record(urgency)])
        await asyncio.to_thread(self._persist_tags, [item])
        logger.info(f"피드백 생성: id={item.feedback_id}, urgency={urgency.urgency_score}")

        feedback = await asyncio.to_thread(self.repository.get_feedback, item.feedback_id)
        return FeedbackResponse.model_validate(feedback)

    # ------------------------------------------------------------------
    # 조회/수정
    # ------------------------------------------------------------------
    async def find_all(self, query: FeedbackQuery) -> FeedbackListResponse:
        items, total = await asyncio.to_thread(self.repository.query_feedback, query)
        return FeedbackListResponse(
            data=[FeedbackResponse.model_validate(item) for item in items],
            pagination=PaginationMeta(
                page=query.page,
                limit=query.limit,
                total=total,
                total_pages=math.ceil(total / query.limit),
            ),
        )

    def _load_detail(self, feedback_id: uuid.UUID) -> FeedbackDetailResponse:
        """동기 DB 작업: 상세 + 유사 피드백 (to_thread로 호출)"""
        feedback = self.repository.get_feedback(feedback_id)
        if feedback is None:
            raise NotFoundError(f"Feedback with ID {feedback_id} not found")

        similar = get_similar_feedback(
            self.repository,
            feedback.content,
            feedback.category_id,
            feedback.id,
        )
        detail = FeedbackDetailResponse.model_validate(feedback)
        detail.similar_feedback = [
            SimilarFeedbackResponse(
                id=s.id,
                content=s.content,
                created_at=s.created_at,
                customer_tier=s.customer.tier if s.customer else None,
            )
            for s in similar
        ]
        return detail

    async def find_one(self, feedback_id: uuid.UUID) -> FeedbackDetailResponse:
        return await asyncio.to_thread(self._load_detail, feedback_id)

    async def update(self, feedback_id: uuid.UUID, request: FeedbackUpdateRequest) -> FeedbackResponse:
        """상태/담당자/메모만 수정 (긴급도/분류/감정은 생성 시 확정, 명시적 null은 값 비움)"""
        changes: Dict[str, Any] = request.model_dump(exclude_unset=True)
        changes["updated_at"] = datetime.now(timezone.utc)

        feedback = await asyncio.to_thread(self.repository.update_feedback, feedback_id, changes)
        if feedback is None:
            raise NotFoundError(f"Feedback with ID {feedback_id} not found")
        return FeedbackResponse.model_validate(feedback)
