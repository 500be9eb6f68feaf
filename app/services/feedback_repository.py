"""
피드백 저장소 (SQLAlchemy Session 래퍼)
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import asc, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.core.exceptions import PersistenceError
from app.dto.feedback import FeedbackQuery
from app.models.category import Category, DEFAULT_CATEGORIES
from app.models.customer import Customer, CustomerTier
from app.models.feedback import Feedback, FeedbackTag

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "urgency_score": Feedback.urgency_score,
    "created_at": Feedback.created_at,
    "frequency_count": Feedback.frequency_count,
}


def _with_relations(query):
    return query.options(
        joinedload(Feedback.customer),
        joinedload(Feedback.category),
        selectinload(Feedback.tags),
    )


class FeedbackRepository:
    """피드백/고객/카테고리/태그 테이블 접근"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # 카테고리
    # ------------------------------------------------------------------
    def get_categories(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.id).all()

    def seed_categories(self) -> int:
        """기본 카테고리 카탈로그 등록 (이미 있는 이름은 건너뜀)"""
        existing = {name for (name,) in self.db.query(Category.name).all()}
        created = 0
        for entry in DEFAULT_CATEGORIES:
            if entry["name"] in existing:
                continue
            self.db.add(Category(
                name=entry["name"],
                type=entry["type"],
                keywords=list(entry["keywords"]),
                description=entry["description"],
            ))
            created += 1
        if created:
            self.db.commit()
            logger.info(f"기본 카테고리 {created}개 등록")
        return created

    # ------------------------------------------------------------------
    # 고객
    # ------------------------------------------------------------------
    def get_customer_by_email(self, email: str) -> Optional[Customer]:
        return self.db.query(Customer).filter(Customer.email == email).first()

    def get_or_create_customer(
        self,
        email: str,
        tier: CustomerTier = CustomerTier.FREE,
        company_name: Optional[str] = None,
    ) -> Customer:
        """이메일 기준 upsert - 동시 요청으로 충돌하면 기존 고객을 다시 조회"""
        existing = self.get_customer_by_email(email)
        if existing:
            return existing

        customer = Customer(email=email, tier=tier, company_name=company_name)
        try:
            self.db.add(customer)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.get_customer_by_email(email)
            if existing:
                return existing
            raise PersistenceError(f"Failed to create customer: {email}")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to create customer: {e}") from e

        self.db.refresh(customer)
        return customer

    # ------------------------------------------------------------------
    # 유사 피드백
    # ------------------------------------------------------------------
    def count_feedback_containing(
        self,
        keyword: str,
        since: datetime,
        category_id: Optional[int] = None,
    ) -> int:
        query = self.db.query(Feedback).filter(
            Feedback.created_at >= since,
            Feedback.content.icontains(keyword, autoescape=True),
        )
        if category_id:
            query = query.filter(Feedback.category_id == category_id)
        return query.count()

    def find_feedback_containing(
        self,
        keyword: str,
        category_id: Optional[int] = None,
        exclude_id: Optional[uuid.UUID] = None,
        limit: int = 5,
    ) -> List[Feedback]:
        query = self.db.query(Feedback).options(joinedload(Feedback.customer)).filter(
            Feedback.content.icontains(keyword, autoescape=True)
        )
        if category_id:
            query = query.filter(Feedback.category_id == category_id)
        if exclude_id:
            query = query.filter(Feedback.id != exclude_id)
        return query.order_by(desc(Feedback.created_at)).limit(limit).all()

    # ------------------------------------------------------------------
    # 일괄 저장
    # ------------------------------------------------------------------
    def insert_feedback_bulk(self, records: Sequence[Feedback]) -> List[Feedback]:
        """피드백 일괄 저장 - 부분 저장 없음 (실패 시 전체 롤백)"""
        if not records:
            return []
        try:
            self.db.add_all(records)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to batch insert feedback: {e}") from e
        return list(records)

    def insert_tags_bulk(self, pairs: Iterable[Tuple[uuid.UUID, str]]) -> int:
        rows = [FeedbackTag(feedback_id=feedback_id, tag=tag) for feedback_id, tag in pairs]
        if not rows:
            return 0
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to batch insert tags: {e}") from e
        return len(rows)

    # ------------------------------------------------------------------
    # 조회/수정
    # ------------------------------------------------------------------
    def get_feedback(self, feedback_id: uuid.UUID) -> Optional[Feedback]:
        return _with_relations(self.db.query(Feedback)).filter(Feedback.id == feedback_id).first()

    def query_feedback(self, params: FeedbackQuery) -> Tuple[List[Feedback], int]:
        """필터/정렬/페이지네이션 적용 후 (목록, 전체 건수) 반환"""
        query = self.db.query(Feedback)

        if params.source:
            query = query.filter(Feedback.source == params.source)
        if params.status:
            query = query.filter(Feedback.status == params.status)
        if params.sentiment:
            query = query.filter(Feedback.sentiment == params.sentiment)
        if params.min_urgency is not None:
            query = query.filter(Feedback.urgency_score >= params.min_urgency)
        if params.max_urgency is not None:
            query = query.filter(Feedback.urgency_score <= params.max_urgency)
        if params.date_from:
            query = query.filter(Feedback.created_at >= params.date_from)
        if params.date_to:
            query = query.filter(Feedback.created_at <= params.date_to)
        if params.search:
            query = query.filter(Feedback.content.icontains(params.search, autoescape=True))
        if params.customer_tier:
            query = query.filter(Feedback.customer.has(Customer.tier == params.customer_tier))
        if params.category:
            query = query.filter(Feedback.category.has(Category.name == params.category))

        total = query.count()

        order = asc if params.sort_order == "asc" else desc
        query = query.order_by(order(_SORT_COLUMNS[params.sort_by]), Feedback.id)

        offset = (params.page - 1) * params.limit
        items = _with_relations(query).offset(offset).limit(params.limit).all()
        return items, total

    def update_feedback(self, feedback_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[Feedback]:
        feedback = self.db.query(Feedback).filter(Feedback.id == feedback_id).first()
        if feedback is None:
            return None

        for field, value in changes.items():
            setattr(feedback, field, value)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Failed to update feedback: {e}") from e

        return self.get_feedback(feedback_id)

    # ------------------------------------------------------------------
    # 집계용
    # ------------------------------------------------------------------
    def list_feedback_between(self, start: datetime, end: Optional[datetime] = None) -> List[Feedback]:
        query = self.db.query(Feedback).options(
            joinedload(Feedback.customer),
            joinedload(Feedback.category),
        ).filter(Feedback.created_at >= start)
        if end is not None:
            query = query.filter(Feedback.created_at < end)
        return query.all()

    def list_urgent_feedback(self, min_urgency: int, since: datetime, limit: int = 50) -> List[Feedback]:
        return self.db.query(Feedback).options(
            joinedload(Feedback.customer),
            joinedload(Feedback.category),
        ).filter(
            Feedback.urgency_score >= min_urgency,
            Feedback.created_at >= since,
        ).order_by(desc(Feedback.urgency_score), desc(Feedback.created_at)).limit(limit).all()
