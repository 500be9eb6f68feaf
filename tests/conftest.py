import os

# LLM 호출 없이 규칙 기반 산정만 사용
os.environ["OPENAI_API_KEY"] = ""
os.environ["DEBUG"] = "false"

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.models import Feedback, FeedbackSource, Sentiment
from app.services.feedback_repository import FeedbackRepository
from app.services.feedback_service import FeedbackService
from app.services.prioritization import PrioritizationService


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    SessionTesting = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repository(db_session):
    repo = FeedbackRepository(db_session)
    repo.seed_categories()
    return repo


@pytest.fixture
def categories(repository):
    return repository.get_categories()


@pytest.fixture
def feedback_service(repository):
    """LLM 없이 규칙 기반 산정을 사용하는 서비스"""
    return FeedbackService(repository, PrioritizationService(remote=None))


@pytest.fixture
def add_feedback(db_session):
    """저장된 피드백을 직접 추가하는 헬퍼"""

    def _add(content, days_ago=0.0, category_id=None, urgency_score=50, source=FeedbackSource.SUPPORT, **kwargs):
        feedback = Feedback(
            content=content,
            source=source,
            category_id=category_id,
            urgency_score=urgency_score,
            sentiment=kwargs.pop("sentiment", Sentiment.NEUTRAL),
            frequency_count=kwargs.pop("frequency_count", 1),
            metadata_=kwargs.pop("metadata", {}),
            created_at=datetime.now(timezone.utc) - timedelta(days=days_ago),
            **kwargs,
        )
        db_session.add(feedback)
        db_session.commit()
        return feedback

    return _add
