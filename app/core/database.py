"""
피드백 DB 엔진/세션 관리 (PostgreSQL 운영, SQLite 로컬 개발)
"""
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings


def engine_options(url: str) -> Dict[str, Any]:
    """드라이버별 엔진 옵션 (SQLite는 커넥션 풀 크기 지정 불가)"""
    options: Dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.DEBUG,  # SQL 쿼리 로깅 (개발 환경에서만)
    }
    if url.startswith("sqlite"):
        # 서비스 계층이 to_thread로 세션을 사용하므로 스레드 검사 해제
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    return options


engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """요청 단위 세션 의존성"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
