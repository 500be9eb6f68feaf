"""
App 진입점 (FastAPI 인스턴스 생성)
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.v1 import feedback, insights
from app.core.config import settings
from app.core.database import Base, SessionLocal, engine
from app.models import *
from app.services.feedback_repository import FeedbackRepository

# 로깅 설정
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

# uvicorn 로거 레벨 조정 (너무 많은 로그 방지)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """테이블 생성 및 기본 카테고리 등록"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        FeedbackRepository(db).seed_categories()
    finally:
        db.close()
    logger.info("피드백 서비스 시작")
    yield


app = FastAPI(
    title="Feedback Prioritization API",
    description="고객 피드백 수집 및 긴급도 우선순위 API",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI 경로
    redoc_url="/redoc",  # ReDoc 경로
    openapi_url="/openapi.json",  # OpenAPI 스키마 경로
    lifespan=lifespan,
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
async def root():
    """헬스 체크 엔드포인트"""
    return {"message": "Feedback Prioritization API Server", "status": "running"}

@app.get("/health")
async def health_check():
    """상세 헬스 체크"""
    return {"status": "healthy"}

# 라우터 등록
app.include_router(feedback.router, prefix="/api", tags=["feedback"])
app.include_router(insights.router, prefix="/api", tags=["insights"])
