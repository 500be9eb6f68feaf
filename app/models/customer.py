"""
고객 테이블 (Customer)
"""
from sqlalchemy import Column, String, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum

from app.core.database import Base


class CustomerTier(str, enum.Enum):
    """고객 등급"""
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class Customer(Base):
    """고객 정보 테이블 - 이메일을 자연키로 사용 (최초 피드백 수집 시 생성)"""
    __tablename__ = "customers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    tier = Column(
        SQLEnum(CustomerTier, values_callable=lambda e: [m.value for m in e], name="customer_tier"),
        default=CustomerTier.FREE,
        nullable=False
    )
    company_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # 관계 설정
    feedbacks = relationship("Feedback", back_populates="customer")

    def __repr__(self):
        return f"<Customer(id={self.id}, email={self.email}, tier={self.tier})>"
