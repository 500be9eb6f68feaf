"""
긴급도 점수 산정 (LLM 우선, 실패 시 규칙 기반)

- LLMUrgencyScorer: 원격 LLM 호출 (실패/잘못된 응답 시 ProviderError)
- fallback_urgency: 동일한 채점 기준을 재현하는 결정적 규칙 엔진 (네트워크 없음)
- PrioritizationService: 원격 -> 실패 시 로컬 순서로 조합, 호출자에게 예외를 전달하지 않음
"""
import asyncio
import logging
import math
from datetime import datetime, timezone
from numbers import Real
from typing import Any, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app.agent.prompts import (
    URGENCY_PROMPT_TEMPLATE,
    URGENCY_SYSTEM_PROMPT,
    format_time_ago,
    get_metadata_context_string,
)
from app.agent.utils import parse_json_from_response
from app.core.config import settings
from app.core.exceptions import ProviderError
from app.core.llm_factory import get_urgency_llm
from app.dto.urgency import UrgencyInput, UrgencyResult
from app.models.customer import CustomerTier
from app.models.feedback import RecommendedAction

logger = logging.getLogger(__name__)

# 심각도 (위에서부터 첫 번째로 일치하는 단계만 적용)
SEVERITY_TIERS = (
    (("crash", "data loss", "security"), 25, "critical issue detected"),
    (("payment", "checkout", "billing"), 20, "revenue-affecting issue"),
    (("broken", "not working", "error"), 15, "major functionality issue"),
    (("slow", "ux"), 10, None),
)
SEVERITY_DEFAULT = 5

# 비즈니스 영향도
BUSINESS_IMPACT_TIERS = (
    (("payment", "billing", "checkout"), 10),
    (("signup", "login", "onboarding"), 7),
    (("dashboard", "core", "main"), 5),
)
BUSINESS_IMPACT_DEFAULT = 2

CUSTOMER_VALUE_POINTS = {
    CustomerTier.ENTERPRISE: 30,
    CustomerTier.PRO: 20,
    CustomerTier.FREE: 10,
}
CUSTOMER_VALUE_UNKNOWN = 5


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hours_since(created_at: datetime, now: Optional[datetime] = None) -> float:
    now = _as_utc(now or datetime.now(timezone.utc))
    return (now - _as_utc(created_at)).total_seconds() / 3600


def recommended_action_for(score: int) -> RecommendedAction:
    """최종 점수 -> 권장 대응 시점"""
    if score >= 80:
        return RecommendedAction.IMMEDIATE
    if score >= 60:
        return RecommendedAction.SAME_DAY
    if score >= 40:
        return RecommendedAction.THIS_WEEK
    return RecommendedAction.BACKLOG


def is_valid_urgency_score(value: Any) -> bool:
    """LLM 점수 채택 기준: 0~100 범위의 유한한 숫자 (bool 제외)"""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return 0 <= value <= 100


def build_urgency_prompt(data: UrgencyInput, now: Optional[datetime] = None) -> str:
    """긴급도 분석 프롬프트 생성"""
    tier = data.customer_tier.value if data.customer_tier else "unknown"
    return URGENCY_PROMPT_TEMPLATE.format(
        content=data.feedback_content,
        source=data.source.value,
        customer_tier=tier,
        category=data.category or "uncategorized",
        frequency_count=data.frequency_count,
        metadata_info=get_metadata_context_string(data.metadata),
        time_ago=format_time_ago(hours_since(data.created_at, now)),
    )


def fallback_urgency(data: UrgencyInput, now: Optional[datetime] = None) -> UrgencyResult:
    """
    규칙 기반 긴급도 산정 (LLM 미사용 시)

    고객 가치 30 + 심각도 25 + 빈도 20 + 최신성 15 + 비즈니스 영향 10
    """
    score = 0
    reasons: List[str] = []

    # 고객 가치 (30%)
    score += CUSTOMER_VALUE_POINTS.get(data.customer_tier, CUSTOMER_VALUE_UNKNOWN)
    if data.customer_tier in (CustomerTier.ENTERPRISE, CustomerTier.PRO):
        reasons.append(f"{data.customer_tier.value} customer")

    # 심각도 (25%)
    content = data.feedback_content.lower()
    for terms, points, reason in SEVERITY_TIERS:
        if any(term in content for term in terms):
            score += points
            if reason:
                reasons.append(reason)
            break
    else:
        score += SEVERITY_DEFAULT

    # 빈도 (20%)
    frequency = data.frequency_count
    if frequency >= 10:
        score += 20
    elif frequency >= 5:
        score += 15
    elif frequency >= 2:
        score += 10
    else:
        score += 5
    if frequency >= 2:
        reasons.append(f"{frequency} similar reports")

    # 최신성 (15%)
    hours = hours_since(data.created_at, now)
    if hours <= 24:
        score += 15
        reasons.append("recent feedback")
    elif hours <= 72:
        score += 10
    elif hours <= 168:
        score += 5
    else:
        score += 2

    # 비즈니스 영향 (10%)
    for terms, points in BUSINESS_IMPACT_TIERS:
        if any(term in content for term in terms):
            score += points
            break
    else:
        score += BUSINESS_IMPACT_DEFAULT

    score = min(100, max(0, score))

    if reasons:
        reasoning = f"Urgency based on: {', '.join(reasons)}."
    else:
        reasoning = "Standard urgency assessment based on available factors."

    return UrgencyResult(
        urgency_score=score,
        reasoning=reasoning,
        recommended_action=recommended_action_for(score),
    )


class LLMUrgencyScorer:
    """LLM 기반 긴급도 산정 - 모든 실패는 ProviderError로 변환"""

    def __init__(self, llm: BaseChatModel, timeout: Optional[float] = None):
        self.llm = llm
        self.timeout = timeout if timeout is not None else settings.URGENCY_LLM_TIMEOUT_SECONDS

    async def score(self, data: UrgencyInput) -> UrgencyResult:
        messages = [
            SystemMessage(content=URGENCY_SYSTEM_PROMPT),
            HumanMessage(content=build_urgency_prompt(data)),
        ]

        try:
            response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(f"LLM call timed out after {self.timeout}s") from e
        except Exception as e:
            raise ProviderError(f"LLM call failed: {e}") from e

        content = getattr(response, "content", None)
        if not content:
            raise ProviderError("LLM returned empty response")

        result = parse_json_from_response(content)
        raw_score = result.get("urgency_score")
        if not is_valid_urgency_score(raw_score):
            raise ProviderError(f"Invalid urgency score from LLM: {raw_score!r}")

        score = int(round(raw_score))
        try:
            action = RecommendedAction(result.get("recommended_action"))
        except ValueError:
            action = recommended_action_for(score)

        reasoning = result.get("reasoning")
        if not isinstance(reasoning, str) or not reasoning.strip():
            reasoning = "Urgency assessed by AI triage."

        return UrgencyResult(urgency_score=score, reasoning=reasoning, recommended_action=action)


class PrioritizationService:
    """원격 채점기 -> 실패 시 규칙 기반 채점기 순서로 조합"""

    def __init__(self, remote: Optional[LLMUrgencyScorer] = None):
        self.remote = remote

    async def calculate_urgency(self, data: UrgencyInput) -> UrgencyResult:
        if self.remote is None:
            logger.info("LLM 미설정, 규칙 기반 긴급도 산정 사용")
            return fallback_urgency(data)

        try:
            result = await self.remote.score(data)
            logger.info(f"✅ LLM 긴급도 점수: {result.urgency_score}")
            return result
        except ProviderError as e:
            logger.warning(f"⚠️ LLM 긴급도 산정 실패, 규칙 기반으로 대체: {e}")
        except Exception as e:
            logger.error(f"❌ LLM 긴급도 산정 중 예기치 못한 오류, 규칙 기반으로 대체: {e}", exc_info=True)
        return fallback_urgency(data)

    async def calculate_urgency_batch(self, inputs: Sequence[UrgencyInput]) -> List[UrgencyResult]:
        """하위 배치 동시 산정 (입력 순서대로 반환)"""
        return list(await asyncio.gather(*(self.calculate_urgency(item) for item in inputs)))


def get_prioritization_service() -> PrioritizationService:
    """설정된 LLM이 있으면 원격 채점기 사용"""
    llm = get_urgency_llm()
    remote = LLMUrgencyScorer(llm) if llm is not None else None
    return PrioritizationService(remote=remote)
