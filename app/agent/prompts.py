"""
긴급도 분석 프롬프트
"""
from typing import Any, Dict, Optional


URGENCY_SYSTEM_PROMPT = (
    "You are a customer feedback triage expert. Analyze feedback and assign urgency "
    "scores based on multiple factors. Always respond with valid JSON."
)

# 긴급도 점수 산정 프롬프트 템플릿 (가중치 5개 요소)
URGENCY_PROMPT_TEMPLATE = """You are a customer feedback triage assistant. Analyze the following feedback and assign an urgency score (0-100) based on these criteria:

FEEDBACK DETAILS:
- Content: "{content}"
- Source: {source}
- Customer Tier: {customer_tier}
- Category: {category}
- Similar reports in last 30 days: {frequency_count}{metadata_info}
- Received: {time_ago}

SCORING GUIDELINES:
- Customer Value (30%): enterprise=30pts, pro=20pts, free=10pts, unknown=5pts
- Severity (25%):
  * Crashes, data loss, security issues: 25pts
  * Payment/checkout blocking issues: 20pts
  * Major feature broken: 15pts
  * UX degradation: 10pts
  * Cosmetic issues: 5pts
- Frequency (20%):
  * 10+ similar reports: 20pts
  * 5-9 reports: 15pts
  * 2-4 reports: 10pts
  * 1 report: 5pts
- Recency (15%):
  * Last 24h: 15pts
  * Last 3 days: 10pts
  * Last week: 5pts
  * Older: 2pts
- Business Impact (10%):
  * Revenue-affecting (payment, billing, checkout): 10pts
  * Onboarding-affecting (signup, login, first-time experience): 7pts
  * Core feature: 5pts
  * Nice-to-have: 2pts

Consider:
- Low NPS scores (0-6) or low star ratings (1-2) indicate higher urgency
- Multiple users reporting the same issue increases urgency
- Issues affecting enterprise customers are more urgent
- Blocking issues (cannot proceed) are more urgent than non-blocking

OUTPUT FORMAT (JSON only, no other text):
{{
  "urgency_score": <number 0-100>,
  "reasoning": "<2-3 sentence explanation of why this score was assigned>",
  "recommended_action": "<immediate|same_day|this_week|backlog>"
}}"""


def get_metadata_context_string(metadata: Optional[Dict[str, Any]]) -> str:
    """메타데이터 중 긴급도 판단에 쓰이는 항목을 프롬프트 줄로 변환"""
    if not metadata:
        return ""

    lines = ""
    if "nps_score" in metadata:
        lines += f"\n- NPS Score: {metadata['nps_score']}/10"
    if "star_rating" in metadata:
        lines += f"\n- Star Rating: {metadata['star_rating']}/5"
    if "channel" in metadata:
        lines += f"\n- Channel: {metadata['channel']}"
    return lines


def format_time_ago(hours: float) -> str:
    """경과 시간을 사람이 읽기 쉬운 문자열로 변환"""
    if hours < 1:
        return "less than 1 hour ago"
    if hours < 24:
        return f"{round(hours)} hours ago"
    if hours < 168:
        return f"{round(hours / 24)} days ago"
    return f"{round(hours / 168)} weeks ago"
