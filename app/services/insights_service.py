"""
대시보드용 집계 (긴급 큐 / 추이 / 경영진 요약)
"""
import asyncio
import logging
import re
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from app.models.feedback import Feedback, FeedbackStatus, Sentiment
from app.services.feedback_repository import FeedbackRepository

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
    "quarter": 90,
}


def _category_name(feedback: Feedback) -> str:
    return feedback.category.name if feedback.category else "uncategorized"


def _customer_tier(feedback: Feedback) -> str:
    return feedback.customer.tier.value if feedback.customer else "unknown"


def _as_date(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def calculate_nps(scores: Sequence[float]) -> int:
    """NPS = (추천 9~10 - 비추천 0~6) / 전체 * 100"""
    if not scores:
        return 0
    promoters = sum(1 for s in scores if s >= 9)
    detractors = sum(1 for s in scores if s <= 6)
    return round((promoters - detractors) / len(scores) * 100)


def most_common_theme(contents: Sequence[str]) -> Optional[str]:
    """4글자 초과 단어 중 가장 많이 등장한 3개 (단순 빈도)"""
    counter: Counter = Counter()
    for content in contents:
        words = re.sub(r"[^\w\s]", "", content.lower()).split()
        counter.update(w for w in words if len(w) > 4)
    top = [word for word, _ in counter.most_common(3)]
    return ", ".join(top) if top else None


def _group_counts(items: Sequence[Feedback], key, label: str) -> List[Dict[str, Any]]:
    total = len(items)
    counts = Counter(key(item) for item in items)
    return [
        {label: name, "count": count, "percent": round(count / total * 100) if total else 0}
        for name, count in counts.most_common()
    ]


def _group_by_day(items: Sequence[Feedback], start: datetime, end: datetime) -> List[Dict[str, Any]]:
    days: Dict[str, int] = {}
    current = _as_date(start)
    last = _as_date(end)
    while current <= last:
        days[current.isoformat()] = 0
        current += timedelta(days=1)
    for item in items:
        key = _as_date(item.created_at).isoformat()
        days[key] = days.get(key, 0) + 1
    return [{"date": d, "count": c} for d, c in sorted(days.items())]


class InsightsService:
    """읽기 전용 집계"""

    def __init__(self, repository: FeedbackRepository):
        self.repository = repository

    async def get_urgent_queue(self, min_urgency: int = 70, hours: int = 24) -> Dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        items = await asyncio.to_thread(self.repository.list_urgent_feedback, min_urgency, since)

        return {
            "urgent_items": [
                {
                    "id": str(item.id),
                    "content": item.content,
                    "urgency_score": item.urgency_score,
                    "urgency_reasoning": item.urgency_reasoning,
                    "category": _category_name(item),
                    "customer_tier": item.customer.tier.value if item.customer else None,
                    "frequency_count": item.frequency_count,
                    "created_at": item.created_at.isoformat(),
                }
                for item in items
            ],
            "summary": {
                "total_urgent": len(items),
                "critical_count": sum(1 for i in items if i.urgency_score >= 90),
                "high_count": sum(1 for i in items if 70 <= i.urgency_score < 90),
                "by_category": dict(Counter(_category_name(i) for i in items)),
            },
        }

    async def get_trends(self, period: str = "week", group_by: str = "category") -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        span = timedelta(days=PERIOD_DAYS[period])
        start = now - span
        previous_start = start - span

        current = await asyncio.to_thread(self.repository.list_feedback_between, start)
        previous = await asyncio.to_thread(self.repository.list_feedback_between, previous_start, start)

        current_total = len(current)
        previous_total = len(previous)
        change_percent = (current_total - previous_total) / previous_total * 100 if previous_total else 0

        by_category = _group_counts(current, _category_name, "category")
        for entry in by_category:
            entry["trend"] = "stable"
        by_source = _group_counts(current, lambda f: f.source.value, "source")

        group_keys = {
            "category": (_category_name, "category"),
            "source": (lambda f: f.source.value, "source"),
            "customer_tier": (_customer_tier, "customer_tier"),
        }
        key, label = group_keys[group_by]

        top_issues = [
            {
                "category": entry["category"],
                "count": entry["count"],
                "summary": f"{entry['count']} reports in {entry['category']}",
            }
            for entry in by_category[:5]
        ]

        return {
            "period": {"start": start.isoformat(), "end": now.isoformat()},
            "volume": {
                "total": current_total,
                "change_percent": round(change_percent, 1),
                "by_day": _group_by_day(current, start, now),
            },
            "group_by": group_by,
            "groups": _group_counts(current, key, label),
            "by_category": by_category,
            "by_source": by_source,
            "top_issues": top_issues,
        }

    async def get_summary(self, period: str = "month") -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        start = now - timedelta(days=PERIOD_DAYS[period])
        feedback = await asyncio.to_thread(self.repository.list_feedback_between, start)
        total = len(feedback)

        nps_scores = [
            f.metadata_["nps_score"]
            for f in feedback
            if isinstance((f.metadata_ or {}).get("nps_score"), (int, float))
        ]

        reviewed = sum(1 for f in feedback if f.status != FeedbackStatus.NEW)

        critical = sorted(
            (f for f in feedback if (f.urgency_score or 0) >= 80),
            key=lambda f: f.urgency_score,
            reverse=True,
        )[:5]

        def _contents(category_type: str) -> List[str]:
            return [f.content for f in feedback if f.category and f.category.type.value == category_type]

        praise_count = len(_contents("praise"))

        return {
            "period": {"start": start.isoformat(), "end": now.isoformat()},
            "metrics": {
                "total_feedback": total,
                "nps_score": calculate_nps(nps_scores),
                "sentiment_distribution": {
                    s.value: sum(1 for f in feedback if f.sentiment == s) for s in Sentiment
                },
                "response_rate": round(reviewed / total * 100) if total else 0,
            },
            "top_categories": [
                {"category": entry["category"], "count": entry["count"]}
                for entry in _group_counts(feedback, _category_name, "category")[:5]
            ],
            "critical_issues": [
                {
                    "id": str(f.id),
                    "issue": f.content[:100] + ("..." if len(f.content) > 100 else ""),
                    "urgency_score": f.urgency_score,
                    "affected_customers": f.frequency_count,
                }
                for f in critical
            ],
            "highlights": {
                "most_requested_feature": most_common_theme(_contents("feature")) or "None identified",
                "biggest_pain_point": most_common_theme(_contents("complaint")) or "None identified",
                "praise_summary": (
                    f"{praise_count} positive feedback items received" if praise_count else "No praise this period"
                ),
            },
        }
