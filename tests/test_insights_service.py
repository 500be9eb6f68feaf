import pytest

from app.models import Customer, CustomerTier, FeedbackSource, FeedbackStatus, Sentiment
from app.services.insights_service import InsightsService, calculate_nps, most_common_theme


@pytest.fixture
def insights(repository):
    return InsightsService(repository)


def test_calculate_nps():
    assert calculate_nps([]) == 0
    assert calculate_nps([10, 9, 8, 3]) == 25
    assert calculate_nps([0, 1, 2]) == -100


def test_most_common_theme():
    contents = ["Dark mode please", "Need dark mode badly", "Export to pdf!"]

    assert most_common_theme(contents) == "please, badly, export"
    assert most_common_theme(["too tiny"]) is None


@pytest.mark.asyncio
async def test_urgent_queue(insights, categories, add_feedback):
    bug = categories[0]
    add_feedback("Checkout is down", urgency_score=95, category_id=bug.id)
    add_feedback("Login slow", urgency_score=72)
    add_feedback("Old outage", urgency_score=99, days_ago=3)
    add_feedback("Minor typo", urgency_score=20)

    result = await insights.get_urgent_queue(min_urgency=70, hours=24)

    assert [i["content"] for i in result["urgent_items"]] == ["Checkout is down", "Login slow"]
    assert result["summary"] == {
        "total_urgent": 2,
        "critical_count": 1,
        "high_count": 1,
        "by_category": {"Bug Report": 1, "uncategorized": 1},
    }


@pytest.mark.asyncio
async def test_trends_volume_and_groups(insights, add_feedback):
    add_feedback("a", source=FeedbackSource.NPS)
    add_feedback("b", source=FeedbackSource.NPS, days_ago=1)
    add_feedback("c", source=FeedbackSource.SOCIAL, days_ago=2)
    add_feedback("previous week", days_ago=10)

    result = await insights.get_trends(period="week", group_by="source")

    assert result["volume"]["total"] == 3
    assert result["volume"]["change_percent"] == 200.0
    assert sum(d["count"] for d in result["volume"]["by_day"]) == 3
    assert result["group_by"] == "source"
    assert result["groups"][0] == {"source": "nps", "count": 2, "percent": 67}
    assert result["by_category"] == [
        {"category": "uncategorized", "count": 3, "percent": 100, "trend": "stable"}
    ]


@pytest.mark.asyncio
async def test_trends_without_previous_period(insights, add_feedback):
    add_feedback("only one")

    result = await insights.get_trends(period="day", group_by="customer_tier")

    assert result["volume"]["change_percent"] == 0
    assert result["groups"] == [{"customer_tier": "unknown", "count": 1, "percent": 100}]


@pytest.mark.asyncio
async def test_summary(insights, categories, add_feedback, db_session):
    feature = next(c for c in categories if c.name == "Feature Request")
    praise = next(c for c in categories if c.name == "Praise")
    customer = Customer(email="vip@corp.com", tier=CustomerTier.ENTERPRISE)
    db_session.add(customer)
    db_session.commit()

    add_feedback("Please add export option", category_id=feature.id, metadata={"nps_score": 9})
    add_feedback("Great product", category_id=praise.id, sentiment=Sentiment.POSITIVE,
                 metadata={"nps_score": 10}, status=FeedbackStatus.REVIEWED)
    add_feedback("Payment outage for everyone", urgency_score=93, frequency_count=7,
                 sentiment=Sentiment.NEGATIVE, metadata={"nps_score": 2}, customer_id=customer.id)
    add_feedback("Ancient history", days_ago=60)

    result = await insights.get_summary(period="month")
    metrics = result["metrics"]

    assert metrics["total_feedback"] == 3
    assert metrics["nps_score"] == 33
    assert metrics["sentiment_distribution"] == {"positive": 1, "neutral": 1, "negative": 1}
    assert metrics["response_rate"] == 33
    assert result["critical_issues"] == [{
        "id": result["critical_issues"][0]["id"],
        "issue": "Payment outage for everyone",
        "urgency_score": 93,
        "affected_customers": 7,
    }]
    assert result["highlights"]["most_requested_feature"] == "please, export, option"
    assert result["highlights"]["biggest_pain_point"] == "None identified"
    assert result["highlights"]["praise_summary"] == "1 positive feedback items received"


@pytest.mark.asyncio
async def test_summary_empty(insights):
    result = await insights.get_summary(period="quarter")

    assert result["metrics"]["total_feedback"] == 0
    assert result["metrics"]["response_rate"] == 0
    assert result["top_categories"] == []
    assert result["highlights"]["praise_summary"] == "No praise this period"
