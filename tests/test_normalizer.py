import pytest

from app.core.exceptions import NormalizationError, ValidationError
from app.dto.feedback import CanonicalPayload, SupportTicketPayload, SurveyPayload
from app.models import CustomerTier, FeedbackSource
from app.services.normalizer import detect_payload_shape, normalize_feedback_payload


def test_support_ticket_shape():
    result = normalize_feedback_payload({
        "content": "Cannot reset my password",
        "ticket_id": "TKT-1",
        "channel": "email",
        "assigned_agent": "sam@company.com",
        "customer_email": "a@b.com",
        "customer_tier": "pro",
    })

    assert result.source == FeedbackSource.SUPPORT
    assert result.metadata == {"ticket_id": "TKT-1", "channel": "email", "assigned_agent": "sam@company.com"}
    assert result.customer_email == "a@b.com"
    assert result.customer_tier == CustomerTier.PRO


def test_survey_shape():
    result = normalize_feedback_payload({
        "content": "Pretty good overall",
        "nps_score": 8,
        "survey_campaign": "Q1",
    })

    assert result.source == FeedbackSource.NPS
    assert result.metadata == {"nps_score": 8, "survey_campaign": "Q1"}


def test_app_store_review_shape():
    result = normalize_feedback_payload({
        "content": "Crashes on launch",
        "store": "ios",
        "star_rating": 1,
        "app_version": "2.1.0",
        "reviewer_username": "jdoe",
    })

    assert result.source == FeedbackSource.APPSTORE
    assert result.metadata == {
        "store": "ios",
        "app_version": "2.1.0",
        "star_rating": 1,
        "reviewer_username": "jdoe",
    }


def test_social_mention_shape():
    result = normalize_feedback_payload({
        "content": "Loving the new dashboard",
        "platform": "twitter",
        "author_handle": "@fan",
        "engagement_count": 42,
    })

    assert result.source == FeedbackSource.SOCIAL
    assert result.metadata == {"platform": "twitter", "author_handle": "@fan", "engagement_count": 42}


def test_canonical_shape_passes_through():
    result = normalize_feedback_payload({
        "source": "appstore",
        "content": "Nice",
        "metadata": {"anything": "goes"},
    })

    assert result.source == FeedbackSource.APPSTORE
    assert result.metadata == {"anything": "goes"}


def test_ticket_takes_precedence_over_survey():
    payload = {"content": "x", "ticket_id": "T1", "channel": "chat", "nps_score": 3}

    assert detect_payload_shape(payload) is SupportTicketPayload
    assert normalize_feedback_payload(payload).source == FeedbackSource.SUPPORT


def test_explicit_source_takes_precedence_over_everything():
    payload = {"source": "social", "content": "x", "ticket_id": "T1", "channel": "chat"}

    assert detect_payload_shape(payload) is CanonicalPayload


def test_app_store_requires_all_three_fields():
    assert detect_payload_shape({"content": "x", "store": "ios", "star_rating": 3}) is None
    assert detect_payload_shape({"content": "x", "nps_score": 3, "store": "ios"}) is SurveyPayload


def test_unrecognized_shape_raises():
    with pytest.raises(NormalizationError, match="Unable to determine feedback source"):
        normalize_feedback_payload({"content": "where did this come from?"})


def test_non_dict_payload_raises():
    with pytest.raises(NormalizationError):
        normalize_feedback_payload("just a string")


def test_out_of_range_nps_is_validation_error():
    with pytest.raises(ValidationError, match="nps_score"):
        normalize_feedback_payload({"content": "meh", "nps_score": 11})


def test_empty_content_is_validation_error():
    with pytest.raises(ValidationError):
        normalize_feedback_payload({"content": "   ", "ticket_id": "T1", "channel": "email"})


def test_unknown_source_value_is_validation_error():
    with pytest.raises(ValidationError):
        normalize_feedback_payload({"source": "carrier-pigeon", "content": "hello"})
