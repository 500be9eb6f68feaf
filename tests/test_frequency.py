from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.services.frequency import extract_keywords, get_similar_feedback, get_similar_feedback_count


def test_extract_keywords_keeps_first_three_long_words():
    assert extract_keywords("The checkout button never works after update today") == [
        "checkout", "button", "never",
    ]


def test_no_long_words_returns_one(repository, add_feedback):
    add_feedback("app is bad")

    assert get_similar_feedback_count(repository, "app is bad, fix it") == 1


def test_counts_max_across_keywords_plus_one(repository, add_feedback):
    add_feedback("Checkout fails every time")
    add_feedback("The checkout page is blank")
    add_feedback("Export fails randomly")

    # checkout -> 2, fails -> 2, every -> 1 : max(2) + 1
    assert get_similar_feedback_count(repository, "checkout fails every morning") == 3


def test_ignores_feedback_outside_window(repository, add_feedback):
    add_feedback("Checkout broken", days_ago=45)
    add_feedback("Checkout broken again", days_ago=2)

    assert get_similar_feedback_count(repository, "checkout is broken") == 2


def test_filters_by_category(repository, categories, add_feedback):
    bug, feature = categories[0], categories[1]
    add_feedback("Checkout crashes", category_id=bug.id)
    add_feedback("Checkout should support coupons", category_id=feature.id)

    assert get_similar_feedback_count(repository, "checkout crashes", category_id=bug.id) == 2
    assert get_similar_feedback_count(repository, "checkout crashes") == 3


def test_store_failure_degrades_to_one():
    repo = MagicMock()
    repo.count_feedback_containing.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    assert get_similar_feedback_count(repo, "checkout crashes constantly") == 1


def test_similar_feedback_excludes_self(repository, add_feedback):
    me = add_feedback("Export to excel is broken")
    other = add_feedback("Export button missing")
    add_feedback("Nothing related here")

    result = get_similar_feedback(repository, me.content, exclude_id=me.id)

    assert [f.id for f in result] == [other.id]
