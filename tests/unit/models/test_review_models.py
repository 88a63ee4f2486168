import pytest
from pydantic import ValidationError

from activepaper.models.concept import ConceptLink
from activepaper.models.review import MIN_EASE_FACTOR, ReviewCard, ReviewCardCreate, ReviewSchedule


def _make_card(**overrides) -> ReviewCard:
    fields = {
        "id": "card-1",
        "interaction_id": "interaction-1",
        "question": "What is entropy?",
        "answer": "A measure of disorder.",
        "next_review_at": 0,
        "interval_days": 1,
        "ease_factor": 2.5,
        "review_count": 0,
        "created_at": 0,
    }
    fields.update(overrides)
    return ReviewCard(**fields)


def test_review_card_rejects_ease_below_floor() -> None:
    with pytest.raises(ValidationError):
        _make_card(ease_factor=MIN_EASE_FACTOR - 0.01)


def test_review_card_accepts_ease_at_floor() -> None:
    assert _make_card(ease_factor=MIN_EASE_FACTOR).ease_factor == MIN_EASE_FACTOR


def test_review_schedule_requires_positive_interval() -> None:
    with pytest.raises(ValidationError):
        ReviewSchedule(interval_days=0, ease_factor=2.5, review_count=0)


def test_review_card_create_requires_question() -> None:
    with pytest.raises(ValidationError):
        ReviewCardCreate(interaction_id="interaction-1", question=" ", answer="a")


def test_concept_link_requires_ordered_endpoints() -> None:
    with pytest.raises(ValidationError):
        ConceptLink(source="b", target="a", weight=1)
    with pytest.raises(ValidationError):
        ConceptLink(source="a", target="a", weight=1)


def test_concept_link_requires_positive_weight() -> None:
    with pytest.raises(ValidationError):
        ConceptLink(source="a", target="b", weight=0)
