"""
Ratings and rating statistics
"""
from types import SimpleNamespace

import pytest

from question_images.core.errors import NotFoundError, ValidationError
from question_images.services.ratings import compute_statistics, rate_attempt, validate_rating


def _attempt(rating=None, feedback=None):
    return SimpleNamespace(user_rating=rating, accuracy_feedback=feedback)


class TestComputeStatistics:
    def test_empty(self):
        stats = compute_statistics([])
        assert stats.total_images == 0
        assert stats.average_rating == 0.0
        assert stats.rating_distribution == {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0, "unrated": 0}

    def test_distributions_and_average(self):
        stats = compute_statistics(
            [
                _attempt(5, "correct"),
                _attempt(3, "partially_correct"),
                _attempt(4, "correct"),
                _attempt(),
            ]
        )
        assert stats.total_images == 4
        assert stats.average_rating == 4.0
        assert stats.rating_distribution["unrated"] == 1
        assert stats.rating_distribution["5"] == 1
        assert stats.accuracy_distribution == {
            "correct": 2,
            "partially_correct": 1,
            "incorrect": 0,
            "unrated": 1,
        }


@pytest.mark.parametrize("rating, feedback", [(None, None), (0, None), (6, None), (3, "wrong")])
def test_validate_rating_rejects(rating, feedback):
    with pytest.raises(ValidationError):
        validate_rating(rating, feedback)


async def test_rate_attempt_stores_values(db, make_user, make_attempt, load_attempts):
    user = await make_user()
    attempt = await make_attempt(question_id=1, placement_type="question", user_id=user.id)

    await rate_attempt(db, attempt.id, rating=2, accuracy_feedback="incorrect", user_id=user.id)

    (stored,) = await load_attempts()
    assert (stored.user_rating, stored.accuracy_feedback) == (2, "incorrect")


async def test_rate_attempt_of_another_user(db, make_user, make_attempt):
    owner = await make_user("owner@example.com")
    other = await make_user("other@example.com")
    attempt = await make_attempt(question_id=1, placement_type="question", user_id=owner.id)

    with pytest.raises(NotFoundError):
        await rate_attempt(db, attempt.id, rating=5, accuracy_feedback=None, user_id=other.id)
