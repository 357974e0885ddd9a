"""
Retention cleanup of old unselected attempts
"""
from datetime import datetime

import pytest

from question_images.core.errors import ValidationError
from question_images.services.groups import DirectRef, LegacyRef
from question_images.services.retention import cleanup_old_attempts


async def _group(make_attempt, question_id, count, selected_number):
    for number in range(1, count + 1):
        await make_attempt(
            question_id=question_id,
            placement_type="question",
            attempt_number=number,
            is_selected=number == selected_number,
            generated_at=datetime(2025, 3, 1, 10, number),
        )


async def test_keeps_newest_attempts(db, make_question, make_attempt, load_attempts):
    question = await make_question()
    await _group(make_attempt, question.id, count=5, selected_number=5)

    deleted = await cleanup_old_attempts(db, DirectRef(question.id, "question"), keep_latest=2)

    assert deleted == 3
    assert [a.attempt_number for a in await load_attempts(question_id=question.id)] == [4, 5]


async def test_never_deletes_the_selected_attempt(db, make_question, make_attempt, load_attempts):
    question = await make_question()
    await _group(make_attempt, question.id, count=4, selected_number=1)

    deleted = await cleanup_old_attempts(db, DirectRef(question.id, "question"), keep_latest=0)

    assert deleted == 3
    (survivor,) = await load_attempts(question_id=question.id)
    assert survivor.attempt_number == 1
    assert survivor.is_selected


async def test_defaults_to_configured_limit(db, make_question, make_attempt, load_attempts):
    question = await make_question()
    await _group(make_attempt, question.id, count=5, selected_number=5)

    assert await cleanup_old_attempts(db, DirectRef(question.id, "question")) == 2
    assert len(await load_attempts(question_id=question.id)) == 3


async def test_other_placements_untouched(db, make_question, make_attempt, load_attempts):
    question = await make_question()
    await _group(make_attempt, question.id, count=3, selected_number=3)
    await make_attempt(question_id=question.id, placement_type="option_a")

    await cleanup_old_attempts(db, DirectRef(question.id, "question"), keep_latest=0)

    assert len(await load_attempts(question_id=question.id, placement_type="option_a")) == 1


async def test_legacy_group(db, make_prompt, make_attempt, load_attempts):
    prompt = await make_prompt(question_id=None)
    for number in (1, 2, 3):
        await make_attempt(prompt_id=prompt.id, attempt_number=number)

    assert await cleanup_old_attempts(db, LegacyRef(prompt.id), keep_latest=1) == 2
    assert [a.attempt_number for a in await load_attempts(prompt_id=prompt.id)] == [3]


async def test_negative_limit_rejected(db):
    with pytest.raises(ValidationError):
        await cleanup_old_attempts(db, DirectRef(1, "question"), keep_latest=-1)
