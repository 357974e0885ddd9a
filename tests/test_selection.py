"""
Selection coordinator: numbering, single selected attempt per placement, fallback reads
"""
from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from question_images.core.errors import NotFoundError
from question_images.models import GenerationRequest
from question_images.services import selection
from question_images.services.groups import DirectRef, LegacyRef


async def _record(db, ref, user_id=None, url="https://cdn.example.com/a.png"):
    return await selection.record_new_attempt(
        db,
        ref,
        image_url=url,
        prompt_used="A labelled leaf diagram",
        alt_text="Leaf diagram",
        user_id=user_id,
    )


def _selected(attempts):
    return [a for a in attempts if a.is_selected]


class TestRecordNewAttempt:
    async def test_first_attempt_is_number_one_and_selected(self, db, make_question, load_attempts):
        await make_question(question_id=42)

        attempt = await _record(db, DirectRef(42, "question"))

        assert attempt.attempt_number == 1
        assert attempt.is_selected is True
        stored = await load_attempts(question_id=42)
        assert [(a.attempt_number, a.is_selected) for a in stored] == [(1, True)]

    async def test_second_attempt_takes_over_selection(self, db, make_question, load_attempts):
        await make_question(question_id=42)

        first = await _record(db, DirectRef(42, "question"))
        second = await _record(db, DirectRef(42, "question"))

        assert second.attempt_number == 2
        stored = {a.id: a for a in await load_attempts(question_id=42)}
        assert stored[first.id].is_selected is False
        assert stored[second.id].is_selected is True

    async def test_attempt_numbers_are_gapless(self, db, make_question, load_attempts):
        question = await make_question()
        for _ in range(5):
            await _record(db, DirectRef(question.id, "option_a"))

        stored = await load_attempts(question_id=question.id)
        assert sorted(a.attempt_number for a in stored) == [1, 2, 3, 4, 5]
        assert len(_selected(stored)) == 1
        assert _selected(stored)[0].attempt_number == 5

    async def test_placements_are_numbered_independently(self, db, make_question, load_attempts):
        question = await make_question()
        await _record(db, DirectRef(question.id, "question"))
        await _record(db, DirectRef(question.id, "question"))
        option = await _record(db, DirectRef(question.id, "option_b"))

        assert option.attempt_number == 1
        stored = await load_attempts(question_id=question.id)
        assert len(_selected(stored)) == 2

    async def test_legacy_ref_stamps_direct_fields_and_marks_prompt(self, db, make_question, make_prompt, session_factory):
        question = await make_question()
        prompt = await make_prompt(question_id=question.id, placement="explanation")

        attempt = await _record(db, LegacyRef(prompt.id))

        assert attempt.prompt_id == prompt.id
        assert attempt.question_id == question.id
        assert attempt.placement_type == "explanation"
        async with session_factory() as session:
            stored = await session.get(GenerationRequest, prompt.id)
            assert stored.is_generated is True

    async def test_prompt_without_question_groups_by_prompt(self, db, make_prompt, load_attempts):
        prompt = await make_prompt(question_id=None)

        await _record(db, LegacyRef(prompt.id))
        second = await _record(db, LegacyRef(prompt.id))

        stored = await load_attempts(prompt_id=prompt.id)
        assert second.attempt_number == 2
        assert second.question_id is None
        assert [a.id for a in _selected(stored)] == [second.id]

    async def test_direct_record_deselects_unmigrated_legacy_rows(self, db, make_question, make_prompt, make_attempt, load_attempts):
        question = await make_question()
        prompt = await make_prompt(question_id=question.id, placement="question")
        legacy = await make_attempt(prompt_id=prompt.id, is_selected=True, attempt_number=1)

        attempt = await _record(db, DirectRef(question.id, "question"))

        assert attempt.attempt_number == 2
        stored = {a.id: a for a in await load_attempts()}
        assert stored[legacy.id].is_selected is False
        assert stored[attempt.id].is_selected is True

    async def test_unknown_question_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            await _record(db, DirectRef(999, "question"))

    async def test_unknown_prompt_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            await _record(db, LegacyRef("no-such-prompt"))


class TestSelectAttempt:
    async def test_select_switches_selection(self, db, make_user, make_question, load_attempts):
        user = await make_user()
        question = await make_question(user_id=user.id)
        first = await _record(db, DirectRef(question.id, "question"), user_id=user.id)
        await _record(db, DirectRef(question.id, "question"), user_id=user.id)

        await selection.select_attempt(db, DirectRef(question.id, "question"), first.id, user_id=user.id)

        stored = await load_attempts(question_id=question.id)
        assert [a.id for a in _selected(stored)] == [first.id]

    async def test_select_through_legacy_ref(self, db, make_user, make_question, make_prompt, make_attempt, load_attempts):
        user = await make_user()
        question = await make_question(user_id=user.id)
        prompt = await make_prompt(question_id=question.id)
        old = await make_attempt(prompt_id=prompt.id, attempt_number=1, user_id=user.id)
        new = await make_attempt(prompt_id=prompt.id, attempt_number=2, is_selected=True, user_id=user.id)

        await selection.select_attempt(db, LegacyRef(prompt.id), old.id, user_id=user.id)

        stored = {a.id: a for a in await load_attempts(prompt_id=prompt.id)}
        assert stored[old.id].is_selected is True
        assert stored[new.id].is_selected is False

    async def test_attempt_from_other_placement_is_not_found(self, db, make_user, make_question):
        user = await make_user()
        question = await make_question(user_id=user.id)
        other = await _record(db, DirectRef(question.id, "option_a"), user_id=user.id)

        with pytest.raises(NotFoundError):
            await selection.select_attempt(db, DirectRef(question.id, "question"), other.id, user_id=user.id)

    async def test_attempt_of_other_user_is_not_found(self, db, make_user, make_question):
        owner = await make_user("owner@example.com")
        intruder = await make_user("intruder@example.com")
        question = await make_question(user_id=owner.id)
        attempt = await _record(db, DirectRef(question.id, "question"), user_id=owner.id)

        with pytest.raises(NotFoundError):
            await selection.select_attempt(db, DirectRef(question.id, "question"), attempt.id, user_id=intruder.id)


class TestDeselectAndRead:
    async def test_deselect_group_clears_every_attempt(self, db, make_question, load_attempts):
        question = await make_question()
        await _record(db, DirectRef(question.id, "question"))
        await _record(db, DirectRef(question.id, "question"))

        await selection.deselect_group(db, DirectRef(question.id, "question"))

        assert _selected(await load_attempts(question_id=question.id)) == []

    async def test_get_selected_prefers_flagged_attempt(self, db, make_question, make_attempt):
        question = await make_question()
        flagged = await make_attempt(
            question_id=question.id, placement_type="question", is_selected=True,
            generated_at=datetime(2025, 3, 1, 9, 0), attempt_number=1,
        )
        await make_attempt(
            question_id=question.id, placement_type="question",
            generated_at=datetime(2025, 3, 1, 11, 0), attempt_number=2,
        )

        attempt = await selection.get_selected(db, DirectRef(question.id, "question"))

        assert attempt.id == flagged.id

    async def test_get_selected_falls_back_to_latest(self, db, make_question, make_attempt):
        question = await make_question()
        times = [datetime(2025, 3, 1, 10, 0), datetime(2025, 3, 1, 10, 5), datetime(2025, 3, 1, 9, 50)]
        attempts = [
            await make_attempt(question_id=question.id, placement_type="question", generated_at=t, attempt_number=n)
            for n, t in enumerate(times, start=1)
        ]

        attempt = await selection.get_selected(db, DirectRef(question.id, "question"))

        assert attempt.id == attempts[1].id

    async def test_get_selected_empty_group(self, db, make_question):
        question = await make_question()
        assert await selection.get_selected(db, DirectRef(question.id, "question")) is None

    async def test_selected_for_question_covers_each_placement(self, db, make_question, make_prompt, make_attempt):
        question = await make_question()
        stem = await _record(db, DirectRef(question.id, "question"))
        prompt = await make_prompt(question_id=question.id, placement="option_c")
        legacy = await make_attempt(prompt_id=prompt.id)

        attempts = await selection.get_selected_for_question(db, question.id)

        assert [a.id for a in attempts] == [legacy.id, stem.id]


class TestInvariant:
    async def test_at_most_one_selected_after_any_sequence(self, db, make_user, make_question, load_attempts):
        user = await make_user()
        question = await make_question(user_id=user.id)
        ref = DirectRef(question.id, "question")
        recorded = []

        for step in range(8):
            if step % 3 == 2:
                await selection.select_attempt(db, ref, recorded[0].id, user_id=user.id)
            elif step == 6:
                await selection.deselect_group(db, ref)
            else:
                recorded.append(await _record(db, ref, user_id=user.id))
            assert len(_selected(await load_attempts(question_id=question.id))) <= 1

    async def test_store_rejects_two_selected_rows(self, db, make_question, make_attempt, load_attempts):
        question_id = (await make_question()).id
        await make_attempt(question_id=question_id, placement_type="question", is_selected=True)

        with pytest.raises(IntegrityError):
            await make_attempt(question_id=question_id, placement_type="question", is_selected=True, attempt_number=2)
        await db.rollback()

        stored = await load_attempts(question_id=question_id)
        assert [(a.attempt_number, a.is_selected) for a in stored] == [(1, True)]
