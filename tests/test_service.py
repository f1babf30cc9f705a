import asyncio
from unittest.mock import AsyncMock

import pytest

from diagnosis_bot.core.exceptions import InvalidInput, NoActiveSession, OutOfRange, TestNotFound
from diagnosis_bot.engine import (
    Cancelled,
    DiagnosisResult,
    DiagnosisService,
    QuestionView,
    ScoreRange,
    TestCatalog,
)

GLASGOW = "Шкала комы Глазго"
MILD = "Лёгкая степень нарушения сознания"
MODERATE = "Умеренная степень нарушения сознания"
SEVERE = "Тяжёлая степень нарушения сознания (кома)"


async def answer_all(service, chat_id, answers):
    reply = None
    for raw in answers:
        reply = await service.submit_answer(chat_id, raw)
    return reply


@pytest.mark.asyncio
async def test_start_returns_first_question(service, glasgow):
    view = await service.start_session(1, GLASGOW)

    assert view == QuestionView(
        number=1,
        total=3,
        text="Открывание глаз",
        answers=glasgow.questions[0].labels,
    )
    assert 1 in service.registry


@pytest.mark.asyncio
async def test_unknown_test_creates_no_session(service):
    with pytest.raises(TestNotFound):
        await service.start_session(1, "Шкала Апгар")
    assert 1 not in service.registry


@pytest.mark.asyncio
async def test_questions_are_numbered_in_order(service):
    await service.start_session(1, GLASGOW)
    second = await service.submit_answer(1, "1")
    third = await service.submit_answer(1, "1")

    assert (second.number, second.text) == (2, "Речевая реакция")
    assert (third.number, third.text) == (3, "Двигательная реакция")
    assert third.total == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("answers, total, diagnosis", [
    (["1", "1", "1"], 15, MILD),
    (["4", "5", "6"], 3, SEVERE),
    (["2", "2", "3"], 11, MODERATE),
    (["2", "1", "1"], 14, MILD),
    (["4", "5", "1"], 8, SEVERE),
])
async def test_glasgow_scenarios(service, answers, total, diagnosis):
    await service.start_session(1, GLASGOW)
    result = await answer_all(service, 1, answers)

    assert result == DiagnosisResult(test_name=GLASGOW, diagnosis=diagnosis, total_score=total)
    assert 1 not in service.registry


@pytest.mark.asyncio
async def test_answer_without_session(service):
    with pytest.raises(NoActiveSession):
        await service.submit_answer(1, "1")


@pytest.mark.asyncio
async def test_cancel_mid_test(service):
    await service.start_session(1, GLASGOW)
    await service.submit_answer(1, "1")

    assert await service.cancel_session(1) == Cancelled(test_name=GLASGOW)

    with pytest.raises(NoActiveSession):
        await service.submit_answer(1, "1")


@pytest.mark.asyncio
async def test_cancel_without_session(service):
    with pytest.raises(NoActiveSession):
        await service.cancel_session(1)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw, error", [("abc", InvalidInput), ("0", OutOfRange), ("5", OutOfRange)])
async def test_bad_answer_keeps_question(service, registry, raw, error):
    await service.start_session(1, GLASGOW)
    session = registry.get_or_none(1)

    with pytest.raises(error):
        await service.submit_answer(1, raw)

    assert session.cursor == 1
    assert session.answers == {}
    # Тот же вопрос можно повторить корректным ответом
    view = await service.submit_answer(1, "4")
    assert view.number == 2
    assert session.answers == {"eye": 1}


@pytest.mark.asyncio
async def test_restart_replaces_active_session(service, registry):
    await service.start_session(1, GLASGOW)
    await service.submit_answer(1, "1")
    await service.submit_answer(1, "1")

    view = await service.start_session(1, GLASGOW)

    assert view.number == 1
    assert registry.get_or_none(1).answers == {}
    result = await answer_all(service, 1, ["4", "5", "6"])
    assert result.total_score == 3


@pytest.mark.asyncio
async def test_duplicate_parameter_overwrites(make_question, make_test):
    test = make_test(
        [make_question("eye", [1, 2]), make_question("eye", [10, 20])],
        evaluation=[ScoreRange(10, 15, "low"), ScoreRange(16, 20, "high")],
    )
    service = DiagnosisService(TestCatalog([test]))

    await service.start_session(1, test.name)
    result = await answer_all(service, 1, ["2", "1"])

    # Первый ответ (2) перезаписан вторым (10), не сложен с ним
    assert result.total_score == 10
    assert result.diagnosis == "low"


@pytest.mark.asyncio
async def test_zero_question_test_finishes_on_start(make_test):
    test = make_test([], evaluation=[ScoreRange(0, 0, "nothing to assess")])
    service = DiagnosisService(TestCatalog([test]))

    result = await service.start_session(1, test.name)

    assert result == DiagnosisResult(test_name=test.name, diagnosis="nothing to assess", total_score=0)
    assert 1 not in service.registry


@pytest.mark.asyncio
async def test_deliver_receives_reply(service):
    deliver = AsyncMock()
    view = await service.start_session(1, GLASGOW, deliver=deliver)
    deliver.assert_awaited_once_with(view)


@pytest.mark.asyncio
async def test_failed_delivery_rolls_back_answer(service, registry):
    await service.start_session(1, GLASGOW)
    session = registry.get_or_none(1)

    with pytest.raises(RuntimeError):
        await service.submit_answer(1, "1", deliver=AsyncMock(side_effect=RuntimeError("send failed")))

    assert session.cursor == 1
    assert session.answers == {}
    view = await service.submit_answer(1, "1")
    assert view.number == 2


@pytest.mark.asyncio
async def test_failed_delivery_of_result_keeps_session(service, registry):
    await service.start_session(1, GLASGOW)
    await answer_all(service, 1, ["1", "1"])

    with pytest.raises(RuntimeError):
        await service.submit_answer(1, "1", deliver=AsyncMock(side_effect=RuntimeError("send failed")))

    session = registry.get_or_none(1)
    assert session is not None
    assert session.cursor == 3
    assert session.answers == {"eye": 4, "verbal": 5}
    result = await service.submit_answer(1, "1")
    assert result.total_score == 15


@pytest.mark.asyncio
async def test_failed_delivery_of_first_question_creates_nothing(service):
    with pytest.raises(RuntimeError):
        await service.start_session(1, GLASGOW, deliver=AsyncMock(side_effect=RuntimeError("send failed")))
    assert 1 not in service.registry


@pytest.mark.asyncio
async def test_failed_restart_keeps_previous_session(service, registry):
    await service.start_session(1, GLASGOW)
    await service.submit_answer(1, "2")
    previous = registry.get_or_none(1)

    with pytest.raises(RuntimeError):
        await service.start_session(1, GLASGOW, deliver=AsyncMock(side_effect=RuntimeError("send failed")))

    assert registry.get_or_none(1) is previous
    assert previous.cursor == 2
    assert previous.answers == {"eye": 3}


@pytest.mark.asyncio
async def test_failed_restart_keeps_idle_time(service, registry, clock):
    await service.start_session(1, GLASGOW)
    clock.advance(600)

    with pytest.raises(RuntimeError):
        await service.start_session(1, GLASGOW, deliver=AsyncMock(side_effect=RuntimeError("send failed")))

    assert registry.idle_for(1) == 600
    assert await registry.evict_idle(300) == [1]


@pytest.mark.asyncio
async def test_start_by_padded_catalog_name(make_question, make_test):
    test = make_test([make_question("x", [1])], name="Mini ")
    service = DiagnosisService(TestCatalog([test]))

    view = await service.start_session(1, test.name)

    assert view.number == 1
    assert 1 in service.registry


@pytest.mark.asyncio
async def test_failed_cancel_keeps_session(service):
    await service.start_session(1, GLASGOW)
    with pytest.raises(RuntimeError):
        await service.cancel_session(1, deliver=AsyncMock(side_effect=RuntimeError("send failed")))
    assert 1 in service.registry


@pytest.mark.asyncio
async def test_concurrent_conversations_do_not_mix(service):
    patterns = {
        chat_id: answers
        for chat_id, answers in enumerate([["1", "1", "1"], ["4", "5", "6"], ["2", "2", "3"]] * 10)
    }
    expected = {"1": 4, "2": 3, "3": 2, "4": 1}

    async def slow_deliver(reply):
        await asyncio.sleep(0)

    async def run(chat_id, answers):
        await service.start_session(chat_id, GLASGOW, deliver=slow_deliver)
        reply = None
        for raw in answers:
            reply = await service.submit_answer(chat_id, raw, deliver=slow_deliver)
        return chat_id, reply

    results = await asyncio.gather(*(run(c, a) for c, a in patterns.items()))

    for chat_id, result in results:
        eye, verbal, motor = patterns[chat_id]
        assert result.total_score == expected[eye] + (6 - int(verbal)) + (7 - int(motor))
    assert len(service.registry) == 0


@pytest.mark.asyncio
async def test_concurrent_answers_in_one_conversation_are_serialized(service, registry):
    await service.start_session(1, GLASGOW)
    session = registry.get_or_none(1)

    async def slow_deliver(reply):
        await asyncio.sleep(0.01)

    replies = await asyncio.gather(
        service.submit_answer(1, "1", deliver=slow_deliver),
        service.submit_answer(1, "1", deliver=slow_deliver),
    )

    assert sorted(r.number for r in replies) == [2, 3]
    assert session.cursor == 3
    assert session.answers == {"eye": 4, "verbal": 5}
