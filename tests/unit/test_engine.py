import pytest

from config.settings import Settings
from interview_session import (
    InvalidInput,
    InvalidState,
    NotFound,
    SessionStatus,
    parse_decision,
    submit_turn,
)
from interview_session.prompts import FREEFORM_FALLBACK, GENERIC_FOLLOW_UP

LONG_ANSWER = "I built a caching layer in front of our API using Redis."
OTHER_LONG_ANSWER = "We sharded the database by tenant to scale writes."


def _turn(store, model, session_id, answer, **kwargs):
    return submit_turn(session_id, answer, store=store, complete=model, **kwargs)


def test_proceed_walks_questions_then_finishes(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    model.script("decision", '{"action": "proceed"}', '```json\n{"action": "proceed"}\n```')

    first = _turn(store, model, session.id, LONG_ANSWER)
    assert first.next_question == "Q2"
    assert first.done is False
    assert store.get(session.id).cursor == 1

    second = _turn(store, model, session.id, OTHER_LONG_ANSWER)
    assert second.next_question is None
    assert second.done is True
    stored = store.get(session.id)
    assert stored.status is SessionStatus.QUESTIONS_COMPLETED
    assert stored.cursor == 1
    assert [entry.role for entry in stored.context] == ["system", "assistant", "user", "assistant", "user"]

    with pytest.raises(InvalidState):
        _turn(store, model, session.id, LONG_ANSWER)


def test_skip_advances_without_model(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    result = _turn(store, model, session.id, "__skip__")
    assert result.next_question == "Q2"
    assert model.calls == []


def test_skip_on_last_question_finishes(store, model, seed_session):
    session = seed_session(["Q1", "Q2"], cursor=1)
    result = _turn(store, model, session.id, "__skip__")
    assert result.done is True
    stored = store.get(session.id)
    assert stored.cursor == 1
    assert stored.status is SessionStatus.QUESTIONS_COMPLETED


def test_start_reemits_current_question_without_changes(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    result = _turn(store, model, session.id, "__start__")
    assert result.next_question == "Q1"
    assert result.done is False
    assert store.get(session.id) == session
    assert model.calls == []


@pytest.mark.parametrize("status", [SessionStatus.QUESTIONS_COMPLETED, SessionStatus.COMPLETED])
def test_frozen_session_rejects_turns(store, model, seed_session, status):
    session = seed_session(["Q1", "Q2"], status=status)
    with pytest.raises(InvalidState):
        _turn(store, model, session.id, LONG_ANSWER)
    assert store.get(session.id) == session


def test_clarification_keeps_cursor(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    model.script("clarify", "I am asking how you would design a cache.")
    result = _turn(store, model, session.id, "Could you repeat the question")
    assert result.follow_up == "I am asking how you would design a cache."
    assert result.next_question is None
    stored = store.get(session.id)
    assert stored.cursor == 0
    assert stored.context[-1].content == result.follow_up
    assert model.purposes() == ["clarify"]


def test_clarification_fallback_restates_question(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    result = _turn(store, model, session.id, "what do you mean?")
    assert result.follow_up == "Q1"
    assert store.get(session.id).cursor == 0


def test_failed_decision_proceeds_on_long_answer(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    result = _turn(store, model, session.id, LONG_ANSWER)
    assert result.next_question == "Q2"


def test_failed_decision_probes_short_answer(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    model.script("decision", "Let us move along.")
    result = _turn(store, model, session.id, "Yes, I did.")
    assert result.follow_up == GENERIC_FOLLOW_UP
    assert store.get(session.id).cursor == 0


def test_ask_uses_model_follow_up(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    model.script("decision", 'Sure. {"action": "ask", "text": "Which metrics did you track?"}')
    result = _turn(store, model, session.id, LONG_ANSWER)
    assert result.follow_up == "Which metrics did you track?"
    assert store.get(session.id).cursor == 0


def test_end_action_finishes_early(store, model, seed_session):
    session = seed_session(["Q1", "Q2", "Q3"])
    model.script("decision", '{"action": "end"}')
    result = _turn(store, model, session.id, LONG_ANSWER)
    assert result.done is True
    stored = store.get(session.id)
    assert stored.status is SessionStatus.QUESTIONS_COMPLETED
    assert stored.cursor == 0


def test_unknown_action_means_proceed(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    model.script("decision", '{"action": "pause"}')
    assert _turn(store, model, session.id, LONG_ANSWER).next_question == "Q2"


def test_decision_prompt_is_windowed(store, model, seed_session):
    session = seed_session(["Q1", "Q2"])
    model.script("decision", '{"action": "proceed"}')
    _turn(store, model, session.id, LONG_ANSWER, settings=Settings(_env_file=None, DECISION_WINDOW=2))
    _, messages = model.calls[0]
    assert len(messages) == 4
    assert messages[0]["role"] == "system"
    assert messages[2] == {"role": "user", "content": LONG_ANSWER}


def test_freeform_session_chats_until_conclusion(store, model, seed_session):
    session = seed_session([])
    model.script("decision", '{"action": "proceed"}', '{"action": "proceed"}')
    model.script("freeform", "Tell me about your last project.", "Thanks, that concludes our interview.")

    first = _turn(store, model, session.id, LONG_ANSWER)
    assert first.next_question == "Tell me about your last project."
    assert first.done is False

    second = _turn(store, model, session.id, OTHER_LONG_ANSWER)
    assert second.done is True
    assert store.get(session.id).status is SessionStatus.QUESTIONS_COMPLETED


def test_freeform_model_failure_uses_fallback(store, model, seed_session):
    session = seed_session([])
    model.script("decision", '{"action": "proceed"}')
    result = _turn(store, model, session.id, LONG_ANSWER)
    assert result.next_question == FREEFORM_FALLBACK
    assert result.done is False


def test_structural_errors(store, model, seed_session):
    session = seed_session(["Q1"])
    with pytest.raises(InvalidInput):
        _turn(store, model, session.id, {"text": "hi"})
    with pytest.raises(InvalidInput):
        _turn(store, model, "bad id!", LONG_ANSWER)
    with pytest.raises(NotFound):
        _turn(store, model, "missing", LONG_ANSWER)
    assert store.get(session.id) == session


def test_parse_decision_variants():
    assert parse_decision('{"action": "ASK", "text": " Why? "}').text == "Why?"
    assert parse_decision('{"action": "ask", "text": "Why did you').text == "Why did you"
    assert parse_decision('{"action": 3}') is None
    assert parse_decision("proceed please") is None
    assert parse_decision("") is None


def test_concurrent_turns_are_serialized(tmp_db, model):
    from concurrent.futures import ThreadPoolExecutor

    from interview_session import ContextEntry, InterviewSession, RoleMeta, SqliteSessionStore

    sqlite_store = SqliteSessionStore()
    sqlite_store.create(
        InterviewSession(
            id="busy",
            owner_id="user-1",
            role_meta=RoleMeta(company="Acme", position="SRE"),
            questions=["Q1", "Q2", "Q3", "Q4"],
            context=[
                ContextEntry(role="system", content="You are an interviewer."),
                ContextEntry(role="assistant", content="Q1"),
            ],
        )
    )

    def _skip(_):
        return submit_turn("busy", "__skip__", store=sqlite_store, complete=model)

    with ThreadPoolExecutor(max_workers=3) as pool:
        results = list(pool.map(_skip, range(3)))

    assert sorted(result.next_question for result in results) == ["Q2", "Q3", "Q4"]
    stored = sqlite_store.get("busy")
    assert stored.cursor == 3
    assert [entry.content for entry in stored.context].count("__skip__") == 3
