from datetime import datetime, timedelta

import pytest
from sqlmodel import Session, select

from conftest import NOW, choice, make_exam, matching, test_engine
from exam_engine.catalog import add_question, get_snapshot, list_available_exams, set_published, window_is_open
from exam_engine.errors import BadRequestError, NotFoundError
from exam_engine.models import Exam, Question
from exam_engine.questions import Matching, SingleChoice
from exam_engine.seed import DEMO_TITLE, seed_demo_exam


class TestWindow:
    def test_unbounded_window_is_always_open(self):
        assert window_is_open(None, None, NOW)

    def test_bounds(self):
        start, end = NOW - timedelta(hours=1), NOW + timedelta(hours=1)
        assert window_is_open(start, end, NOW)
        assert window_is_open(start, None, NOW)
        assert window_is_open(None, end, NOW)
        assert not window_is_open(NOW + timedelta(seconds=1), None, NOW)
        assert not window_is_open(None, NOW - timedelta(seconds=1), NOW)


def test_snapshot_orders_questions_and_sums_marks(session):
    exam_id = make_exam(
        session,
        [choice("Question number one", "A", marks=2), matching("Match these two", [("a", "1"), ("b", "2")], marks=3)],
    )
    snapshot = get_snapshot(session, exam_id)
    assert [type(q) for q in snapshot.questions] == [SingleChoice, Matching]
    assert [q.position for q in snapshot.questions] == [1, 2]
    assert snapshot.total_marks == 5


def test_snapshot_of_missing_exam_is_none(session):
    assert get_snapshot(session, 31337) is None


def test_add_question_appends_positions(session):
    exam_id = make_exam(session, [choice("Question number one", "A")], is_published=False)
    second = add_question(session, exam_id, **choice("Question number two", "B"))
    third = add_question(session, exam_id, **matching("Question number three", [("x", "1"), ("y", "2")]))
    assert (second.position, third.position) == (2, 3)


def test_add_question_to_missing_exam(session):
    with pytest.raises(NotFoundError):
        add_question(session, 999, **choice("Question number one", "A"))


def test_publishing_requires_questions(session):
    exam_id = make_exam(session, [], is_published=False)
    with pytest.raises(BadRequestError):
        set_published(session, exam_id, True)


def test_create_published_exam_without_questions_is_rejected(session):
    with pytest.raises(BadRequestError):
        make_exam(session, [], is_published=True)


def test_end_before_start_is_rejected(session):
    with pytest.raises(BadRequestError):
        make_exam(session, [choice("Question number one", "A")], start_at=NOW, end_at=NOW - timedelta(minutes=1))


def test_deleting_exam_cascades_to_questions(session):
    exam_id = make_exam(session, [choice("Question number one", "A")])
    session.delete(session.get(Exam, exam_id))
    session.commit()
    with Session(test_engine) as s:
        assert s.exec(select(Question).where(Question.exam_id == exam_id)).all() == []


def test_list_available_exams_flags_activity(session):
    make_exam(session, [choice("Question number one", "A")], title="Open Exam")
    make_exam(
        session,
        [choice("Question number one", "A")],
        title="Closed Exam",
        start_at=datetime(2020, 1, 1),
        end_at=datetime(2020, 1, 2),
    )
    listing = {e["title"]: e for e in list_available_exams(session, student_id=5, now=NOW)}
    assert listing["Open Exam"]["active"] is True
    assert listing["Closed Exam"]["active"] is False
    assert listing["Open Exam"]["attempt_status"] is None


def test_seed_demo_exam_is_idempotent(session):
    exam = seed_demo_exam(session)
    assert exam is not None and exam.title == DEMO_TITLE
    assert seed_demo_exam(session) is None
    snapshot = get_snapshot(session, exam.id)
    assert [q.question_type.value for q in snapshot.questions] == [
        "single_choice",
        "audio_single_choice",
        "matching",
    ]
