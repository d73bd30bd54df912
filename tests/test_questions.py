"""Question variants, the student-facing view and authoring validation."""

import pytest

from exam_engine.errors import BadRequestError
from exam_engine.models import Question
from exam_engine.questions import (
    AudioSingleChoice,
    Matching,
    SingleChoice,
    build_question_row,
    from_row,
    public_view,
    right_display_order,
)


def _row(**overrides):
    data = dict(
        id=11,
        exam_id=1,
        prompt="Which one?",
        question_type="single_choice",
        option_a="w",
        option_b="x",
        option_c="y",
        option_d="z",
        correct_option="C",
        marks=2,
        position=1,
    )
    data.update(overrides)
    return Question(**data)


class TestFromRow:
    def test_single_choice(self):
        q = from_row(_row())
        assert isinstance(q, SingleChoice)
        assert q.options == ("w", "x", "y", "z")
        assert q.correct_option == "C"

    def test_audio_single_choice_carries_audio_url(self):
        q = from_row(_row(question_type="audio_single_choice", audio_url="https://cdn.example.com/q.mp3"))
        assert isinstance(q, AudioSingleChoice)
        assert q.audio_url == "https://cdn.example.com/q.mp3"

    def test_matching_ignores_choice_fields(self):
        q = from_row(
            _row(
                question_type="matching",
                match_pairs=[{"left": "a", "right": "1"}, {"left": "b", "right": "2"}],
            )
        )
        assert isinstance(q, Matching)
        assert q.pairs == (("a", "1"), ("b", "2"))
        assert not hasattr(q, "correct_option")

    def test_unreadable_stored_pairs_give_an_empty_key(self):
        q = from_row(_row(question_type="matching", match_pairs="not json list"))
        assert q.pairs == ()


class TestPublicView:
    def test_choice_view_hides_correct_option(self):
        view = public_view(from_row(_row()))
        assert view["options"] == {"A": "w", "B": "x", "C": "y", "D": "z"}
        assert "correct_option" not in view
        assert view["question_type"] == "single_choice"

    def test_audio_view_includes_url(self):
        view = public_view(from_row(_row(question_type="audio_single_choice", audio_url="https://e.com/a.mp3")))
        assert view["audio_url"] == "https://e.com/a.mp3"

    def test_matching_view_does_not_reveal_pairing(self):
        q = Matching(
            question_id=5,
            prompt="Match",
            pairs=(("Cat", "Meow"), ("Dog", "Bark"), ("Cow", "Moo")),
            marks=3,
            position=1,
        )
        view = public_view(q)
        assert view["left_items"] == ["Cat", "Dog", "Cow"]
        # plain texts sorted alphabetically, nothing tying them to a left item
        assert view["right_items"] == ["Bark", "Meow", "Moo"]
        assert "pairs" not in view

    def test_right_column_order_ignores_authoring_order(self):
        pairs = (("Cat", "Meow"), ("Dog", "Bark"), ("Cow", "Moo"))
        shuffled = (("Cow", "Moo"), ("Cat", "Meow"), ("Dog", "Bark"))
        first = Matching(question_id=5, prompt="Match", pairs=pairs, marks=3, position=1)
        second = Matching(question_id=6, prompt="Match", pairs=shuffled, marks=3, position=1)

        assert public_view(first)["right_items"] == public_view(second)["right_items"]
        assert right_display_order(first) == (1, 0, 2)
        assert right_display_order(second) == (2, 1, 0)


class TestBuildQuestionRow:
    def test_valid_choice_question(self):
        row = build_question_row(
            exam_id=1,
            position=3,
            prompt="  What is <b>two</b> plus <span>two</span>? ",
            options=["3", "4", "5", "6"],
            correct_option="b",
            marks=2,
        )
        assert row.prompt == "What is <b>two</b> plus two?"
        assert row.correct_option == "B"
        assert row.match_pairs is None
        assert row.position == 3

    def test_matching_question_leaves_choice_fields_empty(self):
        row = build_question_row(
            exam_id=1,
            position=1,
            prompt="Match the pairs",
            question_type="matching",
            match_pairs=[{"left": "a", "right": "1"}, {"left": "b", "right": "2"}],
        )
        assert row.match_pairs == [{"left": "a", "right": "1"}, {"left": "b", "right": "2"}]
        assert row.correct_option is None
        assert row.option_a == ""

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            (dict(prompt="Hi", options=["a", "b", "c", "d"], correct_option="A"), "prompt"),
            (dict(prompt="Valid prompt", options=["a", "b", "c"], correct_option="A"), "options"),
            (dict(prompt="Valid prompt", options=["a", "b", "c", " "], correct_option="A"), "options"),
            (dict(prompt="Valid prompt", options=["a", "b", "c", "d"], correct_option="E"), "correct_option"),
            (dict(prompt="Valid prompt", options=["a", "b", "c", "d"], correct_option="A", marks=0), "marks"),
            (dict(prompt="Valid prompt", options=["a", "b", "c", "d"], correct_option="A", marks=101), "marks"),
            (
                dict(
                    prompt="Valid prompt",
                    question_type="audio_single_choice",
                    options=["a", "b", "c", "d"],
                    correct_option="A",
                    audio_url="ftp://example.com/x.mp3",
                ),
                "audio_url",
            ),
            (
                dict(prompt="Valid prompt", question_type="matching", match_pairs=[{"left": "a", "right": "1"}]),
                "match_pairs",
            ),
            (
                dict(
                    prompt="Valid prompt",
                    question_type="matching",
                    match_pairs=[{"left": "a", "right": ""}, {"left": "b", "right": "2"}],
                ),
                "match_pairs",
            ),
            (
                dict(
                    prompt="Valid prompt",
                    question_type="matching",
                    match_pairs=[{"left": "a", "right": "Same"}, {"left": "b", "right": "same"}],
                ),
                "match_pairs",
            ),
        ],
    )
    def test_invalid_input_is_rejected(self, kwargs, field):
        with pytest.raises(BadRequestError) as exc_info:
            build_question_row(exam_id=1, position=1, **kwargs)
        assert field in exc_info.value.detail

    def test_unknown_type_is_rejected(self):
        with pytest.raises(BadRequestError):
            build_question_row(exam_id=1, position=1, prompt="Valid prompt", question_type="essay")
