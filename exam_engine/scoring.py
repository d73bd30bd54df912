"""Grading of a single question against a submitted answer.

Everything here is pure. A missing or malformed answer is graded as
incorrect; grading never raises for bad input shape.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from exam_engine.questions import (
    OPTION_LETTERS,
    AudioSingleChoice,
    Matching,
    QuestionVariant,
    SingleChoice,
    right_display_order,
)


@dataclass(frozen=True)
class GradedAnswer:
    question_id: int
    is_correct: bool
    marks_awarded: int
    selected_option: Optional[str] = None
    matching_pairs: Optional[list] = None


def normalize_option(value: Any) -> Optional[str]:
    """Return the upper-cased option letter, or None if ``value`` is not one."""
    # lenient on case and surrounding whitespace, strict on the letter itself
    if not isinstance(value, str):
        return None
    letter = value.strip().upper()
    return letter if letter in OPTION_LETTERS else None


def _as_index(value: Any) -> Optional[int]:
    # bool is an int subclass; True must not read as index 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def normalize_pairs(raw: Any) -> Optional[list[tuple[int, int]]]:
    """Parse submitted matching pairs into ``(left, right)`` index tuples.

    Accepts ``{"left_index": i, "right_index": j}`` mappings or two-item
    lists/tuples. Returns None if any element is malformed.
    """
    if not isinstance(raw, (list, tuple)):
        return None
    pairs = []
    for item in raw:
        if isinstance(item, Mapping):
            left, right = item.get("left_index"), item.get("right_index")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            left, right = item
        else:
            return None
        left, right = _as_index(left), _as_index(right)
        if left is None or right is None:
            return None
        pairs.append((left, right))
    return pairs


def matching_is_correct(expected_count: int, pairs: Optional[list[tuple[int, int]]]) -> bool:
    """All-or-nothing check of a submitted mapping against the identity key."""
    if pairs is None or expected_count == 0 or len(pairs) != expected_count:
        return False
    lefts = [left for left, _ in pairs]
    rights = [right for _, right in pairs]
    if len(set(lefts)) != expected_count or len(set(rights)) != expected_count:
        return False
    mapping = dict(pairs)
    return all(mapping.get(i) == i for i in range(expected_count))


def to_authoring_pairs(
    question: Matching, pairs: Optional[list[tuple[int, int]]]
) -> Optional[list[tuple[int, int]]]:
    """Map right positions in the displayed column back to authoring indices.

    Returns None if any right position is outside the displayed column.
    """
    if pairs is None:
        return None
    order = right_display_order(question)
    if any(right >= len(order) for _, right in pairs):
        return None
    return [(left, order[right]) for left, right in pairs]


def grade(question: QuestionVariant, answer: Optional[Mapping[str, Any]]) -> GradedAnswer:
    """Grade one question. ``answer`` is the submitted entry for it, or None.

    Matching answers pair a left index with a position in the displayed
    right column, as returned by ``public_view``.
    """
    answer = answer if isinstance(answer, Mapping) else {}

    if isinstance(question, Matching):
        pairs = normalize_pairs(answer.get("matching_pairs"))
        correct = matching_is_correct(len(question.pairs), to_authoring_pairs(question, pairs))
        return GradedAnswer(
            question_id=question.question_id,
            is_correct=correct,
            marks_awarded=question.marks if correct else 0,
            matching_pairs=[list(p) for p in pairs] if pairs is not None else None,
        )

    if isinstance(question, (SingleChoice, AudioSingleChoice)):
        selected = normalize_option(answer.get("selected_option"))
        correct = selected is not None and selected == question.correct_option
        return GradedAnswer(
            question_id=question.question_id,
            is_correct=correct,
            marks_awarded=question.marks if correct else 0,
            selected_option=selected,
        )

    raise TypeError(f"Unsupported question variant: {type(question).__name__}")


def grade_all(
    questions: list[QuestionVariant], answers: Mapping[int, Mapping[str, Any]]
) -> list[GradedAnswer]:
    """Grade every question; answers for unknown question ids are ignored."""
    return [grade(q, answers.get(q.question_id)) for q in questions]
