"""Typed question variants built from stored ``Question`` rows.

Each variant carries only the answer key its type needs, so grading can
dispatch on the variant class instead of a string tag with unused fields.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence, Union
from urllib.parse import urlparse

from exam_engine.errors import BadRequestError
from exam_engine.models import Question, QuestionType
from exam_engine.utils import sanitize_plain, sanitize_prompt, validate_marks

OPTION_LETTERS = ("A", "B", "C", "D")
PROMPT_MIN_LENGTH = 5
MIN_MATCH_PAIRS = 2


@dataclass(frozen=True)
class SingleChoice:
    question_id: int
    prompt: str
    options: tuple[str, str, str, str]
    correct_option: str
    marks: int
    position: int

    question_type = QuestionType.SINGLE_CHOICE


@dataclass(frozen=True)
class AudioSingleChoice:
    question_id: int
    prompt: str
    options: tuple[str, str, str, str]
    correct_option: str
    audio_url: str
    marks: int
    position: int

    question_type = QuestionType.AUDIO_SINGLE_CHOICE


@dataclass(frozen=True)
class Matching:
    question_id: int
    prompt: str
    # pair i is (left_i, right_i); the identity index mapping is the key
    pairs: tuple[tuple[str, str], ...]
    marks: int
    position: int

    question_type = QuestionType.MATCHING


QuestionVariant = Union[SingleChoice, AudioSingleChoice, Matching]


def _stored_pairs(raw: Any) -> tuple[tuple[str, str], ...]:
    if not isinstance(raw, list):
        return ()
    pairs = []
    for item in raw:
        if isinstance(item, dict):
            pairs.append((str(item.get("left", "")), str(item.get("right", ""))))
    return tuple(pairs)


def from_row(row: Question) -> QuestionVariant:
    """Build the typed variant for a stored question row."""
    qtype = QuestionType(row.question_type)
    if qtype is QuestionType.MATCHING:
        return Matching(
            question_id=row.id,
            prompt=row.prompt,
            pairs=_stored_pairs(row.match_pairs),
            marks=row.marks,
            position=row.position,
        )

    options = (row.option_a, row.option_b, row.option_c, row.option_d)
    if qtype is QuestionType.AUDIO_SINGLE_CHOICE:
        return AudioSingleChoice(
            question_id=row.id,
            prompt=row.prompt,
            options=options,
            correct_option=row.correct_option,
            audio_url=row.audio_url,
            marks=row.marks,
            position=row.position,
        )
    return SingleChoice(
        question_id=row.id,
        prompt=row.prompt,
        options=options,
        correct_option=row.correct_option,
        marks=row.marks,
        position=row.position,
    )


def right_display_order(question: Matching) -> tuple[int, ...]:
    """Authoring indices of the right items, in the order students see them.

    The order is by text, so it does not depend on how the key was authored.
    Grading maps a submitted right position back through the same order.
    """
    return tuple(
        sorted(range(len(question.pairs)), key=lambda i: (question.pairs[i][1].lower(), i))
    )


def public_view(question: QuestionVariant) -> dict[str, Any]:
    """Student-facing representation with the answer key removed."""
    view: dict[str, Any] = {
        "question_id": question.question_id,
        "question_type": question.question_type.value,
        "prompt": question.prompt,
        "marks": question.marks,
        "position": question.position,
    }
    if isinstance(question, Matching):
        view["left_items"] = [left for left, _ in question.pairs]
        # students answer with positions in this list, never authoring indices
        view["right_items"] = [question.pairs[i][1] for i in right_display_order(question)]
        return view

    view["options"] = dict(zip(OPTION_LETTERS, question.options))
    if isinstance(question, AudioSingleChoice):
        view["audio_url"] = question.audio_url
    return view


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_question_row(
    exam_id: int,
    position: int,
    prompt: str,
    question_type: str = QuestionType.SINGLE_CHOICE.value,
    options: Optional[Sequence[str]] = None,
    correct_option: Optional[str] = None,
    audio_url: Optional[str] = None,
    match_pairs: Optional[Sequence[dict]] = None,
    marks: int = 1,
) -> Question:
    """Validate authoring input and build an unsaved ``Question`` row.

    Fields that do not belong to the chosen type are left empty.

    Raises:
        BadRequestError: describing every problem found
    """
    errors: dict[str, str] = {}

    try:
        qtype = QuestionType(question_type)
    except ValueError:
        raise BadRequestError(
            "question_type must be one of: " + ", ".join(t.value for t in QuestionType)
        ) from None

    prompt_clean = sanitize_prompt(prompt)
    if len(prompt_clean) < PROMPT_MIN_LENGTH:
        errors["prompt"] = f"Prompt must be at least {PROMPT_MIN_LENGTH} characters."

    try:
        validate_marks(marks)
    except ValueError as exc:
        errors["marks"] = str(exc)

    row = Question(exam_id=exam_id, prompt=prompt_clean, question_type=qtype.value, marks=marks, position=position)

    if qtype is QuestionType.MATCHING:
        pairs = []
        for item in match_pairs or []:
            left = sanitize_plain(str(item.get("left", ""))) if isinstance(item, dict) else ""
            right = sanitize_plain(str(item.get("right", ""))) if isinstance(item, dict) else ""
            if not left or not right:
                errors["match_pairs"] = "Every pair needs a non-empty left and right item."
                break
            pairs.append({"left": left, "right": right})
        if "match_pairs" not in errors and len(pairs) < MIN_MATCH_PAIRS:
            errors["match_pairs"] = f"Matching questions need at least {MIN_MATCH_PAIRS} pairs."
        elif "match_pairs" not in errors and len({p["right"].lower() for p in pairs}) != len(pairs):
            errors["match_pairs"] = "Right items must be distinct."
        row.match_pairs = pairs
    else:
        cleaned = [sanitize_plain(o) for o in (options or [])]
        if len(cleaned) != len(OPTION_LETTERS) or not all(cleaned):
            errors["options"] = "Exactly four non-empty options are required."
        else:
            row.option_a, row.option_b, row.option_c, row.option_d = cleaned

        correct_clean = (correct_option or "").strip().upper()
        if correct_clean not in OPTION_LETTERS:
            errors["correct_option"] = "Correct option must be one of: A, B, C, or D."
        row.correct_option = correct_clean

        if qtype is QuestionType.AUDIO_SINGLE_CHOICE:
            url = (audio_url or "").strip()
            if not _is_http_url(url):
                errors["audio_url"] = "An http(s) audio URL is required for audio questions."
            row.audio_url = url

    if errors:
        raise BadRequestError("; ".join(f"{field}: {msg}" for field, msg in errors.items()))
    return row
