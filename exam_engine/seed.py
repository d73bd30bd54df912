"""Demo data: one published exam using every question type."""

import logging
from typing import Optional

from sqlmodel import Session, select

from exam_engine.catalog import create_exam
from exam_engine.models import Exam

logger = logging.getLogger(__name__)

DEMO_TITLE = "Demo Listening and Vocabulary Check"


def seed_demo_exam(session: Session) -> Optional[Exam]:
    """Create the demo exam unless it already exists."""
    existing = session.exec(select(Exam).where(Exam.title == DEMO_TITLE)).first()
    if existing:
        logger.info("Demo exam already seeded (id=%s), skipping", existing.id)
        return None

    exam = create_exam(
        session,
        title=DEMO_TITLE,
        description="Three short questions covering each question type.",
        duration_minutes=15,
        is_published=True,
        questions=[
            {
                "prompt": "Which planet is known as the Red Planet?",
                "question_type": "single_choice",
                "options": ["Venus", "Mars", "Jupiter", "Saturn"],
                "correct_option": "B",
                "marks": 1,
            },
            {
                "prompt": "Listen to the clip. Which word was spoken?",
                "question_type": "audio_single_choice",
                "options": ["harbour", "harvest", "harness", "harmony"],
                "correct_option": "D",
                "audio_url": "https://example.com/audio/harmony.mp3",
                "marks": 2,
            },
            {
                "prompt": "Match each country with its capital.",
                "question_type": "matching",
                "match_pairs": [
                    {"left": "France", "right": "Paris"},
                    {"left": "Japan", "right": "Tokyo"},
                    {"left": "Kenya", "right": "Nairobi"},
                ],
                "marks": 3,
            },
        ],
    )
    logger.info("Seeded demo exam %s", exam.id)
    return exam
