"""
Demo Data Seeder
Creates the tables and a published demo exam with one question of each type.

Usage:
    python seed_data.py
"""

from sqlmodel import Session

from exam_engine.database import create_db_and_tables, engine
from exam_engine.seed import seed_demo_exam


def seed_database():
    """Create the schema and the demo exam."""
    print("Creating database tables...")
    create_db_and_tables()

    with Session(engine) as session:
        exam = seed_demo_exam(session)
        if exam is None:
            print("Demo exam already present. Skipping seed.")
            return
        print(f"Created exam {exam.id}: {exam.title}")


if __name__ == "__main__":
    seed_database()
