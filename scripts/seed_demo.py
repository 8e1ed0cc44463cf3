#!/usr/bin/env python3
"""
Reset the database and load a small demo: one instructor, one learner, a
two-module course whose first module ends in a quiz, and a workshop tomorrow.

Run: python scripts/seed_demo.py
     python scripts/seed_demo.py --keep   (add the demo without dropping tables)
"""
from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path
from uuid import uuid4

_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed demo data.")
    parser.add_argument("--keep", action="store_true", help="Do not drop existing tables first")
    parser.add_argument("--password", default="gurmania123", help="Password for both demo users")
    args = parser.parse_args()

    from gurmania.config import SessionLocal, create_db, reset_db
    from gurmania.models import (
        Course, Lesson, LessonIngredient, Module, Question, QuestionOption, Quiz, User, UserRole, Workshop,
        WorkshopLessonRequirement,
    )
    from gurmania.services.workshop_service import stream_url
    from gurmania.utils.dates import utcnow
    from gurmania.utils.jwt import get_password_hash

    if args.keep:
        create_db()
    else:
        reset_db()

    db = SessionLocal()
    try:
        instructor = User(
            email=f"chef-{uuid4().hex[:6]}@gurmania.local",
            name="Chef Demo",
            hashed_password=get_password_hash(args.password),
            role=UserRole.INSTRUCTOR,
        )
        learner = User(
            email=f"learner-{uuid4().hex[:6]}@gurmania.local",
            name="Learner Demo",
            hashed_password=get_password_hash(args.password),
            role=UserRole.STUDENT,
        )
        db.add_all([instructor, learner])
        db.flush()

        basics = Lesson(
            id=str(uuid4()),
            title="Knife skills",
            steps=["Hold the knife", "Claw grip", "Dice an onion"],
            duration_min=12,
            order_index=1,
            ingredients=[LessonIngredient(id=str(uuid4()), name="Onion", quantity="1", unit="pc")],
        )
        basics.quiz = Quiz(
            id=str(uuid4()),
            title="Knife skills check",
            passing_score=70,
            questions=[
                Question(
                    id=str(uuid4()),
                    text="Which grip protects your fingertips?",
                    order_index=1,
                    options=[
                        QuestionOption(id=str(uuid4()), text="Claw grip", is_correct=True, order_index=1),
                        QuestionOption(id=str(uuid4()), text="Pinch grip", order_index=2),
                    ],
                )
            ],
        )
        sauces = Lesson(id=str(uuid4()), title="Mother sauces", duration_min=20, order_index=1)

        course = Course(
            id=str(uuid4()),
            instructor_id=instructor.id,
            title="Kitchen foundations",
            description="From knife skills to the five mother sauces.",
            published=True,
            modules=[
                Module(id=str(uuid4()), title="Basics", order_index=1, lessons=[basics]),
                Module(id=str(uuid4()), title="Sauces", order_index=2, lessons=[sauces]),
            ],
        )
        db.add(course)
        db.flush()

        workshop_id = str(uuid4())
        db.add(
            Workshop(
                id=workshop_id,
                instructor_id=instructor.id,
                course_id=course.id,
                title="Live: béchamel without lumps",
                start_time=utcnow().replace(microsecond=0) + timedelta(days=1),
                duration_min=60,
                capacity=12,
                stream_url=stream_url(workshop_id),
                required_lessons=[WorkshopLessonRequirement(lesson_id=basics.id)],
            )
        )
        db.commit()
        print(f"instructor: {instructor.email} / {args.password}")
        print(f"learner:    {learner.email} / {args.password}")
        print(f"course:     {course.id}")
    finally:
        db.close()

    print(f"workshop:   {workshop_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
