"""Seed demo courses, people and a batch so the admin screens have something to show.

Run:
  PYTHONPATH=backend python scripts/seed_academy_data.py
"""

from __future__ import annotations

import os

from sqlalchemy import select

from academy.core.security import get_password_hash
from academy.db.bootstrap import ensure_schema
from academy.db.session import SessionLocal
from academy.models.batch import Batch, BatchMode
from academy.models.course import Course
from academy.models.fee import BillingCycle, Currency, FeeStructure
from academy.models.location import Location
from academy.models.user import ClassPreference, User, UserRole

DEFAULT_PASSWORD = os.getenv("DEMO_PASSWORD", "password123")

COURSES = {
    "Bharatanatyam": "Classical dance rooted in Tamil Nadu.",
    "Vocal": "Carnatic vocal music.",
    "Drawing": "Sketching and painting fundamentals.",
    "Abacus": "Mental arithmetic with the abacus.",
}

PEOPLE = [
    {"name": "Admin", "email": "admin@example.com", "role": UserRole.admin},
    {
        "name": "Meera Iyer",
        "email": "meera@example.com",
        "role": UserRole.teacher,
        "course_expertise": ["Bharatanatyam", "Vocal"],
    },
    {
        "name": "Ravi Kumar",
        "email": "ravi@example.com",
        "role": UserRole.teacher,
        "course_expertise": ["Drawing", "Abacus"],
    },
    {
        "name": "Anika Rao",
        "email": "anika@example.com",
        "role": UserRole.student,
        "courses": ["Bharatanatyam", "Drawing"],
        "class_preference": ClassPreference.offline,
    },
    {
        "name": "Kabir Shah",
        "email": "kabir@example.com",
        "role": UserRole.student,
        "courses": ["Bharatanatyam", "Vocal"],
        "class_preference": ClassPreference.online,
    },
]


def _upsert_course(session, name: str, description: str) -> Course:
    course = session.execute(select(Course).where(Course.name == name)).scalar_one_or_none()
    if course is None:
        course = Course(name=name, description=description)
        session.add(course)
        session.flush()
    if session.execute(select(FeeStructure).where(FeeStructure.course_id == course.id)).scalar_one_or_none() is None:
        session.add(
            FeeStructure(
                course_id=course.id,
                course_name=course.name,
                amount=1500.0,
                currency=Currency.inr,
                billing_cycle=BillingCycle.monthly,
            )
        )
    return course


def _upsert_user(session, item: dict) -> User:
    user = session.execute(select(User).where(User.email == item["email"])).scalar_one_or_none()
    if user is None:
        user = User(hashed_password=get_password_hash(DEFAULT_PASSWORD), **item)
        session.add(user)
        session.flush()
    return user


def main() -> None:
    ensure_schema()
    with SessionLocal() as session:
        courses = {name: _upsert_course(session, name, text) for name, text in COURSES.items()}
        users = {item["email"]: _upsert_user(session, item) for item in PEOPLE}

        studio = session.execute(select(Location).where(Location.name == "Main Studio")).scalar_one_or_none()
        if studio is None:
            studio = Location(name="Main Studio", address="12 Temple Street")
            session.add(studio)
            session.flush()

        if session.execute(select(Batch).where(Batch.name == "Bharatanatyam A1")).scalar_one_or_none() is None:
            session.add(
                Batch(
                    name="Bharatanatyam A1",
                    course_id=courses["Bharatanatyam"].id,
                    course_name="Bharatanatyam",
                    teacher_id=users["meera@example.com"].id,
                    mode=BatchMode.offline,
                    location_id=studio.id,
                    schedule=[
                        {
                            "timing": "Monday 09:00 - 10:00",
                            "student_ids": [users["anika@example.com"].id, users["kabir@example.com"].id],
                        },
                        {"timing": "Wednesday 09:00 - 10:00", "student_ids": [users["anika@example.com"].id]},
                    ],
                )
            )
        session.commit()

    print(f"Seeded accounts (password: {DEFAULT_PASSWORD}):")
    for item in PEOPLE:
        print(f"  {item['role'].value:<8} {item['email']}")


if __name__ == "__main__":
    main()
