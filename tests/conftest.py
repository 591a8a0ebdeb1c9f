"""Shared fixtures: one valid field set per record type."""

import copy

import pytest

_VALID_FIELDS: dict[str, dict] = {
    "teacher": {
        "title": "Rina Sari",
        "registration_number": "198501012010012001",
        "subject": "Mathematics",
        "role": "teacher",
        "username": "rina",
        "password": "Secret123",
    },
    "student": {
        "title": "Budi Santoso",
        "national_student_number": "0051234567",
        "sex": "M",
        "class": "10A",
    },
    "class": {"title": "X Science 1", "level": "10", "track": "Science"},
    "lesson-plan": {
        "module_title": "Linear Equations",
        "subject": "Mathematics",
        "class": "10A",
        "phase": "E",
        "plan_author": "Rina Sari",
    },
    "journal-entry": {
        "teacher_name": "Rina Sari",
        "class": "10A",
        "day": "Monday",
        "date": "2024-05-06",
        "subject": "Mathematics",
        "topic": "Fractions",
        "start_time": "07:30",
        "end_time": "09:00",
    },
    "attendance": {
        "student_name": "Budi Santoso",
        "class": "10A",
        "status": "Present",
        "date": "2024-05-06",
    },
    "grade": {
        "student_name": "A",
        "class": "10A",
        "subject": "Math",
        "assessment_type": "Quiz",
        "score": 85,
        "date": "2024-05-01",
    },
    "behavior-note": {
        "student_name": "Budi Santoso",
        "class": "10A",
        "behavior_type": "Positive",
        "note": "Helped a classmate",
        "date": "2024-05-06",
    },
    "counseling-attendance": {
        "student_name": "Budi Santoso",
        "class": "10A",
        "status": "Late",
        "date": "2024-05-06",
        "time": "07:15",
    },
    "counseling-violation": {
        "student_name": "Budi Santoso",
        "class": "10A",
        "category": "Light",
        "violation_type": "Uniform",
        "location": "Main gate",
        "chronology": "Arrived without a tie",
        "follow_up": "Verbal warning",
    },
    "announcement": {"title": "Exam week", "content": "Exams start on Monday"},
}


@pytest.fixture
def valid_fields() -> dict[str, dict]:
    """Fresh copy of a valid field set for every record type (plus one generic tag)."""
    return copy.deepcopy(_VALID_FIELDS)
