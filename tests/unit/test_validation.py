"""Unit tests for the per-type validation rules."""

import pytest

from schooldesk.application.services.auth_service import build_credential_index
from schooldesk.domain.entities import RecordType, TeacherRecord
from schooldesk.domain.validation import (
    ValidationContext,
    required_fields,
    validate,
    validate_password,
)

RECORD_TYPES = (
    *(t.value for t in RecordType),
    "announcement",
)


@pytest.mark.parametrize("record_type", RECORD_TYPES)
def test_valid_fields_pass(record_type: str, valid_fields):
    result = validate(record_type, valid_fields[record_type])
    assert result.valid, result.message
    assert result.message is None


@pytest.mark.parametrize("record_type", RECORD_TYPES)
def test_each_missing_required_field_is_named(record_type: str, valid_fields):
    for name in required_fields(record_type):
        fields = dict(valid_fields[record_type])
        del fields[name]
        result = validate(record_type, fields)
        assert not result.valid
        assert result.message == f"{name} is required"


def test_blank_string_counts_as_missing(valid_fields):
    fields = valid_fields["student"]
    fields["title"] = "   "
    assert validate("student", fields).message == "title is required"


def test_zero_score_is_present(valid_fields):
    fields = valid_fields["grade"]
    fields["score"] = 0
    assert validate("grade", fields).valid


def test_required_fields_reported_before_type_checks(valid_fields):
    fields = valid_fields["grade"]
    fields["score"] = 105
    del fields["subject"]
    assert validate("grade", fields).message == "subject is required"


@pytest.mark.parametrize("score", [105, -1, "abc", float("nan"), True])
def test_grade_score_out_of_range(score, valid_fields):
    fields = valid_fields["grade"]
    fields["score"] = score
    result = validate("grade", fields)
    assert not result.valid
    assert result.message == "Score must be a number between 0 and 100"


def test_grade_score_accepts_numeric_string(valid_fields):
    fields = valid_fields["grade"]
    fields["score"] = "99.5"
    assert validate("grade", fields).valid


def test_non_mapping_is_rejected():
    result = validate("grade", ["not", "a", "mapping"])
    assert not result.valid
    assert result.message == "Record fields must be a mapping"


def test_unknown_type_uses_generic_rule():
    assert validate("announcement", {"title": "T", "content": "C"}).valid
    assert validate("announcement", {"title": "T"}).message == "content is required"


def test_student_number_and_sex(valid_fields):
    fields = valid_fields["student"]
    fields["national_student_number"] = "12345"
    assert validate("student", fields).message == "National student number must be 10 digits"

    fields = valid_fields["student"]
    fields["sex"] = "X"
    assert validate("student", fields).message == "Sex must be M or F"


def test_class_level(valid_fields):
    fields = valid_fields["class"]
    fields["level"] = "9"
    assert validate(RecordType.CLASS, fields).message == "Level must be 10, 11 or 12"


def test_journal_times(valid_fields):
    fields = valid_fields["journal-entry"]
    fields["start_time"] = "10:00"
    fields["end_time"] = "09:00"
    assert validate("journal-entry", fields).message == "Start time must be before end time"

    fields["start_time"] = "later"
    assert validate("journal-entry", fields).message == "Start and end time must be formatted as HH:MM"

    del fields["start_time"]
    del fields["end_time"]
    assert validate("journal-entry", fields).valid


@pytest.mark.parametrize(
    ("record_type", "name", "message"),
    [
        ("attendance", "status", "Status is not valid"),
        ("counseling-attendance", "status", "Status is not valid"),
        ("behavior-note", "behavior_type", "Behavior type is not valid"),
        ("counseling-violation", "category", "Violation category is not valid"),
    ],
)
def test_enumerated_fields(record_type, name, message, valid_fields):
    fields = valid_fields[record_type]
    fields[name] = "Unheard of"
    assert validate(record_type, fields).message == message


def test_late_only_valid_for_counseling_attendance(valid_fields):
    fields = valid_fields["attendance"]
    fields["status"] = "Late"
    assert not validate("attendance", fields).valid


def test_teacher_registration_number_and_role(valid_fields):
    fields = valid_fields["teacher"]
    fields["registration_number"] = "1234"
    assert validate("teacher", fields).message == "Registration number must be 18 digits"

    fields = valid_fields["teacher"]
    fields["role"] = "janitor"
    assert validate("teacher", fields).message == "Role is not valid"


@pytest.mark.parametrize(
    ("password", "message"),
    [
        ("Ab1", "Password must be at least 6 characters"),
        ("ABCDEF1", "Password must contain a lowercase letter"),
        ("abcdef1", "Password must contain an uppercase letter"),
        ("Abcdefg", "Password must contain a digit"),
    ],
)
def test_password_rules_in_order(password, message):
    result = validate_password(password)
    assert not result.valid
    assert result.message == message


def test_password_min_length_is_configurable(valid_fields):
    fields = valid_fields["teacher"]
    ctx = ValidationContext(password_min_length=12)
    assert validate("teacher", fields, ctx).message == "Password must be at least 12 characters"


def test_username_collision_with_seed_account(valid_fields):
    fields = valid_fields["teacher"]
    fields["username"] = "admin"
    ctx = ValidationContext(credentials=build_credential_index(()))
    assert validate("teacher", fields, ctx).message == "Username is already taken"


def test_username_collision_ignores_the_record_being_updated(valid_fields):
    existing = TeacherRecord(id="t-1", title="Rina Sari", username="rina", password="Secret123")
    credentials = build_credential_index([existing])

    fields = valid_fields["teacher"]
    assert validate("teacher", fields, ValidationContext(credentials=credentials, record_id="t-1")).valid

    result = validate("teacher", fields, ValidationContext(credentials=credentials, record_id="t-2"))
    assert result.message == "Username is already taken"
    assert validate("teacher", fields, ValidationContext(credentials=credentials)).message == (
        "Username is already taken"
    )


def test_validate_is_pure(valid_fields):
    fields = valid_fields["grade"]
    snapshot = dict(fields)
    first = validate("grade", fields)
    second = validate("grade", fields)
    assert first == second
    assert fields == snapshot
