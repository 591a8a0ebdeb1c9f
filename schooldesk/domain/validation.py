"""Per-type validation rules for candidate record fields.

``validate`` is pure and total: whatever it is handed, it answers with a
``ValidationResult`` rather than raising. Required fields are checked first,
in declaration order, so a missing field is always reported before any
type-specific problem.
"""

import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import time
from typing import Any

from schooldesk.domain.entities.identity import Credential, Role
from schooldesk.domain.entities.record import RecordType

DEFAULT_PASSWORD_MIN_LENGTH = 6

ATTENDANCE_STATUSES = ("Present", "Sick", "Excused", "Absent")
COUNSELING_ATTENDANCE_STATUSES = (*ATTENDANCE_STATUSES, "Late")
BEHAVIOR_TYPES = ("Positive", "Negative", "Neutral")
VIOLATION_CATEGORIES = ("Light", "Moderate", "Severe")
SEXES = ("M", "F")
CLASS_LEVELS = ("10", "11", "12")

_REGISTRATION_NUMBER = re.compile(r"[0-9]{18}")
_NATIONAL_STUDENT_NUMBER = re.compile(r"[0-9]{10}")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, message: str) -> "ValidationResult":
        return cls(valid=False, message=message)


@dataclass(frozen=True)
class ValidationContext:
    """State a rule may consult beyond the candidate fields themselves.

    ``record_id`` identifies the record being re-validated on update, so a
    teacher keeps their own username without tripping the collision check.
    """

    credentials: Mapping[str, Credential] = field(default_factory=dict)
    record_id: str | None = None
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH


Fields = Mapping[str, Any]
_Check = Callable[[Fields, ValidationContext], ValidationResult]


@dataclass(frozen=True)
class _Rule:
    required: tuple[str, ...]
    check: _Check | None = None


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def _one_of(fields: Fields, name: str, allowed: tuple[str, ...], message: str) -> ValidationResult:
    if str(fields[name]).strip() not in allowed:
        return ValidationResult.fail(message)
    return ValidationResult.ok()


def validate_password(password: Any, min_length: int = DEFAULT_PASSWORD_MIN_LENGTH) -> ValidationResult:
    """Length, then lowercase, then uppercase, then digit. The first failure wins."""
    password = "" if password is None else str(password)
    if len(password) < min_length:
        return ValidationResult.fail(f"Password must be at least {min_length} characters")
    if not re.search(r"[a-z]", password):
        return ValidationResult.fail("Password must contain a lowercase letter")
    if not re.search(r"[A-Z]", password):
        return ValidationResult.fail("Password must contain an uppercase letter")
    if not re.search(r"[0-9]", password):
        return ValidationResult.fail("Password must contain a digit")
    return ValidationResult.ok()


# ── Type-specific checks ─────────────────────────────────────────────


def _check_teacher(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    if not _REGISTRATION_NUMBER.fullmatch(str(fields["registration_number"]).strip()):
        return ValidationResult.fail("Registration number must be 18 digits")

    if str(fields["role"]).strip() not in {r.value for r in Role}:
        return ValidationResult.fail("Role is not valid")

    password_result = validate_password(fields["password"], ctx.password_min_length)
    if not password_result.valid:
        return password_result

    existing = ctx.credentials.get(str(fields["username"]).strip())
    if existing is not None and (existing.record_id is None or existing.record_id != ctx.record_id):
        return ValidationResult.fail("Username is already taken")
    return ValidationResult.ok()


def _check_student(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    if not _NATIONAL_STUDENT_NUMBER.fullmatch(str(fields["national_student_number"]).strip()):
        return ValidationResult.fail("National student number must be 10 digits")
    return _one_of(fields, "sex", SEXES, "Sex must be M or F")


def _check_class(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    return _one_of(fields, "level", CLASS_LEVELS, "Level must be 10, 11 or 12")


def _parse_time(value: Any) -> time | None:
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        return None


def _check_journal_entry(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    start, end = fields.get("start_time"), fields.get("end_time")
    if _is_missing(start) or _is_missing(end):
        return ValidationResult.ok()

    start_at, end_at = _parse_time(start), _parse_time(end)
    if start_at is None or end_at is None:
        return ValidationResult.fail("Start and end time must be formatted as HH:MM")
    if start_at >= end_at:
        return ValidationResult.fail("Start time must be before end time")
    return ValidationResult.ok()


def _check_attendance(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    return _one_of(fields, "status", ATTENDANCE_STATUSES, "Status is not valid")


def _check_grade(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    raw = fields["score"]
    message = "Score must be a number between 0 and 100"
    if isinstance(raw, bool):
        return ValidationResult.fail(message)
    try:
        score = float(str(raw).strip())
    except ValueError:
        return ValidationResult.fail(message)
    if math.isnan(score) or not 0 <= score <= 100:
        return ValidationResult.fail(message)
    return ValidationResult.ok()


def _check_behavior_note(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    return _one_of(fields, "behavior_type", BEHAVIOR_TYPES, "Behavior type is not valid")


def _check_counseling_attendance(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    return _one_of(fields, "status", COUNSELING_ATTENDANCE_STATUSES, "Status is not valid")


def _check_counseling_violation(fields: Fields, ctx: ValidationContext) -> ValidationResult:
    return _one_of(fields, "category", VIOLATION_CATEGORIES, "Violation category is not valid")


# ── Rule table ───────────────────────────────────────────────────────

RULES: dict[RecordType, _Rule] = {
    RecordType.TEACHER: _Rule(
        ("title", "registration_number", "subject", "role", "username", "password"),
        _check_teacher,
    ),
    RecordType.STUDENT: _Rule(
        ("title", "national_student_number", "sex", "class"),
        _check_student,
    ),
    RecordType.CLASS: _Rule(("title", "level", "track"), _check_class),
    RecordType.LESSON_PLAN: _Rule(
        ("module_title", "subject", "class", "phase", "plan_author"),
    ),
    RecordType.JOURNAL_ENTRY: _Rule(
        ("teacher_name", "class", "day", "date", "subject", "topic"),
        _check_journal_entry,
    ),
    RecordType.ATTENDANCE: _Rule(
        ("student_name", "class", "status", "date"),
        _check_attendance,
    ),
    RecordType.GRADE: _Rule(
        ("student_name", "class", "subject", "assessment_type", "score", "date"),
        _check_grade,
    ),
    RecordType.BEHAVIOR_NOTE: _Rule(
        ("student_name", "class", "behavior_type", "note", "date"),
        _check_behavior_note,
    ),
    RecordType.COUNSELING_ATTENDANCE: _Rule(
        ("student_name", "class", "status", "date", "time"),
        _check_counseling_attendance,
    ),
    RecordType.COUNSELING_VIOLATION: _Rule(
        (
            "student_name",
            "class",
            "category",
            "violation_type",
            "location",
            "chronology",
            "follow_up",
        ),
        _check_counseling_violation,
    ),
}

assert set(RULES) == set(RecordType), "every RecordType needs a validation rule"

GENERIC_RULE = _Rule(("title", "content"))


def required_fields(record_type: RecordType | str) -> tuple[str, ...]:
    known = RecordType.parse(record_type)
    return (RULES[known] if known else GENERIC_RULE).required


def validate(
    record_type: RecordType | str,
    fields: Any,
    context: ValidationContext | None = None,
) -> ValidationResult:
    """Check ``fields`` against the rules for ``record_type``."""
    if not isinstance(fields, Mapping):
        return ValidationResult.fail("Record fields must be a mapping")

    known = RecordType.parse(record_type)
    rule = RULES[known] if known else GENERIC_RULE
    ctx = context or ValidationContext()

    for name in rule.required:
        if _is_missing(fields.get(name)):
            return ValidationResult.fail(f"{name} is required")

    if rule.check is None:
        return ValidationResult.ok()
    try:
        return rule.check(fields, ctx)
    except Exception as exc:  # rules must never raise past this point
        return ValidationResult.fail(f"Invalid record fields: {exc}")
