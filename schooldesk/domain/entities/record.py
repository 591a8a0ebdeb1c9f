"""Domain entities: the school record tagged union.

Every persisted unit of school data is a ``Record`` subclass. The variant is
chosen by its ``type`` tag; tags outside ``RecordType`` become a
``GenericRecord`` that keeps the tag verbatim.

Records are immutable: the backend assigns ``id`` once, and updates build a
fresh instance from merged fields via ``Record.merged``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, ClassVar


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Best-effort conversion of a stored timestamp to an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


class RecordType(str, Enum):
    """Closed set of record variants known to the store."""

    TEACHER = "teacher"
    STUDENT = "student"
    CLASS = "class"
    LESSON_PLAN = "lesson-plan"
    JOURNAL_ENTRY = "journal-entry"
    ATTENDANCE = "attendance"
    GRADE = "grade"
    BEHAVIOR_NOTE = "behavior-note"
    COUNSELING_ATTENDANCE = "counseling-attendance"
    COUNSELING_VIOLATION = "counseling-violation"

    @classmethod
    def parse(cls, value: Any) -> "RecordType | None":
        """Return the matching member, or ``None`` for unrecognized tags."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


def type_tag(record_type: "RecordType | str") -> str:
    return record_type.value if isinstance(record_type, RecordType) else str(record_type)


# Attribute name → external field name, where the two differ.
_TO_EXTERNAL: dict[str, str] = {"class_name": "class"}
_FROM_EXTERNAL: dict[str, str] = {v: k for k, v in _TO_EXTERNAL.items()}

# Fields stamped by the store (or the backend) rather than supplied by callers.
STAMP_FIELDS: frozenset[str] = frozenset(
    {"type", "id", "author", "created_at", "approved", "updated_at"}
)

# Never returned by the API, exports or query filters.
SECRET_FIELDS: frozenset[str] = frozenset({"password"})


@dataclass(frozen=True, kw_only=True)
class Record:
    """Fields shared by every record variant."""

    record_type: ClassVar[RecordType | None] = None

    id: str | None = None
    author: str = ""
    created_at: datetime | None = None
    approved: bool = False
    updated_at: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.record_type.value if self.record_type else ""

    @property
    def effective_timestamp(self) -> datetime | None:
        """``updated_at``, else ``created_at``, else the record's ``date`` field."""
        if self.updated_at is not None:
            return self.updated_at
        if self.created_at is not None:
            return self.created_at
        return parse_timestamp(getattr(self, "date", None) or self.extra.get("date"))

    def to_fields(self) -> dict[str, Any]:
        """Flatten into a field bag keyed by external field names."""
        data: dict[str, Any] = {"type": self.type}
        for f in dataclass_fields(self):
            if f.name in ("extra", "tag"):
                continue
            data[_TO_EXTERNAL.get(f.name, f.name)] = getattr(self, f.name)
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe variant of ``to_fields`` (timestamps as ISO strings)."""
        return {
            key: value.isoformat() if isinstance(value, datetime) else value
            for key, value in self.to_fields().items()
        }

    def to_public_dict(self) -> dict[str, Any]:
        """``to_dict`` without secret fields, for anything leaving the store."""
        return {k: v for k, v in self.to_dict().items() if k not in SECRET_FIELDS}

    def merged(self, changes: dict[str, Any], **stamps: Any) -> "Record":
        """Return a new record of the same type with ``changes`` applied."""
        return record_from_fields(self.type, {**self.to_fields(), **changes}, **stamps)

    @classmethod
    def _coerce(cls, kwargs: dict[str, Any]) -> dict[str, Any]:
        for name in ("created_at", "updated_at"):
            if name in kwargs:
                kwargs[name] = parse_timestamp(kwargs[name])
        if "approved" in kwargs:
            kwargs["approved"] = kwargs["approved"] is True
        return kwargs


@dataclass(frozen=True, kw_only=True)
class TeacherRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.TEACHER

    title: str = ""
    registration_number: str = ""
    subject: str = ""
    role: str = ""
    username: str = ""
    password: str = ""


@dataclass(frozen=True, kw_only=True)
class StudentRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.STUDENT

    title: str = ""
    national_student_number: str = ""
    sex: str = ""
    class_name: str = ""


@dataclass(frozen=True, kw_only=True)
class ClassRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.CLASS

    title: str = ""
    level: int | None = None
    track: str = ""

    @classmethod
    def _coerce(cls, kwargs: dict[str, Any]) -> dict[str, Any]:
        kwargs = super()._coerce(kwargs)
        if "level" in kwargs:
            try:
                kwargs["level"] = int(str(kwargs["level"]).strip())
            except ValueError:
                kwargs["level"] = None
        return kwargs


@dataclass(frozen=True, kw_only=True)
class LessonPlanRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.LESSON_PLAN

    module_title: str = ""
    subject: str = ""
    class_name: str = ""
    phase: str = ""
    plan_author: str = ""


@dataclass(frozen=True, kw_only=True)
class JournalEntryRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.JOURNAL_ENTRY

    teacher_name: str = ""
    class_name: str = ""
    day: str = ""
    date: str = ""
    subject: str = ""
    topic: str = ""
    start_time: str | None = None
    end_time: str | None = None


@dataclass(frozen=True, kw_only=True)
class AttendanceRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.ATTENDANCE

    student_name: str = ""
    class_name: str = ""
    status: str = ""
    date: str = ""


@dataclass(frozen=True, kw_only=True)
class GradeRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.GRADE

    student_name: str = ""
    class_name: str = ""
    subject: str = ""
    assessment_type: str = ""
    score: float | None = None
    date: str = ""

    @classmethod
    def _coerce(cls, kwargs: dict[str, Any]) -> dict[str, Any]:
        kwargs = super()._coerce(kwargs)
        if "score" in kwargs:
            try:
                kwargs["score"] = float(kwargs["score"])
            except (TypeError, ValueError):
                kwargs["score"] = None
        return kwargs


@dataclass(frozen=True, kw_only=True)
class BehaviorNoteRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.BEHAVIOR_NOTE

    student_name: str = ""
    class_name: str = ""
    behavior_type: str = ""
    note: str = ""
    date: str = ""


@dataclass(frozen=True, kw_only=True)
class CounselingAttendanceRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.COUNSELING_ATTENDANCE

    student_name: str = ""
    class_name: str = ""
    status: str = ""
    date: str = ""
    time: str = ""


@dataclass(frozen=True, kw_only=True)
class CounselingViolationRecord(Record):
    record_type: ClassVar[RecordType] = RecordType.COUNSELING_VIOLATION

    student_name: str = ""
    class_name: str = ""
    category: str = ""
    violation_type: str = ""
    location: str = ""
    chronology: str = ""
    follow_up: str = ""
    date: str | None = None


@dataclass(frozen=True, kw_only=True)
class GenericRecord(Record):
    """Fallback for tags outside ``RecordType``; the tag is kept verbatim."""

    tag: str = ""
    title: str = ""
    content: str = ""

    @property
    def type(self) -> str:
        return self.tag


RECORD_CLASSES: dict[RecordType, type[Record]] = {
    RecordType.TEACHER: TeacherRecord,
    RecordType.STUDENT: StudentRecord,
    RecordType.CLASS: ClassRecord,
    RecordType.LESSON_PLAN: LessonPlanRecord,
    RecordType.JOURNAL_ENTRY: JournalEntryRecord,
    RecordType.ATTENDANCE: AttendanceRecord,
    RecordType.GRADE: GradeRecord,
    RecordType.BEHAVIOR_NOTE: BehaviorNoteRecord,
    RecordType.COUNSELING_ATTENDANCE: CounselingAttendanceRecord,
    RecordType.COUNSELING_VIOLATION: CounselingViolationRecord,
}

assert set(RECORD_CLASSES) == set(RecordType), "every RecordType needs a record class"


def record_from_fields(
    record_type: RecordType | str,
    values: dict[str, Any],
    **stamps: Any,
) -> Record:
    """Build the variant for ``record_type`` from a field bag.

    Keys that are not fields of the variant are kept in ``extra``. A nested
    ``extra`` mapping in ``values`` is merged into it; any other ``extra``
    value is an ordinary field and is kept as ``extra["extra"]``.
    ``stamps`` override ``values``.
    """
    known = RecordType.parse(record_type)
    cls = RECORD_CLASSES[known] if known else GenericRecord

    merged = {**values, **stamps}
    nested = merged.pop("extra", None)
    extra: dict[str, Any] = {}
    if isinstance(nested, Mapping):
        extra.update((str(k), v) for k, v in nested.items())
    elif nested is not None:
        extra["extra"] = nested
    names = {f.name for f in dataclass_fields(cls) if f.init and f.name not in ("extra", "tag")}

    kwargs: dict[str, Any] = {}
    for key, value in merged.items():
        if key == "type":
            continue
        attr = _FROM_EXTERNAL.get(key, key)
        if attr in names:
            kwargs[attr] = value
        else:
            extra[key] = value

    if cls is GenericRecord:
        kwargs["tag"] = type_tag(record_type)
    return cls(extra=extra, **cls._coerce(kwargs))
