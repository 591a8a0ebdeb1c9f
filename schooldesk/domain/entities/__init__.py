from .identity import Credential, Identity, Role
from .record import (
    RECORD_CLASSES,
    SECRET_FIELDS,
    STAMP_FIELDS,
    AttendanceRecord,
    BehaviorNoteRecord,
    ClassRecord,
    CounselingAttendanceRecord,
    CounselingViolationRecord,
    GenericRecord,
    GradeRecord,
    JournalEntryRecord,
    LessonPlanRecord,
    Record,
    RecordType,
    StudentRecord,
    TeacherRecord,
    parse_timestamp,
    record_from_fields,
    type_tag,
    utc_now,
)

__all__ = [
    "Credential",
    "Identity",
    "Role",
    "RECORD_CLASSES",
    "SECRET_FIELDS",
    "STAMP_FIELDS",
    "AttendanceRecord",
    "BehaviorNoteRecord",
    "ClassRecord",
    "CounselingAttendanceRecord",
    "CounselingViolationRecord",
    "GenericRecord",
    "GradeRecord",
    "JournalEntryRecord",
    "LessonPlanRecord",
    "Record",
    "RecordType",
    "StudentRecord",
    "TeacherRecord",
    "parse_timestamp",
    "record_from_fields",
    "type_tag",
    "utc_now",
]
