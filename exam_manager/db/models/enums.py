"""
Enumerations stored as their string values (VARCHAR, not native PG enums).
"""

import enum

from sqlalchemy import Enum as SAEnum


class ExamStatus(str, enum.Enum):
    PLANNED = "Planned"
    ACTIVE = "Active"
    POSTPONED = "Postponed"
    COMPLETED = "Completed"


class Role(str, enum.Enum):
    OPERATOR = "Operator"
    ADMIN = "Admin"
    STAFF = "Staff"


class BackupActivityType(str, enum.Enum):
    AUTO = "Auto"
    MANUAL = "Manual"
    RESTORE = "Restore"


class FileAction(str, enum.Enum):
    IMPORT = "Import"
    EXPORT = "Export"
    DOWNLOAD_TEMPLATE = "DownloadTemplate"
    GENERATE_REPORT = "GenerateReport"


class FileCategory(str, enum.Enum):
    GENERAL = "General"
    EXAM = "Exam"
    EXAMINER = "Examiner"
    EXAM_TYPE = "ExamType"
    INSTITUTION = "Institution"
    PROFESSION = "Profession"


def enum_type(enum_cls: type[enum.Enum]) -> SAEnum:
    """Column type persisting ``member.value``."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
