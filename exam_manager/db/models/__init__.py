# ORM models; import here so Base.metadata knows every table
from exam_manager.db.models.backup_history import BackupHistory
from exam_manager.db.models.enums import (
    BackupActivityType,
    ExamStatus,
    FileAction,
    FileCategory,
    Role,
)
from exam_manager.db.models.exam import Exam
from exam_manager.db.models.exam_board import ExamBoard
from exam_manager.db.models.exam_type import ExamType
from exam_manager.db.models.examiner import Examiner
from exam_manager.db.models.file_history import FileHistory
from exam_manager.db.models.institution import Institution
from exam_manager.db.models.operator import Operator
from exam_manager.db.models.password_reset import PasswordReset
from exam_manager.db.models.profession import Profession

__all__ = [
    "BackupActivityType",
    "BackupHistory",
    "Exam",
    "ExamBoard",
    "ExamStatus",
    "ExamType",
    "Examiner",
    "FileAction",
    "FileCategory",
    "FileHistory",
    "Institution",
    "Operator",
    "PasswordReset",
    "Profession",
    "Role",
]
