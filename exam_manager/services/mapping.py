"""
Entity -> response mapping shared by services.
Only relationships that are already loaded are read (async sessions cannot lazy load).
"""

from collections.abc import Iterable

from exam_manager.db.models import (
    BackupHistory,
    Exam,
    ExamBoard,
    Examiner,
    FileHistory,
    Operator,
)
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.db.soft_delete import SoftDeleteMixin
from exam_manager.schemas.exam import ExamBoardResponse, ExamResponse, UpcomingExamResponse
from exam_manager.schemas.examiner import ExaminerResponse
from exam_manager.schemas.history import BackupHistoryResponse, FileHistoryResponse
from exam_manager.schemas.operator import OperatorResponse
from exam_manager.services.result import loaded


async def deleted_by_names(uow: UnitOfWork, entities: Iterable[SoftDeleteMixin]) -> dict[int, str]:
    """Resolve deleted_by_id -> user name with one lookup (deleting operators may be deleted too)."""
    ids = {e.deleted_by_id for e in entities if e.deleted_by_id is not None}
    if not ids:
        return {}
    operators = await uow.operators.get_with_deleted(Operator.id.in_(ids))
    return {op.id: op.user_name for op in operators}


def operator_to_response(operator: Operator, names: dict[int, str] | None = None) -> OperatorResponse:
    response = OperatorResponse.model_validate(operator)
    if operator.deleted_by_id is not None and names:
        response.deleted_by_operator_name = names.get(operator.deleted_by_id)
    return response


def examiner_to_response(examiner: Examiner, names: dict[int, str] | None = None) -> ExaminerResponse:
    response = ExaminerResponse.model_validate(examiner)
    if examiner.deleted_by_id is not None and names:
        response.deleted_by_operator_name = names.get(examiner.deleted_by_id)
    return response


def exam_board_to_response(board: ExamBoard) -> ExamBoardResponse:
    examiner = loaded(board, "examiner")
    return ExamBoardResponse(
        exam_id=board.exam_id,
        examiner_id=board.examiner_id,
        role=board.role,
        examiner_first_name=examiner.first_name if examiner else None,
        examiner_last_name=examiner.last_name if examiner else None,
        examiner_identity_card_number=examiner.identity_card_number if examiner else None,
        is_deleted=board.is_deleted,
        deleted_at=board.deleted_at,
    )


def active_boards(exam: Exam) -> list[ExamBoard]:
    """Board rows to show: live ones, or all of them when the exam itself is deleted."""
    boards = loaded(exam, "exam_board") or []
    return [b for b in boards if exam.is_deleted or not b.is_deleted]


def exam_to_response(exam: Exam, names: dict[int, str] | None = None) -> ExamResponse:
    profession = loaded(exam, "profession")
    institution = loaded(exam, "institution")
    exam_type = loaded(exam, "exam_type")
    operator = loaded(exam, "operator")
    return ExamResponse(
        id=exam.id,
        exam_name=exam.exam_name,
        exam_code=exam.exam_code,
        exam_date=exam.exam_date,
        status=exam.status,
        profession_id=exam.profession_id,
        profession_name=profession.profession_name if profession else None,
        institution_id=exam.institution_id,
        institution_name=institution.name if institution else None,
        exam_type_id=exam.exam_type_id,
        exam_type_name=exam_type.type_name if exam_type else None,
        operator_id=exam.operator_id,
        operator_user_name=operator.user_name if operator else None,
        exam_boards=[exam_board_to_response(b) for b in active_boards(exam)],
        is_deleted=exam.is_deleted,
        deleted_at=exam.deleted_at,
        deleted_by_operator_name=(names or {}).get(exam.deleted_by_id) if exam.deleted_by_id else None,
    )


def exam_to_upcoming(exam: Exam) -> UpcomingExamResponse:
    institution = loaded(exam, "institution")
    return UpcomingExamResponse(
        id=exam.id,
        exam_name=exam.exam_name,
        exam_code=exam.exam_code,
        exam_date=exam.exam_date,
        status=exam.status,
        institution_name=institution.name if institution else None,
    )


def backup_to_response(backup: BackupHistory) -> BackupHistoryResponse:
    operator = loaded(backup, "operator")
    return BackupHistoryResponse(
        id=backup.id,
        backup_date=backup.backup_date,
        file_name=backup.file_name,
        activity_type=backup.activity_type,
        is_successful=backup.is_successful,
        error_message=backup.error_message,
        operator_id=backup.operator_id,
        operator_user_name=operator.user_name if operator else None,
    )


def file_history_to_response(history: FileHistory) -> FileHistoryResponse:
    operator = loaded(history, "operator")
    return FileHistoryResponse(
        id=history.id,
        operator_id=history.operator_id,
        operator_user_name=operator.user_name if operator else None,
        file_name=history.file_name,
        content_type=history.content_type,
        file_size_in_bytes=history.file_size_in_bytes,
        action=history.action,
        category=history.category,
        related_entity_id=history.related_entity_id,
        is_successful=history.is_successful,
        processing_notes=history.processing_notes,
        created_at=history.created_at,
    )
