"""
Export service - one Excel workbook per data category.
Examiners and exams include soft-deleted rows, flagged in a Status column and drawn in red.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from exam_manager.db.base import utcnow
from exam_manager.db.models import Exam, Examiner, ExamType, FileAction, Institution, Profession
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.common import FileDownload
from exam_manager.services.file_history_service import FileHistoryService
from exam_manager.services.mapping import active_boards
from exam_manager.services.result import ServiceResult, loaded, service_boundary
from exam_manager.services.workbook import (
    DELETED_FONT,
    XLSX_CONTENT_TYPE,
    DataCategory,
    append_row,
    autosize,
    new_sheet,
    to_bytes,
)

logger = logging.getLogger(__name__)

ACTIVE = "Active"
DELETED = "Deleted"


def _status(entity: Any) -> str:
    return DELETED if entity.is_deleted else ACTIVE


def _examiner_row(e: Examiner) -> list:
    return [e.id, e.first_name, e.last_name, e.date_of_birth, e.email, e.phone, e.identity_card_number, _status(e)]


def _profession_row(p: Profession) -> list:
    return [p.id, p.keor_id, p.profession_name]


def _institution_row(i: Institution) -> list:
    return [i.id, i.educational_id, i.name, i.zip_code, i.town, i.street, i.number, i.floor, i.door]


def _exam_type_row(t: ExamType) -> list:
    return [t.id, t.type_name, t.description]


def _exam_row(e: Exam) -> list:
    profession = loaded(e, "profession")
    institution = loaded(e, "institution")
    exam_type = loaded(e, "exam_type")
    examiners = []
    for board in active_boards(e):
        examiner = loaded(board, "examiner")
        name = examiner.full_name if examiner else "Unknown Examiner"
        examiners.append(f"{name} ({board.role})")
    return [
        e.id,
        e.exam_name,
        e.exam_code,
        e.exam_date,
        e.status,
        profession.profession_name if profession else None,
        institution.name if institution else None,
        exam_type.type_name if exam_type else None,
        "; ".join(examiners),
        _status(e),
    ]


# category -> (model, headers, row builder, includes, with deleted rows)
EXPORTS: dict[DataCategory, tuple[type, Sequence[str], Callable[[Any], list], Sequence[str], bool]] = {
    DataCategory.EXAMINERS: (
        Examiner,
        ["Id", "FirstName", "LastName", "DateOfBirth", "Email", "Phone", "IdentityCardNumber", "Status"],
        _examiner_row,
        (),
        True,
    ),
    DataCategory.PROFESSIONS: (Profession, ["Id", "KeorId", "ProfessionName"], _profession_row, (), False),
    DataCategory.INSTITUTIONS: (
        Institution,
        ["Id", "EducationalId", "Name", "ZipCode", "Town", "Street", "Number", "Floor", "Door"],
        _institution_row,
        (),
        False,
    ),
    DataCategory.EXAM_TYPES: (ExamType, ["Id", "TypeName", "Description"], _exam_type_row, (), False),
    DataCategory.EXAMS: (
        Exam,
        [
            "Id",
            "ExamName",
            "ExamCode",
            "ExamDate",
            "Status",
            "Profession",
            "Institution",
            "ExamType",
            "Examiners",
            "RecordStatus",
        ],
        _exam_row,
        ("profession", "institution", "exam_type", "exam_board.examiner"),
        True,
    ),
}

_REPOSITORIES = {
    DataCategory.EXAMINERS: "examiners",
    DataCategory.PROFESSIONS: "professions",
    DataCategory.INSTITUTIONS: "institutions",
    DataCategory.EXAM_TYPES: "exam_types",
    DataCategory.EXAMS: "exams",
}


class ExportService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @service_boundary("exporting data")
    async def export(
        self, category: DataCategory, operator_id: int, ids: Sequence[int] | None = None
    ) -> ServiceResult[FileDownload]:
        """Workbook of ``category`` rows, optionally restricted to ``ids``."""
        model, headers, build_row, includes, with_deleted = EXPORTS[category]
        repo = getattr(self.uow, _REPOSITORIES[category])
        predicate = model.id.in_(list(ids)) if ids else None
        if with_deleted:
            rows = await repo.get_with_deleted(predicate, includes=includes)
        else:
            rows = await repo.get(predicate, includes=includes)

        wb, ws = new_sheet(category.entity_name, headers)
        for row in rows:
            font = DELETED_FONT if with_deleted and row.is_deleted else None
            append_row(ws, build_row(row), font)
        autosize(ws)
        content = to_bytes(wb)

        file_name = f"{category.entity_name}_Export_{utcnow():%Y%m%d_%H%M}.xlsx"
        staged = await FileHistoryService(self.uow).stage(
            operator_id=operator_id,
            file_name=file_name,
            content_type=XLSX_CONTENT_TYPE,
            content=content,
            action=FileAction.EXPORT,
            category=category.file_category,
            processing_notes=f"{len(rows)} rows exported",
        )
        if not staged.succeeded:
            return staged
        await self.uow.save()
        logger.info("Exported %d %s rows as %s", len(rows), category.value, file_name)
        return ServiceResult.success(FileDownload(file_name=file_name, content_type=XLSX_CONTENT_TYPE, content=content))
