"""
Import service - Excel templates and bulk import per data category.
Challenge: One bad row must not sink the file. Every row is validated on its own,
failures and duplicates are reported as "Row N: ..." / "Skipped ..." lines, and the
valid rows go in with a single save together with the file history entry.
"""

import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any
from zipfile import BadZipFile

from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel, ValidationError

from exam_manager.db.base import as_utc, utcnow
from exam_manager.db.models import (
    Exam,
    ExamBoard,
    Examiner,
    ExamStatus,
    ExamType,
    FileAction,
    Institution,
    Profession,
)
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.common import FileDownload, ImportResult
from exam_manager.schemas.exam import ExamCreate
from exam_manager.schemas.examiner import ExaminerCreate
from exam_manager.schemas.reference import ExamTypeCreate, InstitutionCreate, ProfessionCreate
from exam_manager.services.file_history_service import FileHistoryService
from exam_manager.services.result import BAD_REQUEST_INVALID_FIELDS, ServiceResult, service_boundary
from exam_manager.services.workbook import XLSX_CONTENT_TYPE, DataCategory, autosize, new_sheet, read_rows, to_bytes

logger = logging.getLogger(__name__)

IMPORT_FILE_INVALID = "IMPORT_FILE_INVALID"

EXAM_BOARD_SLOTS = 5
EXAM_FIXED_COLUMNS = 7

TEMPLATES: dict[DataCategory, list[str]] = {
    DataCategory.EXAM_TYPES: ["TypeName", "Description"],
    DataCategory.PROFESSIONS: ["KeorId", "ProfessionName"],
    DataCategory.INSTITUTIONS: ["EducationalId", "Name", "ZipCode", "Town", "Street", "Number", "Floor", "Door"],
    DataCategory.EXAMINERS: ["FirstName", "LastName", "DateOfBirth", "Email", "Phone", "IdentityCardNumber"],
    DataCategory.EXAMS: [
        "ExamName",
        "ExamCode",
        "ExamDate",
        "Status",
        "Profession",
        "Institution",
        "ExamType",
        *[f"{kind}{slot}" for slot in range(1, EXAM_BOARD_SLOTS + 1) for kind in ("Examiner", "Role")],
    ],
}

# category -> (create schema, model, repository, column fields, unique fields; the first one names skipped rows)
SIMPLE_IMPORTS: dict[DataCategory, tuple[type[BaseModel], type, str, tuple[str, ...], tuple[str, ...]]] = {
    DataCategory.EXAM_TYPES: (ExamTypeCreate, ExamType, "exam_types", ("type_name", "description"), ("type_name",)),
    DataCategory.PROFESSIONS: (
        ProfessionCreate,
        Profession,
        "professions",
        ("keor_id", "profession_name"),
        ("keor_id",),
    ),
    DataCategory.INSTITUTIONS: (
        InstitutionCreate,
        Institution,
        "institutions",
        ("educational_id", "name", "zip_code", "town", "street", "number", "floor", "door"),
        ("educational_id",),
    ),
    DataCategory.EXAMINERS: (
        ExaminerCreate,
        Examiner,
        "examiners",
        ("first_name", "last_name", "date_of_birth", "email", "phone", "identity_card_number"),
        ("identity_card_number", "email", "phone"),
    ),
}


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # Excel stores numeric-looking IDs and phone numbers as floats
        value = int(value)
    text = str(value).strip()
    return text or None


def _clean(field: str, value: Any) -> Any:
    if field == "date_of_birth":
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
    if field == "zip_code" and isinstance(value, (int, float)):
        return value
    return _text(value)


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return as_utc(datetime(value.year, value.month, value.day))
    text = _text(value)
    if text is None:
        return None
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _describe(exc: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors())


def _pad(values: Sequence[Any], width: int) -> list[Any]:
    values = list(values[:width])
    return values + [None] * (width - len(values))


class ImportService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    @service_boundary("generating an import template")
    async def template(self, category: DataCategory, operator_id: int) -> ServiceResult[FileDownload]:
        wb, ws = new_sheet(category.entity_name, TEMPLATES[category])
        autosize(ws)
        content = to_bytes(wb)
        file_name = f"{category.entity_name}_Template.xlsx"
        staged = await FileHistoryService(self.uow).stage(
            operator_id=operator_id,
            file_name=file_name,
            content_type=XLSX_CONTENT_TYPE,
            content=content,
            action=FileAction.DOWNLOAD_TEMPLATE,
            category=category.file_category,
        )
        if not staged.succeeded:
            return staged
        await self.uow.save()
        logger.info("Generated %s import template", category.value)
        return ServiceResult.success(FileDownload(file_name=file_name, content_type=XLSX_CONTENT_TYPE, content=content))

    @service_boundary("importing data")
    async def import_file(
        self, category: DataCategory, content: bytes, operator_id: int, upload_name: str | None = None
    ) -> ServiceResult[ImportResult]:
        if not content:
            return ServiceResult.failed("The uploaded file is empty.", BAD_REQUEST_INVALID_FIELDS, "file")
        stamp = f"{utcnow():%Y%m%d_%H%M}"
        try:
            rows = list(read_rows(content))
        except (BadZipFile, InvalidFileException, KeyError, ValueError) as exc:
            logger.warning("Rejected %s import %r: %s", category.value, upload_name, exc)
            await FileHistoryService(self.uow).record(
                operator_id=operator_id,
                file_name=f"Failed_Import_{category.entity_name}_{stamp}.xlsx",
                content_type=XLSX_CONTENT_TYPE,
                content=content,
                action=FileAction.IMPORT,
                category=category.file_category,
                is_successful=False,
                processing_notes=f"Unreadable workbook: {exc}",
            )
            return ServiceResult.failed("The uploaded file is not a valid Excel workbook.", IMPORT_FILE_INVALID, "file")

        errors: list[str] = []
        if category is DataCategory.EXAMS:
            entities = await self._exam_rows(rows, operator_id, errors)
        else:
            entities = await self._simple_rows(category, rows, errors)

        repo_name = "exams" if category is DataCategory.EXAMS else SIMPLE_IMPORTS[category][2]
        await getattr(self.uow, repo_name).insert_many(entities)
        notes = f"Imported: {len(entities)}, Skipped/Errors: {len(errors)}"
        if upload_name:
            notes = f"{notes}. Source: {upload_name}"
        staged = await FileHistoryService(self.uow).stage(
            operator_id=operator_id,
            file_name=f"Import_{category.entity_name}_{stamp}.xlsx",
            content_type=XLSX_CONTENT_TYPE,
            content=content,
            action=FileAction.IMPORT,
            category=category.file_category,
            is_successful=not errors,
            processing_notes=notes,
        )
        if not staged.succeeded:
            return staged
        await self.uow.save()
        logger.info("Imported %d %s rows, %d skipped", len(entities), category.value, len(errors))
        return ServiceResult.success(
            ImportResult(success_count=len(entities), errors=errors),
            f"Import completed. {len(entities)} added, {len(errors)} skipped.",
        )

    async def _simple_rows(self, category: DataCategory, rows: list, errors: list[str]) -> list:
        schema, model, repo_name, fields, unique_fields = SIMPLE_IMPORTS[category]
        repo = getattr(self.uow, repo_name)
        seen: dict[str, set[str]] = {f: set() for f in unique_fields}
        entities = []
        for row_number, values in rows:
            raw = {f: _clean(f, v) for f, v in zip(fields, _pad(values, len(fields)))}
            try:
                dto = schema.model_validate(raw)
            except ValidationError as exc:
                errors.append(f"Row {row_number}: {_describe(exc)}")
                continue
            if category is DataCategory.EXAMINERS and dto.date_of_birth > date.today():
                errors.append(f"Row {row_number}: DateOfBirth cannot be in the future.")
                continue

            label = getattr(dto, unique_fields[0])
            skipped = None
            for name in unique_fields:
                value = str(getattr(dto, name))
                if value.lower() in seen[name]:
                    skipped = f"Skipped '{label}': Duplicate entry in file."
                    break
                # Soft-deleted examiners still hold their unique values
                if await repo.exists_with_deleted(getattr(model, name) == value):
                    skipped = f"Skipped '{label}': Already exists in database."
                    break
            if skipped:
                errors.append(skipped)
                continue
            for name in unique_fields:
                seen[name].add(str(getattr(dto, name)).lower())
            entities.append(model(**dto.model_dump()))
        return entities

    async def _exam_rows(self, rows: list, operator_id: int, errors: list[str]) -> list[Exam]:
        professions = {p.profession_name.lower(): p.id for p in await self.uow.professions.get()}
        institutions = {i.name.lower(): i.id for i in await self.uow.institutions.get()}
        exam_types = {t.type_name.lower(): t.id for t in await self.uow.exam_types.get()}
        examiners = {e.identity_card_number.lower(): e.id for e in await self.uow.examiners.get()}
        statuses = {s.value.lower(): s for s in ExamStatus}

        seen_codes: set[str] = set()
        exams: list[Exam] = []
        width = EXAM_FIXED_COLUMNS + 2 * EXAM_BOARD_SLOTS
        for row_number, values in rows:
            cells = _pad(values, width)
            name, code = _text(cells[0]), _text(cells[1])
            if not name or not code:
                errors.append(f"Row {row_number}: Name and Code are required.")
                continue
            exam_date = _parse_datetime(cells[2])
            if exam_date is None:
                errors.append(f"Row {row_number}: Date is invalid.")
                continue
            status = statuses.get((_text(cells[3]) or "").lower(), ExamStatus.PLANNED)

            references = {}
            missing = None
            for field, label, lookup, cell in (
                ("profession_id", "Profession", professions, cells[4]),
                ("institution_id", "Institution", institutions, cells[5]),
                ("exam_type_id", "Exam Type", exam_types, cells[6]),
            ):
                text = _text(cell)
                if text is None or text.lower() not in lookup:
                    missing = f"Row {row_number}: {label} '{text or ''}' not found."
                    break
                references[field] = lookup[text.lower()]
            if missing:
                errors.append(missing)
                continue

            boards, board_error = self._parse_board(row_number, cells, examiners)
            if board_error:
                errors.append(board_error)
                continue
            if not boards:
                errors.append(f"Row {row_number}: At least one examiner is required.")
                continue

            try:
                dto = ExamCreate(
                    exam_name=name,
                    exam_code=code,
                    exam_date=exam_date,
                    status=status,
                    exam_boards=[{"examiner_id": i, "role": r} for i, r in boards],
                    **references,
                )
            except ValidationError as exc:
                errors.append(f"Row {row_number}: {_describe(exc)}")
                continue

            if dto.exam_code.lower() in seen_codes:
                errors.append(f"Skipped '{dto.exam_code}': Duplicate code in file.")
                continue
            if await self.uow.exams.exists_with_deleted(Exam.exam_code == dto.exam_code):
                errors.append(f"Skipped '{dto.exam_code}': Duplicate code in DB.")
                continue
            seen_codes.add(dto.exam_code.lower())
            exams.append(
                Exam(
                    exam_name=dto.exam_name,
                    exam_code=dto.exam_code,
                    exam_date=dto.exam_date,
                    status=dto.status,
                    profession_id=dto.profession_id,
                    institution_id=dto.institution_id,
                    exam_type_id=dto.exam_type_id,
                    operator_id=operator_id,
                    exam_board=[ExamBoard(examiner_id=b.examiner_id, role=b.role) for b in dto.exam_boards],
                )
            )
        return exams

    @staticmethod
    def _parse_board(
        row_number: int, cells: list[Any], examiners: dict[str, int]
    ) -> tuple[list[tuple[int, str]], str | None]:
        """(examiner id, role) pairs from the Examiner/Role columns, or the first error found."""
        boards: list[tuple[int, str]] = []
        for slot in range(EXAM_BOARD_SLOTS):
            index = EXAM_FIXED_COLUMNS + 2 * slot
            column = index + 1
            examiner_cell, role = _text(cells[index]), _text(cells[index + 1])
            if examiner_cell is None:
                continue
            if role is None:
                return [], f"Row {row_number}: Examiner selected in column {column} but Role is missing."
            # "Name, IdentityCardNumber"; only the card number identifies the examiner
            parts = examiner_cell.rsplit(",", 1)
            card = parts[1].strip() if len(parts) == 2 else ""
            if not card:
                return [], f"Row {row_number}: Invalid examiner format in column {column}. Expected 'Name, ID'."
            examiner_id = examiners.get(card.lower())
            if examiner_id is None:
                return [], f"Row {row_number}: Examiner ID '{card}' not found."
            if any(existing == examiner_id for existing, _ in boards):
                return [], f"Row {row_number}: Examiner ID '{card}' is listed more than once."
            boards.append((examiner_id, role))
        return boards, None
