"""
Exam service - exams and their boards of examiners.
Challenge: Validate every reference before staging anything, keep exam + board
changes in one save, and soft-delete/restore the board together with the exam.
"""

import logging
from datetime import timedelta

from sqlalchemy import and_

from exam_manager.db.base import as_utc, utcnow
from exam_manager.db.models import Exam, ExamBoard, Examiner, ExamStatus, FileAction, FileCategory
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.schemas.common import FileDownload, Page
from exam_manager.schemas.exam import ExamCreate, ExamResponse, ExamUpdate, UpcomingExamResponse
from exam_manager.services.file_history_service import FileHistoryService
from exam_manager.services.mapping import active_boards, deleted_by_names, exam_to_response, exam_to_upcoming
from exam_manager.services.report import PDF_CONTENT_TYPE, render_exam_board_report
from exam_manager.services.result import BAD_REQUEST_INVALID_FIELDS, ServiceResult, service_boundary

logger = logging.getLogger(__name__)

EXAM_NOT_FOUND = "EXAM_NOT_FOUND"
EXAM_CODE_DUPLICATE = "EXAM_CODE_DUPLICATE"
EXAM_BOARD_DETAILS_INVALID = "EXAM_BOARD_DETAILS_INVALID"
EXAMINER_NOT_FOUND = "EXAMINER_NOT_FOUND"

EXAM_INCLUDES = ("profession", "institution", "exam_type", "operator", "exam_board.examiner")

# field -> (unit of work repository, error code prefix, label)
EXAM_REFERENCES = {
    "profession_id": ("professions", "PROFESSION", "Profession"),
    "institution_id": ("institutions", "INSTITUTION", "Institution"),
    "exam_type_id": ("exam_types", "EXAM_TYPE", "Exam type"),
}


class ExamService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    # --- validation helpers ---------------------------------------------------

    async def _check_reference(self, field: str, value: int) -> ServiceResult | None:
        repo_name, prefix, label = EXAM_REFERENCES[field]
        if value <= 0:
            return ServiceResult.failed(f"{label} id must be positive.", f"{prefix}_ID_INVALID", field)
        if await getattr(self.uow, repo_name).get_by_key(value) is None:
            return ServiceResult.failed(f"{label} {value} not found.", f"{prefix}_NOT_FOUND", field)
        return None

    async def _check_code(self, code: str, exclude_id: int | None = None) -> ServiceResult | None:
        predicate = Exam.exam_code == code
        if exclude_id is not None:
            predicate = and_(predicate, Exam.id != exclude_id)
        # Deleted exams keep their code reserved
        if await self.uow.exams.exists_with_deleted(predicate):
            return ServiceResult.failed(f"Exam code '{code}' is already taken.", EXAM_CODE_DUPLICATE, "exam_code")
        return None

    async def _check_examiners(self, examiner_ids: list[int]) -> ServiceResult | None:
        if len(set(examiner_ids)) != len(examiner_ids):
            return ServiceResult.failed(
                "An examiner can only appear once on a board.", EXAM_BOARD_DETAILS_INVALID, "exam_boards"
            )
        if not examiner_ids:
            return None
        found = {e.id for e in await self.uow.examiners.get(Examiner.id.in_(examiner_ids))}
        missing = [i for i in examiner_ids if i not in found]
        if missing:
            return ServiceResult.failed(
                f"Examiner(s) not found: {', '.join(map(str, missing))}.", EXAMINER_NOT_FOUND, "exam_boards"
            )
        return None

    async def _load(self, exam_id: int) -> Exam | None:
        return await self.uow.exams.first(Exam.id == exam_id, includes=EXAM_INCLUDES, populate_existing=True)

    # --- use cases ------------------------------------------------------------

    @service_boundary("creating an exam")
    async def create(self, data: ExamCreate, operator_id: int) -> ServiceResult[ExamResponse]:
        exam_date = as_utc(data.exam_date)
        if exam_date < utcnow():
            return ServiceResult.failed("Exam date cannot be in the past.", BAD_REQUEST_INVALID_FIELDS, "exam_date")
        if not data.exam_boards:
            return ServiceResult.failed(
                "At least one examiner must be assigned.", EXAM_BOARD_DETAILS_INVALID, "exam_boards"
            )
        for field in EXAM_REFERENCES:
            invalid = await self._check_reference(field, getattr(data, field))
            if invalid:
                return invalid
        invalid = await self._check_code(data.exam_code) or await self._check_examiners(
            [b.examiner_id for b in data.exam_boards]
        )
        if invalid:
            return invalid

        exam = Exam(
            exam_name=data.exam_name,
            exam_code=data.exam_code,
            exam_date=exam_date,
            status=data.status,
            profession_id=data.profession_id,
            institution_id=data.institution_id,
            exam_type_id=data.exam_type_id,
            operator_id=operator_id,
            exam_board=[ExamBoard(examiner_id=b.examiner_id, role=b.role) for b in data.exam_boards],
        )
        await self.uow.exams.insert(exam)
        await self.uow.save()
        logger.info("Created exam %s (%s) with %d examiners", exam.id, exam.exam_code, len(data.exam_boards))
        return ServiceResult.success(exam_to_response(await self._load(exam.id)), "Create successful.")

    @service_boundary("fetching an exam")
    async def get(self, exam_id: int) -> ServiceResult[ExamResponse]:
        exam = await self._load(exam_id)
        if exam is None:
            return ServiceResult.failed(f"Exam {exam_id} not found.", EXAM_NOT_FOUND)
        return ServiceResult.success(exam_to_response(exam))

    @service_boundary("listing exams")
    async def get_page(
        self, page: int = 1, page_size: int = 20, status: ExamStatus | None = None
    ) -> ServiceResult[Page[ExamResponse]]:
        predicate = Exam.status == status if status is not None else None
        rows, total = await self.uow.exams.get_paged(
            predicate, page, page_size, includes=EXAM_INCLUDES, order_by=[Exam.exam_date.desc(), Exam.id]
        )
        return ServiceResult.success(
            Page(items=[exam_to_response(r) for r in rows], total=total, page=page, page_size=page_size)
        )

    @service_boundary("listing deleted exams")
    async def list_deleted(self) -> ServiceResult[list[ExamResponse]]:
        rows = await self.uow.exams.get_with_deleted(Exam.is_deleted.is_(True), includes=EXAM_INCLUDES)
        names = await deleted_by_names(self.uow, rows)
        return ServiceResult.success([exam_to_response(r, names) for r in rows])

    @service_boundary("updating an exam")
    async def update(self, exam_id: int, data: ExamUpdate) -> ServiceResult[ExamResponse]:
        exam = await self.uow.exams.first(Exam.id == exam_id, includes=["exam_board"], populate_existing=True)
        if exam is None:
            return ServiceResult.failed(f"Exam {exam_id} not found.", EXAM_NOT_FOUND)

        # Work out and validate every change before touching the entity
        changes: dict = {}
        if data.exam_name is not None and data.exam_name != exam.exam_name:
            changes["exam_name"] = data.exam_name
        if data.exam_code is not None and data.exam_code != exam.exam_code:
            invalid = await self._check_code(data.exam_code, exclude_id=exam_id)
            if invalid:
                return invalid
            changes["exam_code"] = data.exam_code
        if data.exam_date is not None and as_utc(data.exam_date) != as_utc(exam.exam_date):
            changes["exam_date"] = as_utc(data.exam_date)
        if data.status is not None and data.status != exam.status:
            changes["status"] = data.status
        for field in EXAM_REFERENCES:
            value = getattr(data, field)
            if value is not None and value != getattr(exam, field):
                invalid = await self._check_reference(field, value)
                if invalid:
                    return invalid
                changes[field] = value

        current = {b.examiner_id: b for b in exam.exam_board if not b.is_deleted}
        to_add: list[ExamBoard] = []
        to_remove: list[ExamBoard] = []
        role_changes: dict[int, str] = {}
        if data.exam_boards is not None:
            if not data.exam_boards:
                return ServiceResult.failed(
                    "At least one examiner must be assigned.", EXAM_BOARD_DETAILS_INVALID, "exam_boards"
                )
            desired_ids = [b.examiner_id for b in data.exam_boards]
            new_ids = [i for i in desired_ids if i not in current]
            if len(set(desired_ids)) != len(desired_ids):
                return ServiceResult.failed(
                    "An examiner can only appear once on a board.", EXAM_BOARD_DETAILS_INVALID, "exam_boards"
                )
            invalid = await self._check_examiners(new_ids)
            if invalid:
                return invalid
            for entry in data.exam_boards:
                board = current.get(entry.examiner_id)
                if board is None:
                    if not entry.role:
                        return ServiceResult.failed(
                            f"Role is required for new examiner {entry.examiner_id}.",
                            EXAM_BOARD_DETAILS_INVALID,
                            "exam_boards",
                        )
                    to_add.append(ExamBoard(examiner_id=entry.examiner_id, role=entry.role))
                elif entry.role and entry.role != board.role:
                    role_changes[entry.examiner_id] = entry.role
            to_remove = [b for i, b in current.items() if i not in set(desired_ids)]

        if not (changes or to_add or to_remove or role_changes):
            return ServiceResult.success(exam_to_response(await self._load(exam_id)), "No changes detected to update.")

        for name, value in changes.items():
            setattr(exam, name, value)
        for board in to_remove:
            # Join rows are hard-deleted (delete-orphan) when an examiner leaves the board
            exam.exam_board.remove(board)
        for examiner_id, role in role_changes.items():
            current[examiner_id].role = role
        exam.exam_board.extend(to_add)
        await self.uow.save()
        logger.info(
            "Updated exam %s: fields=%s added=%d removed=%d roles=%d",
            exam_id,
            sorted(changes),
            len(to_add),
            len(to_remove),
            len(role_changes),
        )
        return ServiceResult.success(exam_to_response(await self._load(exam_id)), "Update successful.")

    @service_boundary("deleting an exam")
    async def delete(self, exam_id: int, acting_operator_id: int) -> ServiceResult[None]:
        exam = await self.uow.exams.first_with_deleted(Exam.id == exam_id)
        if exam is None:
            return ServiceResult.failed(f"Exam {exam_id} not found.", EXAM_NOT_FOUND)
        if exam.is_deleted:
            return ServiceResult.failed(f"Exam {exam_id} is already deleted.", "EXAM_ALREADY_DELETED")
        touched = await self.uow.exams.soft_delete(exam, acting_operator_id)
        await self.uow.save()
        logger.info("Exam %s deleted by %s (%d rows)", exam_id, acting_operator_id, touched)
        return ServiceResult.success(message="Exam deleted successfully.")

    @service_boundary("restoring an exam")
    async def restore(self, exam_id: int) -> ServiceResult[ExamResponse]:
        exam = await self.uow.exams.first_with_deleted(Exam.id == exam_id)
        if exam is None:
            return ServiceResult.failed(f"Exam {exam_id} not found.", EXAM_NOT_FOUND)
        if not exam.is_deleted:
            return ServiceResult.failed(f"Exam {exam_id} is not deleted.", "EXAM_ALREADY_RESTORED")
        touched = await self.uow.exams.restore(exam)
        await self.uow.save()
        logger.info("Exam %s restored (%d rows)", exam_id, touched)
        return ServiceResult.success(exam_to_response(await self._load(exam_id)), "Exam restored successfully.")

    @service_boundary("listing upcoming exams")
    async def upcoming(self, days_ahead: int = 3) -> ServiceResult[list[UpcomingExamResponse]]:
        if days_ahead < 0:
            return ServiceResult.failed("days_ahead cannot be negative.", BAD_REQUEST_INVALID_FIELDS, "days_ahead")
        now = utcnow()
        rows = await self.uow.exams.get(
            and_(Exam.exam_date >= now, Exam.exam_date <= now + timedelta(days=days_ahead)),
            includes=["institution"],
            order_by=[Exam.exam_date, Exam.id],
        )
        return ServiceResult.success([exam_to_upcoming(r) for r in rows])

    @service_boundary("generating an exam board report")
    async def generate_board_report(
        self, exam_id: int, operator_id: int, language: str = "en"
    ) -> ServiceResult[FileDownload]:
        exam = await self._load(exam_id)
        if exam is None:
            return ServiceResult.failed(f"Exam {exam_id} not found.", EXAM_NOT_FOUND)
        boards = active_boards(exam)
        if not boards:
            return ServiceResult.failed(f"Exam {exam_id} has no examiners assigned.", "NO_EXAMINERS_FOUND")

        content = render_exam_board_report(exam, boards, language)
        file_name = f"{exam.exam_code}_BoardReport.pdf"
        staged = await FileHistoryService(self.uow).stage(
            operator_id=operator_id,
            file_name=file_name,
            content_type=PDF_CONTENT_TYPE,
            content=content,
            action=FileAction.GENERATE_REPORT,
            category=FileCategory.EXAM,
            related_entity_id=exam.id,
            processing_notes=f"{len(boards)} examiners, language={language}",
        )
        if not staged.succeeded:
            return staged
        await self.uow.save()
        logger.info("Generated board report for exam %s", exam_id)
        return ServiceResult.success(FileDownload(file_name=file_name, content_type=PDF_CONTENT_TYPE, content=content))
