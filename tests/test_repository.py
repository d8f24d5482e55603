"""
Repository and unit of work tests - soft delete filter, bypass, paging, atomicity.
"""

import math

import pytest
from sqlalchemy.exc import IntegrityError

from exam_manager.db.models import Exam, ExamBoard, Examiner, ExamType, Operator, Role
from exam_manager.db.repositories import EntityNotFoundError, UnitOfWork
from helpers import make_operator


@pytest.mark.asyncio
async def test_soft_deleted_rows_hidden_from_default_reads(uow: UnitOfWork, reference_data, admin):
    examiner = reference_data.examiners[0]
    await uow.examiners.soft_delete(examiner, admin.id)
    await uow.save()

    assert await uow.examiners.get_by_key(examiner.id) is None
    assert examiner.id not in [e.id for e in await uow.examiners.get()]
    assert await uow.examiners.count() == len(reference_data.examiners) - 1

    bypassed = await uow.examiners.first_with_deleted(Examiner.id == examiner.id)
    assert bypassed is not None
    assert bypassed.is_deleted is True
    assert bypassed.deleted_by_id == admin.id
    assert bypassed.deleted_at is not None


@pytest.mark.asyncio
async def test_restore_clears_deletion_fields(uow: UnitOfWork, reference_data, admin):
    examiner = reference_data.examiners[1]
    await uow.examiners.soft_delete(examiner, admin.id)
    await uow.save()
    await uow.examiners.restore(examiner)
    await uow.save()

    restored = await uow.examiners.get_by_key(examiner.id)
    assert restored is not None
    assert restored.is_deleted is False
    assert restored.deleted_at is None
    assert restored.deleted_by_id is None


@pytest.mark.asyncio
async def test_soft_delete_cascades_to_exam_board(uow: UnitOfWork, exam: Exam, admin):
    touched = await uow.exams.soft_delete(exam, admin.id)
    await uow.save()
    assert touched == 3

    assert await uow.exams.first(Exam.id == exam.id) is None
    assert await uow.exam_boards.get(ExamBoard.exam_id == exam.id) == []

    boards = await uow.exam_boards.get_with_deleted(ExamBoard.exam_id == exam.id)
    assert len(boards) == 2
    assert all(b.is_deleted for b in boards)
    assert {b.deleted_at for b in boards} == {exam.deleted_at}

    restored = await uow.exams.restore(exam)
    await uow.save()
    assert restored == 3
    assert len(await uow.exam_boards.get(ExamBoard.exam_id == exam.id)) == 2


@pytest.mark.asyncio
async def test_examiner_soft_delete_keeps_board_rows(uow: UnitOfWork, exam: Exam, reference_data, admin):
    await uow.examiners.soft_delete(reference_data.examiners[0], admin.id)
    await uow.save()
    assert len(await uow.exam_boards.get(ExamBoard.exam_id == exam.id)) == 2


@pytest.mark.asyncio
async def test_get_by_key_with_composite_key_and_collections(uow: UnitOfWork, exam: Exam, reference_data):
    board = await uow.exam_boards.get_by_key(exam.id, reference_data.examiners[1].id, references=["examiner"])
    assert board is not None
    assert board.role == "Member"
    assert board.examiner.last_name == "Szabó"

    loaded = await uow.exams.get_by_key(exam.id, references=["institution"], collections=["exam_board"])
    assert loaded.institution.name == "Budapest Technical College"
    assert len(loaded.exam_board) == 2

    with pytest.raises(ValueError):
        await uow.exam_boards.get_by_key(exam.id)


@pytest.mark.parametrize("total,page_size", [(0, 3), (7, 3), (9, 3), (5, 10)])
@pytest.mark.asyncio
async def test_paging_covers_every_row_once(uow: UnitOfWork, total: int, page_size: int):
    await uow.exam_types.insert_many(ExamType(type_name=f"Type {i:02d}") for i in range(total))
    await uow.save()

    pages = math.ceil(total / page_size)
    seen = []
    for page in range(1, pages + 2):
        rows, count = await uow.exam_types.get_paged(page=page, page_size=page_size, order_by=[ExamType.type_name])
        assert count == total
        if page > pages:
            assert rows == []
        else:
            assert 0 < len(rows) <= page_size
        seen.extend(r.id for r in rows)
    assert len(seen) == total
    assert len(set(seen)) == total


@pytest.mark.asyncio
async def test_paging_rejects_invalid_page(uow: UnitOfWork):
    with pytest.raises(ValueError):
        await uow.exam_types.get_paged(page=0)
    with pytest.raises(ValueError):
        await uow.exam_types.get_paged(page_size=0)


@pytest.mark.asyncio
async def test_failed_save_persists_nothing(uow: UnitOfWork):
    await make_operator(uow, "jdoe", Role.OPERATOR)
    await uow.exam_types.insert(ExamType(type_name="Written"))
    await uow.operators.insert(
        Operator(user_name="jdoe", password="x", first_name="J", last_name="Doe", role=Role.OPERATOR)
    )
    with pytest.raises(IntegrityError):
        await uow.save()

    assert await uow.exam_types.exists(ExamType.type_name == "Written") is False
    assert await uow.operators.count(Operator.user_name == "jdoe") == 1


@pytest.mark.asyncio
async def test_hard_delete_by_key(uow: UnitOfWork, reference_data):
    await uow.exam_types.delete(reference_data.exam_type.id)
    await uow.save()
    assert await uow.exam_types.get_by_key(reference_data.exam_type.id) is None

    with pytest.raises(EntityNotFoundError):
        await uow.exam_types.delete(reference_data.exam_type.id)


@pytest.mark.asyncio
async def test_closed_unit_of_work_rejects_use(session_maker):
    unit = UnitOfWork(session_maker())
    await unit.close()
    assert unit.closed
    with pytest.raises(RuntimeError):
        await unit.exam_types.get()
