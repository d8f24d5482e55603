"""
Exam API tests - creation rules, board changes, soft delete with cascade and the board report.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from exam_manager.db.base import utcnow
from exam_manager.db.models import Exam, ExamBoard, FileAction, FileHistory
from exam_manager.db.repositories import UnitOfWork
from helpers import exam_payload


@pytest.mark.asyncio
async def test_create_exam(client: AsyncClient, reference_data, operator, operator_headers):
    response = await client.post("/api/v1/exams", json=exam_payload(reference_data), headers=operator_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Create successful."
    data = body["data"]
    assert data["exam_code"] == "EL-2026-010"
    assert data["status"] == "Planned"
    assert data["operator_id"] == operator.id
    assert data["profession_name"] == "Software developer"
    assert {(b["examiner_id"], b["role"]) for b in data["exam_boards"]} == {
        (reference_data.examiners[0].id, "Chair"),
        (reference_data.examiners[2].id, "Secretary"),
    }


@pytest.mark.asyncio
async def test_staff_cannot_create_exam(client: AsyncClient, reference_data, staff_headers):
    response = await client.post("/api/v1/exams", json=exam_payload(reference_data), headers=staff_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_exam_in_past_rejected(client: AsyncClient, uow: UnitOfWork, reference_data, operator_headers):
    payload = exam_payload(reference_data, exam_date=(utcnow() - timedelta(days=1)).isoformat())
    response = await client.post("/api/v1/exams", json=payload, headers=operator_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "BAD_REQUEST_INVALID_FIELDS"
    assert await uow.exams.count() == 0


@pytest.mark.asyncio
async def test_create_exam_with_repeated_examiner_rejected(
    client: AsyncClient, uow: UnitOfWork, reference_data, operator_headers
):
    examiner_id = reference_data.examiners[0].id
    payload = exam_payload(
        reference_data,
        exam_boards=[{"examiner_id": examiner_id, "role": "Chair"}, {"examiner_id": examiner_id, "role": "Member"}],
    )
    response = await client.post("/api/v1/exams", json=payload, headers=operator_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "EXAM_BOARD_DETAILS_INVALID"
    assert await uow.exams.count() == 0
    assert await uow.exam_boards.count() == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, error_code",
    [
        ("profession_id", "PROFESSION_NOT_FOUND"),
        ("institution_id", "INSTITUTION_NOT_FOUND"),
        ("exam_type_id", "EXAM_TYPE_NOT_FOUND"),
    ],
)
async def test_create_exam_with_unknown_reference(
    client: AsyncClient, reference_data, operator_headers, field, error_code
):
    response = await client.post(
        "/api/v1/exams", json=exam_payload(reference_data, **{field: 9999}), headers=operator_headers
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == error_code


@pytest.mark.asyncio
async def test_create_exam_with_unknown_examiner(client: AsyncClient, reference_data, operator_headers):
    payload = exam_payload(reference_data, exam_boards=[{"examiner_id": 9999, "role": "Chair"}])
    response = await client.post("/api/v1/exams", json=payload, headers=operator_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "EXAMINER_NOT_FOUND"


@pytest.mark.asyncio
async def test_exam_code_stays_reserved_after_delete(client: AsyncClient, exam, reference_data, operator_headers):
    duplicate = exam_payload(reference_data, exam_code=exam.exam_code)
    response = await client.post("/api/v1/exams", json=duplicate, headers=operator_headers)
    assert response.status_code == 409
    assert response.json()["error_code"] == "EXAM_CODE_DUPLICATE"

    await client.delete(f"/api/v1/exams/{exam.id}", headers=operator_headers)
    response = await client.post("/api/v1/exams", json=duplicate, headers=operator_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_soft_delete_hides_exam_and_board(
    client: AsyncClient, uow: UnitOfWork, exam, operator, operator_headers
):
    response = await client.delete(f"/api/v1/exams/{exam.id}", headers=operator_headers)
    assert response.status_code == 200

    assert (await client.get(f"/api/v1/exams/{exam.id}", headers=operator_headers)).status_code == 404
    listing = await client.get("/api/v1/exams", headers=operator_headers)
    assert listing.json()["data"]["total"] == 0
    assert await uow.exam_boards.get(ExamBoard.exam_id == exam.id) == []

    stored = await uow.exams.first_with_deleted(Exam.id == exam.id, populate_existing=True)
    assert stored.is_deleted is True
    assert stored.deleted_by_id == operator.id
    boards = await uow.exam_boards.get_with_deleted(ExamBoard.exam_id == exam.id)
    assert len(boards) == 2
    assert all(b.is_deleted and b.deleted_by_id == operator.id for b in boards)

    deleted = await client.get("/api/v1/exams/deleted", headers=operator_headers)
    [entry] = deleted.json()["data"]
    assert entry["exam_code"] == exam.exam_code
    assert entry["deleted_by_operator_name"] == "operator"

    again = await client.delete(f"/api/v1/exams/{exam.id}", headers=operator_headers)
    assert again.status_code == 409
    assert again.json()["error_code"] == "EXAM_ALREADY_DELETED"


@pytest.mark.asyncio
async def test_restore_exam_restores_board(client: AsyncClient, exam, operator_headers):
    await client.delete(f"/api/v1/exams/{exam.id}", headers=operator_headers)

    response = await client.post(f"/api/v1/exams/{exam.id}/restore", headers=operator_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_deleted"] is False
    assert len(data["exam_boards"]) == 2

    twice = await client.post(f"/api/v1/exams/{exam.id}/restore", headers=operator_headers)
    assert twice.status_code == 409
    assert twice.json()["error_code"] == "EXAM_ALREADY_RESTORED"


@pytest.mark.asyncio
async def test_patch_exam_board(client: AsyncClient, uow: UnitOfWork, exam, reference_data, operator_headers):
    chair, member, newcomer = reference_data.examiners
    response = await client.patch(
        f"/api/v1/exams/{exam.id}",
        json=[
            {"op": "replace", "path": "/exam_name", "value": "Software developer final (retake)"},
            {
                "op": "replace",
                "path": "/exam_boards",
                "value": [
                    {"examiner_id": chair.id, "role": "President"},
                    {"examiner_id": newcomer.id, "role": "Member"},
                ],
            },
        ],
        headers=operator_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["exam_name"] == "Software developer final (retake)"
    assert {(b["examiner_id"], b["role"]) for b in data["exam_boards"]} == {
        (chair.id, "President"),
        (newcomer.id, "Member"),
    }
    # The examiner who left the board has no row at all, deleted or not
    assert await uow.exam_boards.get_with_deleted(ExamBoard.examiner_id == member.id) == []


@pytest.mark.asyncio
async def test_patch_exam_code_to_taken_code_rejected(
    client: AsyncClient, uow: UnitOfWork, exam, reference_data, operator_headers
):
    taken = exam.exam_code
    created = await client.post(
        "/api/v1/exams", json=exam_payload(reference_data, exam_code="SD-2026-002"), headers=operator_headers
    )
    other_id = created.json()["data"]["id"]

    response = await client.patch(
        f"/api/v1/exams/{other_id}",
        json=[{"op": "replace", "path": "/exam_code", "value": taken}],
        headers=operator_headers,
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "EXAM_CODE_DUPLICATE"

    fetched = await client.get(f"/api/v1/exams/{other_id}", headers=operator_headers)
    assert fetched.json()["data"]["exam_code"] == "SD-2026-002"
    assert await uow.exams.count(Exam.exam_code == taken) == 1


@pytest.mark.asyncio
async def test_patch_exam_without_changes(client: AsyncClient, exam, operator_headers):
    response = await client.patch(
        f"/api/v1/exams/{exam.id}",
        json=[{"op": "replace", "path": "/exam_name", "value": exam.exam_name}],
        headers=operator_headers,
    )
    assert response.status_code == 200
    assert response.json()["message"] == "No changes detected to update."


@pytest.mark.asyncio
async def test_patch_exam_rejects_new_examiner_without_role(client: AsyncClient, exam, reference_data, operator_headers):
    response = await client.patch(
        f"/api/v1/exams/{exam.id}",
        json=[{"op": "add", "path": "/exam_boards/-", "value": {"examiner_id": reference_data.examiners[2].id}}],
        headers=operator_headers,
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "EXAM_BOARD_DETAILS_INVALID"


@pytest.mark.asyncio
async def test_upcoming_exams(client: AsyncClient, exam, operator_headers):
    soon = await client.get("/api/v1/exams/upcoming?days_ahead=3", headers=operator_headers)
    assert [e["exam_code"] for e in soon.json()["data"]] == [exam.exam_code]
    assert soon.json()["data"][0]["institution_name"] == "Budapest Technical College"

    tomorrow = await client.get("/api/v1/exams/upcoming?days_ahead=1", headers=operator_headers)
    assert tomorrow.json()["data"] == []

    negative = await client.get("/api/v1/exams/upcoming?days_ahead=-1", headers=operator_headers)
    assert negative.status_code == 422


@pytest.mark.asyncio
async def test_list_exams_filtered_by_status(client: AsyncClient, exam, reference_data, operator_headers):
    await client.post(
        "/api/v1/exams", json=exam_payload(reference_data, status="Active"), headers=operator_headers
    )
    active = await client.get("/api/v1/exams?status=Active", headers=operator_headers)
    assert [e["exam_code"] for e in active.json()["data"]["items"]] == ["EL-2026-010"]
    everything = await client.get("/api/v1/exams", headers=operator_headers)
    # Latest exam date first
    assert [e["exam_code"] for e in everything.json()["data"]["items"]] == ["EL-2026-010", exam.exam_code]


@pytest.mark.asyncio
async def test_board_report_pdf(client: AsyncClient, uow: UnitOfWork, exam, staff, staff_headers):
    response = await client.get(f"/api/v1/exams/{exam.id}/board-report?language=hu", headers=staff_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "SD-2026-001_BoardReport.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")

    [history] = await uow.file_histories.get()
    assert history.action == FileAction.GENERATE_REPORT
    assert history.related_entity_id == exam.id
    assert history.operator_id == staff.id


@pytest.mark.asyncio
async def test_board_report_without_examiners(client: AsyncClient, uow: UnitOfWork, reference_data, operator, operator_headers):
    empty = Exam(
        exam_name="Empty board",
        exam_code="EMPTY-1",
        exam_date=utcnow() + timedelta(days=5),
        profession_id=reference_data.profession.id,
        institution_id=reference_data.institution.id,
        exam_type_id=reference_data.exam_type.id,
        operator_id=operator.id,
    )
    await uow.exams.insert(empty)
    await uow.save()

    response = await client.get(f"/api/v1/exams/{empty.id}/board-report", headers=operator_headers)
    assert response.status_code == 400
    assert response.json()["error_code"] == "NO_EXAMINERS_FOUND"
    assert await uow.file_histories.count(FileHistory.related_entity_id == empty.id) == 0
