"""
Excel export/import, templates and file history tests.
"""

from datetime import date, timedelta
from io import BytesIO

import pytest
from httpx import AsyncClient
from openpyxl import Workbook, load_workbook

from exam_manager.db.base import utcnow
from exam_manager.db.models import Exam, Examiner, FileAction, FileHistory
from exam_manager.db.repositories import UnitOfWork

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def workbook_bytes(headers: list[str], rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(row)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def upload(content: bytes, name: str = "upload.xlsx") -> dict:
    return {"file": (name, content, XLSX)}


@pytest.mark.asyncio
async def test_export_examiners_marks_deleted_rows(
    client: AsyncClient, uow: UnitOfWork, reference_data, operator, operator_headers
):
    await client.delete(f"/api/v1/examiners/{reference_data.examiners[1].id}", headers=operator_headers)

    response = await client.get("/api/v1/export/examiners", headers=operator_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX
    assert "Examiners_Export_" in response.headers["content-disposition"]

    ws = load_workbook(BytesIO(response.content)).active
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0] == ("Id", "FirstName", "LastName", "DateOfBirth", "Email", "Phone", "IdentityCardNumber", "Status")
    assert [r[-1] for r in rows[1:]] == ["Active", "Deleted", "Active"]
    assert ws.cell(row=3, column=2).font.color.rgb.endswith("FF0000")

    [history] = await uow.file_histories.get(FileHistory.action == FileAction.EXPORT)
    assert history.operator_id == operator.id
    assert history.file_name.startswith("Examiners_Export_")


@pytest.mark.asyncio
async def test_export_selected_exams(client: AsyncClient, uow: UnitOfWork, exam, reference_data, operator_headers):
    exam_id = exam.id
    # Start from a clean identity map so the board examiners are loaded like in a fresh request
    uow.session.expire_all()
    response = await client.post("/api/v1/export/exams", json={"ids": [exam_id]}, headers=operator_headers)
    assert response.status_code == 200
    rows = list(load_workbook(BytesIO(response.content)).active.iter_rows(values_only=True))
    assert len(rows) == 2
    header, row = rows
    record = dict(zip(header, row))
    assert record["ExamCode"] == "SD-2026-001"
    assert record["Institution"] == "Budapest Technical College"
    assert "Anna Kovács (Chair)" in record["Examiners"]
    assert record["RecordStatus"] == "Active"


@pytest.mark.asyncio
async def test_export_unknown_category(client: AsyncClient, operator_headers):
    response = await client.get("/api/v1/export/cars", headers=operator_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_download_template(client: AsyncClient, uow: UnitOfWork, staff_headers):
    response = await client.get("/api/v1/import/templates/exams", headers=staff_headers)
    assert response.status_code == 200
    assert "Exams_Template.xlsx" in response.headers["content-disposition"]
    header = next(load_workbook(BytesIO(response.content)).active.iter_rows(values_only=True))
    assert header[:7] == ("ExamName", "ExamCode", "ExamDate", "Status", "Profession", "Institution", "ExamType")
    assert header[-2:] == ("Examiner5", "Role5")

    [history] = await uow.file_histories.get()
    assert history.action == FileAction.DOWNLOAD_TEMPLATE


@pytest.mark.asyncio
async def test_import_examiners(client: AsyncClient, uow: UnitOfWork, reference_data, operator_headers):
    existing = reference_data.examiners[0]
    content = workbook_bytes(
        ["FirstName", "LastName", "DateOfBirth", "Email", "Phone", "IdentityCardNumber"],
        [
            ["Dóra", "Varga", date(1981, 4, 2), "dora@example.com", 36301112233, "998877CD"],
            ["Ede", "Kiss", date(1975, 9, 9), "ede@example.com", "+36305554444", "998877CD"],
            ["Feri", "Nagy", date(1990, 1, 1), existing.email, "+36306667777", "111222EF"],
            ["Gabi", "Molnár", date.today() + timedelta(days=30), "gabi@example.com", "+36307778888", "333444GH"],
            ["Hedi", "", date(1985, 5, 5), "not-an-email", "+36308889999", "555666IJ"],
        ],
    )
    response = await client.post("/api/v1/import/examiners", files=upload(content), headers=operator_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Import completed. 1 added, 4 skipped."
    errors = body["data"]["errors"]
    assert body["data"]["success_count"] == 1
    assert "Skipped '998877CD': Duplicate entry in file." in errors
    assert "Skipped '111222EF': Already exists in database." in errors
    assert "Row 5: DateOfBirth cannot be in the future." in errors
    assert any(e.startswith("Row 6: ") for e in errors)

    imported = await uow.examiners.first(Examiner.identity_card_number == "998877CD")
    assert imported.phone == "36301112233"

    [history] = await uow.file_histories.get(FileHistory.action == FileAction.IMPORT)
    assert history.processing_notes.startswith("Imported: 1, Skipped/Errors: 4")
    assert history.is_successful is False


@pytest.mark.asyncio
async def test_import_exams(client: AsyncClient, uow: UnitOfWork, exam, reference_data, operator, operator_headers):
    anna, bence, csilla = reference_data.examiners
    exam_date = (utcnow() + timedelta(days=20)).replace(tzinfo=None)
    headers = ["ExamName", "ExamCode", "ExamDate", "Status", "Profession", "Institution", "ExamType",
               "Examiner1", "Role1", "Examiner2", "Role2"]
    content = workbook_bytes(
        headers,
        [
            ["Spring final", "SD-2027-001", exam_date, "active", "software developer", "Budapest Technical College",
             "Oral", f"{anna.full_name}, {anna.identity_card_number}", "Chair",
             f"{csilla.full_name}, {csilla.identity_card_number}", "Member"],
            ["Duplicate", exam.exam_code, exam_date, "Planned", "Software developer", "Budapest Technical College",
             "Oral", f"{bence.full_name}, {bence.identity_card_number}", "Chair"],
            ["No role", "SD-2027-002", exam_date, "Planned", "Software developer", "Budapest Technical College",
             "Oral", f"{bence.full_name}, {bence.identity_card_number}", None],
            ["Unknown type", "SD-2027-003", exam_date, "Planned", "Software developer", "Budapest Technical College",
             "Written", f"{bence.full_name}, {bence.identity_card_number}", "Chair"],
            ["Bad date", "SD-2027-004", "next tuesday", "Planned", "Software developer",
             "Budapest Technical College", "Oral", f"{bence.full_name}, {bence.identity_card_number}", "Chair"],
        ],
    )
    response = await client.post("/api/v1/import/exams", files=upload(content), headers=operator_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["success_count"] == 1
    assert data["errors"] == [
        f"Skipped '{exam.exam_code}': Duplicate code in DB.",
        "Row 4: Examiner selected in column 8 but Role is missing.",
        "Row 5: Exam Type 'Written' not found.",
        "Row 6: Date is invalid.",
    ]

    imported = await uow.exams.first(Exam.exam_code == "SD-2027-001", includes=["exam_board"])
    assert imported.status.value == "Active"
    assert imported.operator_id == operator.id
    assert {(b.examiner_id, b.role) for b in imported.exam_board} == {(anna.id, "Chair"), (csilla.id, "Member")}


@pytest.mark.asyncio
async def test_import_rejects_unreadable_file(client: AsyncClient, uow: UnitOfWork, operator_headers):
    response = await client.post(
        "/api/v1/import/professions", files=upload(b"this is not a workbook", "notes.xlsx"), headers=operator_headers
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "IMPORT_FILE_INVALID"

    [history] = await uow.file_histories.get()
    assert history.is_successful is False
    assert history.file_name.startswith("Failed_Import_Professions_")


@pytest.mark.asyncio
async def test_import_requires_editor(client: AsyncClient, staff_headers):
    content = workbook_bytes(["TypeName", "Description"], [["Written", None]])
    response = await client.post("/api/v1/import/exam-types", files=upload(content), headers=staff_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_file_history_list_and_download(client: AsyncClient, operator_headers):
    template = await client.get("/api/v1/import/templates/professions", headers=operator_headers)

    listing = await client.get("/api/v1/file-history", headers=operator_headers)
    assert listing.status_code == 200
    [entry] = listing.json()["data"]["items"]
    assert entry["file_name"] == "Professions_Template.xlsx"
    assert entry["operator_user_name"] == "operator"
    assert entry["file_size_in_bytes"] == len(template.content)

    download = await client.get(f"/api/v1/file-history/{entry['id']}/download", headers=operator_headers)
    assert download.status_code == 200
    assert download.content == template.content

    missing = await client.get("/api/v1/file-history/9999/download", headers=operator_headers)
    assert missing.status_code == 404
