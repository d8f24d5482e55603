"""
Examiner API tests - unique fields, birth date rule and soft delete.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from exam_manager.db.models import ExamBoard, Examiner
from exam_manager.db.repositories import UnitOfWork


def new_examiner(**overrides) -> dict:
    payload = {
        "first_name": "Dóra",
        "last_name": "Varga",
        "date_of_birth": "1981-04-02",
        "email": "dora.varga@example.com",
        "phone": "+36301112233",
        "identity_card_number": "998877CD",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_and_get_examiner(client: AsyncClient, operator_headers):
    created = await client.post("/api/v1/examiners", json=new_examiner(), headers=operator_headers)
    assert created.status_code == 201
    examiner_id = created.json()["data"]["id"]

    fetched = await client.get(f"/api/v1/examiners/{examiner_id}", headers=operator_headers)
    assert fetched.status_code == 200
    assert fetched.json()["data"]["identity_card_number"] == "998877CD"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, error_code",
    [
        ("identity_card_number", "IDENTITY_CARD_DUPLICATE"),
        ("email", "EMAIL_DUPLICATE"),
        ("phone", "PHONE_DUPLICATE"),
    ],
)
async def test_duplicate_unique_field_rejected(
    client: AsyncClient, uow: UnitOfWork, reference_data, operator_headers, field, error_code
):
    taken = getattr(reference_data.examiners[0], field)
    response = await client.post("/api/v1/examiners", json=new_examiner(**{field: taken}), headers=operator_headers)
    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == error_code
    assert body["errors"][0].startswith(f"{field}:")
    assert await uow.examiners.count() == 3


@pytest.mark.asyncio
async def test_deleted_examiner_keeps_unique_values(client: AsyncClient, reference_data, operator_headers):
    examiner = reference_data.examiners[2]
    await client.delete(f"/api/v1/examiners/{examiner.id}", headers=operator_headers)
    response = await client.post(
        "/api/v1/examiners",
        json=new_examiner(identity_card_number=examiner.identity_card_number),
        headers=operator_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_future_birth_date_rejected(client: AsyncClient, operator_headers):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    response = await client.post(
        "/api/v1/examiners", json=new_examiner(date_of_birth=tomorrow), headers=operator_headers
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "BAD_REQUEST_INVALID_FIELDS"


@pytest.mark.asyncio
async def test_patch_examiner(client: AsyncClient, reference_data, operator_headers):
    first, second, _ = reference_data.examiners
    response = await client.patch(
        f"/api/v1/examiners/{first.id}",
        json=[{"op": "replace", "path": "/phone", "value": "+36209998877"}],
        headers=operator_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["phone"] == "+36209998877"

    clash = await client.patch(
        f"/api/v1/examiners/{first.id}",
        json=[{"op": "replace", "path": "/email", "value": second.email}],
        headers=operator_headers,
    )
    assert clash.status_code == 409
    assert clash.json()["error_code"] == "EMAIL_DUPLICATE"


@pytest.mark.asyncio
async def test_delete_examiner_leaves_board_rows(
    client: AsyncClient, uow: UnitOfWork, exam, reference_data, operator_headers
):
    examiner = reference_data.examiners[0]
    response = await client.delete(f"/api/v1/examiners/{examiner.id}", headers=operator_headers)
    assert response.status_code == 200

    assert (await client.get(f"/api/v1/examiners/{examiner.id}", headers=operator_headers)).status_code == 404
    listing = await client.get("/api/v1/examiners", headers=operator_headers)
    assert listing.json()["data"]["total"] == 2
    assert len(await uow.exam_boards.get(ExamBoard.examiner_id == examiner.id)) == 1

    deleted = await client.get("/api/v1/examiners/deleted", headers=operator_headers)
    [entry] = deleted.json()["data"]
    assert entry["id"] == examiner.id
    assert entry["deleted_by_operator_name"] == "operator"


@pytest.mark.asyncio
async def test_restore_examiner(client: AsyncClient, uow: UnitOfWork, reference_data, operator_headers):
    examiner = reference_data.examiners[1]
    assert (await client.post(f"/api/v1/examiners/{examiner.id}/restore", headers=operator_headers)).status_code == 409

    await client.delete(f"/api/v1/examiners/{examiner.id}", headers=operator_headers)
    again = await client.delete(f"/api/v1/examiners/{examiner.id}", headers=operator_headers)
    assert again.json()["error_code"] == "EXAMINER_ALREADY_DELETED"

    restored = await client.post(f"/api/v1/examiners/{examiner.id}/restore", headers=operator_headers)
    assert restored.status_code == 200
    stored = await uow.examiners.first(Examiner.id == examiner.id, populate_existing=True)
    assert stored.deleted_at is None and stored.deleted_by_id is None


@pytest.mark.asyncio
async def test_staff_can_read_but_not_write(client: AsyncClient, reference_data, staff_headers):
    assert (await client.get("/api/v1/examiners", headers=staff_headers)).status_code == 200
    assert (await client.post("/api/v1/examiners", json=new_examiner(), headers=staff_headers)).status_code == 403
    examiner_id = reference_data.examiners[0].id
    assert (await client.delete(f"/api/v1/examiners/{examiner_id}", headers=staff_headers)).status_code == 403
