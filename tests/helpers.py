"""
Plain helpers shared by tests (fixtures live in conftest.py).
"""

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import event

from exam_manager.core.security import create_access_token, hash_password
from exam_manager.db.base import utcnow
from exam_manager.db.models import Examiner, ExamType, Institution, Operator, Profession, Role
from exam_manager.db.repositories.unit_of_work import UnitOfWork

TEST_PASSWORD = "password123"


def enable_sqlite_foreign_keys(engine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def make_operator(
    uow: UnitOfWork, user_name: str, role: Role, email: str | None = None, password: str = TEST_PASSWORD
) -> Operator:
    operator = Operator(
        user_name=user_name,
        password=hash_password(password),
        first_name=user_name.capitalize(),
        last_name="Tester",
        role=role,
        email=email,
    )
    await uow.operators.insert(operator)
    await uow.save()
    return operator


def headers_for(operator: Operator) -> dict:
    token, _ = create_access_token(operator.id)
    return {"Authorization": f"Bearer {token}"}


@dataclass
class ReferenceData:
    exam_type: ExamType
    profession: Profession
    institution: Institution
    examiners: list[Examiner]


def exam_payload(reference_data: ReferenceData, **overrides) -> dict:
    payload = {
        "exam_name": "Electrician practical",
        "exam_code": "EL-2026-010",
        "exam_date": (utcnow() + timedelta(days=10)).isoformat(),
        "profession_id": reference_data.profession.id,
        "institution_id": reference_data.institution.id,
        "exam_type_id": reference_data.exam_type.id,
        "exam_boards": [
            {"examiner_id": reference_data.examiners[0].id, "role": "Chair"},
            {"examiner_id": reference_data.examiners[2].id, "role": "Secretary"},
        ],
    }
    payload.update(overrides)
    return payload
