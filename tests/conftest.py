"""
Pytest fixtures - test DB, unit of work, client, auth (TDD/BDD support).
Challenge: Isolated tests; one in-memory SQLite database per test, shared by
the fixtures and the API through a single unit of work.
"""

from collections.abc import AsyncGenerator
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from exam_manager.db.base import Base, utcnow
from exam_manager.db.models import (
    Exam,
    ExamBoard,
    Examiner,
    ExamType,
    Institution,
    Operator,
    Profession,
    Role,
)
from exam_manager.db.repositories.unit_of_work import UnitOfWork
from exam_manager.db.session import get_uow
from exam_manager.main import app
from helpers import ReferenceData, enable_sqlite_foreign_keys, headers_for, make_operator

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def uow(session_maker) -> AsyncGenerator[UnitOfWork, None]:
    async with UnitOfWork(session_maker()) as unit:
        yield unit


@pytest_asyncio.fixture
async def client(uow: UnitOfWork):
    async def override_get_uow():
        yield uow

    app.dependency_overrides[get_uow] = override_get_uow
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin(uow: UnitOfWork) -> Operator:
    return await make_operator(uow, "admin", Role.ADMIN, email="admin@example.com")


@pytest_asyncio.fixture
async def operator(uow: UnitOfWork) -> Operator:
    return await make_operator(uow, "operator", Role.OPERATOR, email="operator@example.com")


@pytest_asyncio.fixture
async def staff(uow: UnitOfWork) -> Operator:
    return await make_operator(uow, "staff", Role.STAFF)


@pytest.fixture
def admin_headers(admin: Operator) -> dict:
    return headers_for(admin)


@pytest.fixture
def operator_headers(operator: Operator) -> dict:
    return headers_for(operator)


@pytest.fixture
def staff_headers(staff: Operator) -> dict:
    return headers_for(staff)


@pytest_asyncio.fixture
async def reference_data(uow: UnitOfWork) -> ReferenceData:
    exam_type = ExamType(type_name="Oral", description="Oral exam in front of the board")
    profession = Profession(keor_id="4 0613 12 03", profession_name="Software developer")
    institution = Institution(
        educational_id="203041",
        name="Budapest Technical College",
        zip_code=1146,
        town="Budapest",
        street="Thököly út",
        number="48",
    )
    examiners = [
        Examiner(
            first_name=first,
            last_name=last,
            date_of_birth=date(1970 + i, 1, 15),
            email=f"{first.lower()}@example.com",
            phone=f"+3630000000{i}",
            identity_card_number=f"12345{i}AB",
        )
        for i, (first, last) in enumerate([("Anna", "Kovács"), ("Bence", "Szabó"), ("Csilla", "Tóth")])
    ]
    await uow.exam_types.insert(exam_type)
    await uow.professions.insert(profession)
    await uow.institutions.insert(institution)
    await uow.examiners.insert_many(examiners)
    await uow.save()
    return ReferenceData(exam_type, profession, institution, examiners)


@pytest_asyncio.fixture
async def exam(uow: UnitOfWork, reference_data: ReferenceData, operator: Operator) -> Exam:
    """A planned exam two days ahead with a two-member board."""
    exam = Exam(
        exam_name="Software developer final",
        exam_code="SD-2026-001",
        exam_date=utcnow() + timedelta(days=2),
        profession_id=reference_data.profession.id,
        institution_id=reference_data.institution.id,
        exam_type_id=reference_data.exam_type.id,
        operator_id=operator.id,
        exam_board=[
            ExamBoard(examiner_id=reference_data.examiners[0].id, role="Chair"),
            ExamBoard(examiner_id=reference_data.examiners[1].id, role="Member"),
        ],
    )
    await uow.exams.insert(exam)
    await uow.save()
    return exam
