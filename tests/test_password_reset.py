"""
Password reset tests - service rules with a recording mail sender, plus the anonymous API.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from exam_manager.config import get_settings
from exam_manager.db.base import utcnow
from exam_manager.db.models import PasswordReset
from exam_manager.db.repositories import UnitOfWork
from exam_manager.services.email_service import EmailService
from exam_manager.services.password_reset_service import PasswordResetService


class RecordingEmailService(EmailService):
    """Keeps sent reset codes instead of talking to SMTP."""

    def __init__(self):
        super().__init__(get_settings())
        self.sent: list[tuple[str, str]] = []

    async def send_password_reset(self, to_email, user_name, token, valid_minutes):
        self.sent.append((to_email, token))
        return True


@pytest.fixture
def mailer() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def reset_service(uow: UnitOfWork, mailer) -> PasswordResetService:
    return PasswordResetService(uow, get_settings(), mailer)


@pytest.mark.asyncio
async def test_initiate_issues_six_digit_code(reset_service, mailer, operator):
    result = await reset_service.initiate("operator")
    assert result.succeeded
    assert result.data.operator_id == operator.id

    [(to_email, token)] = mailer.sent
    assert to_email == "operator@example.com"
    assert len(token) == 6 and token.isdigit()


@pytest.mark.asyncio
async def test_new_code_revokes_earlier_codes(reset_service, uow: UnitOfWork, mailer, operator):
    await reset_service.initiate("operator")
    await reset_service.initiate("operator")

    resets = await uow.password_resets.get(PasswordReset.operator_id == operator.id)
    assert [r.is_revoked for r in resets] == [True, False]

    first_token = mailer.sent[0][1]
    result = await reset_service.reset(first_token, "another-secret")
    assert result.error_code == "TOKEN_REVOKED"


@pytest.mark.asyncio
async def test_reset_changes_password_once(reset_service, mailer, operator, client: AsyncClient):
    await reset_service.initiate("operator")
    token = mailer.sent[0][1]

    result = await reset_service.reset(token, "another-secret")
    assert result.succeeded

    login = await client.post("/api/v1/operators/login", json={"user_name": "operator", "password": "another-secret"})
    assert login.status_code == 200

    replay = await reset_service.reset(token, "third-secret")
    assert replay.error_code == "TOKEN_REVOKED"


@pytest.mark.asyncio
async def test_expired_code_is_revoked_on_use(reset_service, uow: UnitOfWork, mailer, operator):
    await reset_service.initiate("operator")
    [reset] = await uow.password_resets.get()
    reset.expired_at = utcnow() - timedelta(minutes=1)
    await uow.save()

    result = await reset_service.reset(reset.token, "another-secret")
    assert result.error_code == "TOKEN_REVOKED"
    assert result.message == "Token has expired."
    assert reset.is_revoked is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token, password, error_code",
    [
        ("", "another-secret", "INVALID_TOKEN_OR_PASSWORD"),
        ("123456", "short", "INVALID_TOKEN_OR_PASSWORD"),
        ("000000", "another-secret", "INVALID_TOKEN"),
    ],
)
async def test_reset_rejects_bad_input(reset_service, token, password, error_code):
    result = await reset_service.reset(token, password)
    assert not result.succeeded
    assert result.error_code == error_code


@pytest.mark.asyncio
async def test_revoke_expired_tokens(reset_service, uow: UnitOfWork, admin, operator):
    await reset_service.initiate("operator")
    await reset_service.initiate("admin")
    resets = await uow.password_resets.get()
    resets[0].expired_at = utcnow() - timedelta(seconds=5)
    await uow.save()

    assert await reset_service.revoke_expired_tokens() == 1
    assert await reset_service.revoke_expired_tokens() == 0


@pytest.mark.asyncio
async def test_initiate_api_does_not_reveal_user_names(client: AsyncClient, operator):
    known = await client.post("/api/v1/password-reset/initiate", json={"user_name": "operator"})
    unknown = await client.post("/api/v1/password-reset/initiate", json={"user_name": "nobody"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


@pytest.mark.asyncio
async def test_reset_api(client: AsyncClient, uow: UnitOfWork, operator):
    await client.post("/api/v1/password-reset/initiate", json={"user_name": "operator"})
    [reset] = await uow.password_resets.get(PasswordReset.operator_id == operator.id)

    response = await client.post(
        "/api/v1/password-reset/reset", json={"token": reset.token, "new_password": "from-the-api"}
    )
    assert response.status_code == 200

    replay = await client.post(
        "/api/v1/password-reset/reset", json={"token": reset.token, "new_password": "from-the-api"}
    )
    assert replay.status_code == 400
    assert replay.json()["error_code"] == "TOKEN_REVOKED"

    unknown = await client.post("/api/v1/password-reset/reset", json={"token": "999999", "new_password": "whatever1"})
    assert unknown.status_code == 400
