"""
BDD step definitions for operator accounts (pytest-bdd).
"""

from pytest_bdd import given, parsers, scenarios, then, when

from exam_manager.db.models import Operator, Role
from helpers import make_operator

scenarios("operators.feature")


@given(parsers.parse('an admin "{user_name}" with password "{password}"'))
def admin_exists(run_with_uow, user_name, password):
    run_with_uow(lambda uow: make_operator(uow, user_name, Role.ADMIN, password=password))


@given(parsers.parse('a "{role}" operator "{user_name}" with password "{password}"'))
def operator_exists(run_with_uow, role, user_name, password):
    run_with_uow(lambda uow: make_operator(uow, user_name, Role(role), password=password))


def _login(sync_client, context, user_name, password):
    r = sync_client.post("/api/v1/operators/login", json={"user_name": user_name, "password": password})
    context["status"] = r.status_code
    context["body"] = r.json()
    return r


@given(parsers.parse('I am logged in as "{user_name}" with password "{password}"'))
def logged_in(sync_client, context, user_name, password):
    r = _login(sync_client, context, user_name, password)
    assert r.status_code == 200
    context["headers"] = {"Authorization": f"Bearer {r.json()['data']['token']}"}


@when(parsers.parse('I log in as "{user_name}" with password "{password}"'))
def log_in(sync_client, context, user_name, password):
    _login(sync_client, context, user_name, password)


@when(parsers.parse('I register the operator "{user_name}"'))
def register(sync_client, context, user_name):
    r = sync_client.post(
        "/api/v1/operators",
        json={
            "user_name": user_name,
            "password": "secret123",
            "first_name": "John",
            "last_name": "Doe",
            "role": "Operator",
        },
        headers=context["headers"],
    )
    context["status"] = r.status_code
    context["body"] = r.json()


@then(parsers.parse("the response status should be {status:d}"))
def response_status(context, status):
    assert context["status"] == status


@then(parsers.parse('the response error code should be "{error_code}"'))
def error_code_is(context, error_code):
    assert context["body"]["error_code"] == error_code


@then("I remember the response body")
def remember_body(context):
    context["remembered"] = context["body"]


@then("the response body should equal the remembered one")
def body_matches_remembered(context):
    assert context["body"] == context["remembered"]


@then(parsers.parse('exactly {count:d} operator named "{user_name}" exists'))
def operator_count(run_with_uow, count, user_name):
    assert run_with_uow(lambda uow: uow.operators.count(Operator.user_name == user_name)) == count
