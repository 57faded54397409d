from __future__ import annotations

import os
from collections.abc import Iterator
from typing import Any, cast
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

import users_api.core.db as db_module
from users_api.main import app
from users_api.models.user import User
from users_api.repositories.user_repository import UserRepository
from users_api.services.validation import (
    AGE_INVALID,
    EMAIL_INVALID,
    EMAIL_TAKEN,
    NAME_BLANK,
    PHONE_INVALID,
    SEX_INVALID,
)

TEST_DB_FILENAME = "test_users_api.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILENAME}"


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "email": f"{uuid4().hex[:12]}@example.com",
        "name": "Ann",
        "age": 30,
        "sex": "female",
        "birthday": "1994-01-01",
        "phone": "+79161234567",
    }
    payload.update(overrides)
    return payload


def _create_user(client: TestClient, **overrides: object) -> dict[str, Any]:
    response = client.post("/users/", json=_payload(**overrides))
    assert response.status_code == 201, response.text
    return cast(dict[str, Any], response.json())


def _user_ids(client: TestClient) -> set[int]:
    response = client.get("/users/")
    assert response.status_code == 200, response.text
    return {user["id"] for user in response.json()}


@pytest.fixture(scope="module")
def client() -> Iterator[TestClient]:
    previous_db_url = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = TEST_DB_URL
    original_engine = db_module.engine
    test_engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
    )
    db_module.engine = test_engine

    def override_get_session() -> Iterator[Session]:
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[db_module.get_session] = override_get_session
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(db_module.get_session, None)
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()
    if previous_db_url is not None:
        os.environ["DATABASE_URL"] = previous_db_url
    else:
        os.environ.pop("DATABASE_URL", None)
    db_module.engine = original_engine
    if os.path.exists(TEST_DB_FILENAME):
        os.remove(TEST_DB_FILENAME)


def test_user_lifecycle(client: TestClient) -> None:
    email = f"ann-{uuid4().hex[:8]}@b.com"
    payload = {
        "email": email,
        "name": "Ann",
        "age": 30,
        "sex": "female",
        "birthday": "1994-01-01",
        "phone": "+79161234567",
    }

    create_response = client.post("/users/", json=payload)
    assert create_response.status_code == 201, create_response.text
    created = create_response.json()
    assert isinstance(created["id"], int)
    for field, value in payload.items():
        assert created[field] == value
    assert created["created_at"] == created["updated_at"]
    assert set(created) == {
        "id",
        "email",
        "name",
        "age",
        "sex",
        "birthday",
        "phone",
        "created_at",
        "updated_at",
    }

    read_response = client.get(f"/users/{created['id']}")
    assert read_response.status_code == 200, read_response.text
    assert read_response.json() == created

    delete_response = client.delete(f"/users/{created['id']}")
    assert delete_response.status_code == 200, delete_response.text
    assert delete_response.text == "User deleted"
    assert delete_response.headers["content-type"].startswith("text/plain")

    missing_response = client.get(f"/users/{created['id']}")
    assert missing_response.status_code == 404
    assert missing_response.json() == {"detail": "User not found"}


def test_list_users_contains_created(client: TestClient) -> None:
    first = _create_user(client)
    second = _create_user(client, name="Bob", sex="male", phone="8 (916) 123-45-67")

    response = client.get("/users/")
    assert response.status_code == 200, response.text
    users = {user["id"]: user for user in response.json()}
    assert users[first["id"]] == first
    assert users[second["id"]] == second


def test_read_is_idempotent(client: TestClient) -> None:
    created = _create_user(client)

    first = client.get(f"/users/{created['id']}")
    second = client.get(f"/users/{created['id']}")

    assert first.status_code == 200, first.text
    assert first.json() == second.json()
    assert first.content == second.content


def test_create_ignores_caller_supplied_id(client: TestClient) -> None:
    taken_id = _create_user(client)["id"]

    created = _create_user(client, id=taken_id, created_at="2000-01-01T00:00:00")

    assert created["id"] != taken_id
    assert not created["created_at"].startswith("2000")


def test_create_accepts_json_with_charset(client: TestClient) -> None:
    response = client.post(
        "/users/",
        content=b'{"email": "charset@example.com", "name": "Ann", "age": 30, '
        b'"sex": "female", "birthday": "1994-01-01", "phone": "+79161234567"}',
        headers={"Content-Type": "application/json; charset=utf-8"},
    )
    assert response.status_code == 201, response.text


@pytest.mark.parametrize(
    ("content", "content_type"),
    [
        (b'{"name": "Ann"}', "text/plain"),
        (b'{"name": "Ann"}', "application/x-www-form-urlencoded"),
        (b"", "application/json"),
        (b"{not json", "application/json"),
        (b"[]", "application/json"),
        (b'{"age": "thirty"}', "application/json"),
        (b'{"age": true}', "application/json"),
    ],
)
def test_create_rejects_malformed_request(
    client: TestClient,
    content: bytes,
    content_type: str,
) -> None:
    before = _user_ids(client)

    response = client.post(
        "/users/",
        content=content,
        headers={"Content-Type": content_type},
    )

    assert response.status_code == 400
    assert response.text == "Invalid request"
    assert _user_ids(client) == before


def test_create_without_content_type_is_rejected(client: TestClient) -> None:
    response = client.post("/users/", content=b'{"name": "Ann"}')
    assert response.status_code == 400
    assert response.text == "Invalid request"


def test_create_reports_all_validation_errors(client: TestClient) -> None:
    before = _user_ids(client)

    response = client.post(
        "/users/",
        json=_payload(email="nope", name=" ", age=0, sex="unknown", phone="123"),
    )

    assert response.status_code == 400
    assert response.json() == [
        EMAIL_INVALID,
        NAME_BLANK,
        AGE_INVALID,
        SEX_INVALID,
        PHONE_INVALID,
    ]
    assert _user_ids(client) == before


def test_create_with_duplicate_email_fails(client: TestClient) -> None:
    existing = _create_user(client)
    before = _user_ids(client)

    response = client.post("/users/", json=_payload(email=existing["email"], name="Twin"))

    assert response.status_code == 400
    assert response.json() == [EMAIL_TAKEN]
    assert _user_ids(client) == before


def test_read_unknown_user_returns_404(client: TestClient) -> None:
    response = client.get("/users/999999")
    assert response.status_code == 404
    assert response.json() == {"detail": "User not found"}


def test_delete_unknown_user_leaves_store_unchanged(client: TestClient) -> None:
    _create_user(client)
    before = _user_ids(client)

    response = client.delete("/users/999999")

    assert response.status_code == 404
    assert _user_ids(client) == before


def test_create_rejects_boolean_age(client: TestClient) -> None:
    response = client.post("/users/", json=_payload(age=True))
    assert response.status_code == 400
    assert response.text == "Invalid request"


def test_create_rejects_age_beyond_column_range(client: TestClient) -> None:
    before = _user_ids(client)

    response = client.post("/users/", json=_payload(age=10**20))

    assert response.status_code == 400
    assert response.json() == [AGE_INVALID]
    assert _user_ids(client) == before


@pytest.mark.parametrize("method", ["GET", "DELETE"])
def test_id_beyond_integer_range_returns_404(client: TestClient, method: str) -> None:
    _create_user(client)
    before = _user_ids(client)

    response = client.request(method, "/users/99999999999999999999")

    assert response.status_code == 404
    assert response.json() == {"detail": "User not found"}
    assert _user_ids(client) == before


def test_delete_of_user_removed_meanwhile_returns_404(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def find_removed(self: UserRepository, user_id: int) -> User:
        return User(id=user_id, email="gone@example.com")

    monkeypatch.setattr(UserRepository, "find", find_removed)

    response = client.delete("/users/424242")

    assert response.status_code == 404
    assert response.json() == {"detail": "User not found"}
