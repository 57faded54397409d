from __future__ import annotations

from datetime import datetime, timezone

from pydantic import ValidationError

from users_api.core.errors import InvalidRequestError
from users_api.models.user import User, UserPayload
from users_api.repositories.user_repository import UserRepository
from users_api.services.validation import validate_user


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_payload(raw_body: bytes | str) -> UserPayload:
    try:
        return UserPayload.model_validate_json(raw_body)
    except ValidationError as err:
        raise InvalidRequestError("body is not a valid user document") from err


def merge_payload(user: User, payload: UserPayload) -> User:
    """Copy the fields present in ``payload`` onto ``user``; others stay as they are."""
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    return user


def list_users(repository: UserRepository) -> list[User]:
    return repository.find_all()


def create_from_payload(raw_body: bytes | str) -> User:
    """Build an unsaved user from a JSON body and stamp both timestamps."""
    user = merge_payload(User(), parse_payload(raw_body))
    now = utcnow()
    user.created_at = now
    user.updated_at = now
    return user


def validate(user: User) -> list[str]:
    return validate_user(user)


def persist_new(repository: UserRepository, user: User) -> None:
    repository.add(user)


def get_by_id(repository: UserRepository, user_id: int) -> User | None:
    return repository.find(user_id)


def update_from_payload(
    repository: UserRepository,
    user: User,
    raw_body: bytes | str,
) -> list[str]:
    """Merge a JSON body onto a stored user and commit it if it stays valid.

    Returns the validation messages; on failure nothing is written and the
    in-memory changes are rolled back.
    """
    payload = parse_payload(raw_body)
    merge_payload(user, payload)
    user.updated_at = utcnow()

    errors = validate(user)
    if errors:
        repository.discard()
        return errors

    repository.update()
    repository.refresh(user)
    return []


def delete(repository: UserRepository, user: User) -> None:
    repository.delete(user)
