from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from sqlmodel import Session

from users_api.core.db import get_session
from users_api.core.errors import (
    USER_NOT_FOUND_MESSAGE,
    ConstraintViolationError,
    InvalidRequestError,
    UserValidationError,
)
from users_api.models.user import User, UserRead
from users_api.repositories.user_repository import UserRepository
from users_api.services import user_service
from users_api.services.validation import EMAIL_TAKEN

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

JSON_MEDIA_TYPES = frozenset({"application/json", "application/x-json"})

SessionDep = Annotated[Session, Depends(get_session)]


def get_user_repository(session: SessionDep) -> UserRepository:
    return UserRepository(session)


async def read_json_body(request: Request) -> bytes:
    content_type = request.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type not in JSON_MEDIA_TYPES:
        raise InvalidRequestError(f"unsupported content type {content_type!r}")
    body = await request.body()
    if not body:
        raise InvalidRequestError("empty body")
    return body


RepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]
JsonBodyDep = Annotated[bytes, Depends(read_json_body)]


def _get_user_or_404(repository: UserRepository, user_id: int) -> User:
    user = user_service.get_by_id(repository, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=USER_NOT_FOUND_MESSAGE,
        )
    return user


@router.get("/", response_model=list[UserRead])
def list_users(repository: RepositoryDep) -> list[User]:
    return user_service.list_users(repository)


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(body: JsonBodyDep, repository: RepositoryDep) -> User:
    user = user_service.create_from_payload(body)
    errors = user_service.validate(user)
    if errors:
        raise UserValidationError(errors)

    try:
        user_service.persist_new(repository, user)
    except ConstraintViolationError as err:
        raise UserValidationError([EMAIL_TAKEN]) from err
    return user


@router.get("/{user_id}", response_model=UserRead)
def read_user(user_id: int, repository: RepositoryDep) -> User:
    return _get_user_or_404(repository, user_id)


@router.api_route("/{user_id}", methods=["PUT", "PATCH"], response_model=UserRead)
def update_user(user_id: int, body: JsonBodyDep, repository: RepositoryDep) -> User:
    user = _get_user_or_404(repository, user_id)

    try:
        errors = user_service.update_from_payload(repository, user, body)
    except ConstraintViolationError as err:
        raise UserValidationError([EMAIL_TAKEN]) from err
    if errors:
        raise UserValidationError(errors)

    logger.info("Updated user id=%s", user_id)
    return user


@router.delete("/{user_id}", response_class=PlainTextResponse)
def delete_user(user_id: int, repository: RepositoryDep) -> PlainTextResponse:
    user = _get_user_or_404(repository, user_id)
    user_service.delete(repository, user)
    return PlainTextResponse("User deleted", status_code=status.HTTP_200_OK)
