from __future__ import annotations

import logging
from dataclasses import dataclass

from ..domain.errors import ErrorCode, ServiceResult, StoreError
from ..domain.repositories import UserRepository
from ..models import User
from ..utils.passwords import MIN_LENGTH, hash_password, verify_password
from ..utils.request_context import RequestContext
from .retry import ReadPolicy

logger = logging.getLogger(__name__)

DEFAULT_READS = ReadPolicy()


@dataclass(frozen=True)
class Credentials:
    name: str
    email: str
    password: str
    password_confirm: str


def _check_credentials(credentials: Credentials) -> ServiceResult[User] | None:
    if not credentials.name.strip() or not credentials.email.strip() or not credentials.password:
        return ServiceResult.failure(ErrorCode.MISSING_FIELDS, "name, email and password are required")
    if credentials.password != credentials.password_confirm:
        return ServiceResult.failure(ErrorCode.PASSWORD_MISMATCH, "passwords do not match")
    if len(credentials.password) < MIN_LENGTH:
        return ServiceResult.failure(
            ErrorCode.WEAK_PASSWORD, f"password must contain at least {MIN_LENGTH} characters"
        )
    return None


async def list_users(user_repo: UserRepository, *, reads: ReadPolicy = DEFAULT_READS) -> ServiceResult[list[User]]:
    try:
        return ServiceResult.success(await reads.run(user_repo.find_all))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)


async def get_user(
    user_repo: UserRepository,
    *,
    user_id: int,
    reads: ReadPolicy = DEFAULT_READS,
) -> ServiceResult[User]:
    try:
        user = await reads.run(lambda: user_repo.get(user_id))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)
    if user is None:
        return ServiceResult.failure(ErrorCode.NOT_FOUND, "user not found")
    return ServiceResult.success(user)


async def create_user(
    user_repo: UserRepository,
    credentials: Credentials,
    *,
    ctx: RequestContext,
) -> ServiceResult[User]:
    failure = _check_credentials(credentials)
    if failure is not None:
        return failure
    try:
        if await user_repo.find_by_email(credentials.email) is not None:
            return ServiceResult.failure(ErrorCode.DUPLICATE_EMAIL, "this email address is already in use")
        user = await user_repo.insert(
            name=credentials.name.strip(),
            email=credentials.email,
            password_hash=hash_password(credentials.password),
        )
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    logger.info("user %s created by user %s", user.id, ctx.user_id)
    return ServiceResult.success(user)


async def update_user(
    user_repo: UserRepository,
    credentials: Credentials,
    *,
    user_id: int,
    ctx: RequestContext,
) -> ServiceResult[User]:
    failure = _check_credentials(credentials)
    if failure is not None:
        return failure
    try:
        user = await user_repo.get(user_id)
        if user is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "user not found")
        owner = await user_repo.find_by_email(credentials.email)
        if owner is not None and owner.id != user.id:
            return ServiceResult.failure(ErrorCode.DUPLICATE_EMAIL, "this email address is already in use")
        user = await user_repo.update(
            user,
            name=credentials.name.strip(),
            email=credentials.email,
            password_hash=hash_password(credentials.password),
        )
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    logger.info("user %s updated by user %s", user.id, ctx.user_id)
    return ServiceResult.success(user)


async def delete_user(user_repo: UserRepository, *, user_id: int, ctx: RequestContext) -> ServiceResult[User]:
    try:
        user = await user_repo.get(user_id)
        if user is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "user not found")
        await user_repo.delete(user)
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)

    logger.info("user %s deleted by user %s", user_id, ctx.user_id)
    return ServiceResult.success(user)


async def authenticate(
    user_repo: UserRepository,
    *,
    email: str,
    password: str,
    reads: ReadPolicy = DEFAULT_READS,
) -> ServiceResult[User]:
    try:
        user = await reads.run(lambda: user_repo.find_by_email(email))
    except StoreError as exc:
        return ServiceResult.from_store_error(exc)
    # Same answer for unknown email and wrong password.
    if user is None or not verify_password(user.password_hash, password):
        return ServiceResult.failure(ErrorCode.INVALID_CREDENTIALS, "the information provided is invalid")
    return ServiceResult.success(user)
