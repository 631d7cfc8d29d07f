"""
User service: registration, login and identity lookup.

Usernames and emails are unique in the schema.  Registration checks both up
front to name the offending field, and still translates a late unique
violation (a concurrent registration) into the same ``ValidationError``.
"""
import logging
from typing import Optional

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import violated_constraint
from blog_api.errors import Unauthorized, ValidationError
from blog_api.models import UQ_USERS_EMAIL, UQ_USERS_USERNAME, UserRow, Viewer, users
from blog_api.schemas import LoginRequest, UserCreate, UserResponse
from blog_api.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

_UNIQUE_FIELDS = {UQ_USERS_USERNAME: "username", UQ_USERS_EMAIL: "email"}


async def _find_user(db: AsyncSession, *where) -> Optional[UserRow]:
    q = select(users.c.id, users.c.username, users.c.email, users.c.password).where(*where)
    row = (await db.execute(q)).mappings().one_or_none()
    return UserRow(**row) if row is not None else None


async def create_user(db: AsyncSession, data: UserCreate) -> UserResponse:
    for field, value in (("username", data.username), ("email", data.email)):
        if await _find_user(db, users.c[field] == value) is not None:
            raise ValidationError(field, "has already been taken")

    try:
        await db.execute(
            insert(users).values(
                username=data.username,
                email=data.email,
                password=hash_password(data.password),
            )
        )
    except IntegrityError as exc:
        field = _UNIQUE_FIELDS.get(violated_constraint(exc))
        if field is None:
            raise
        raise ValidationError(field, "has already been taken") from exc
    return UserResponse(username=data.username, email=data.email)


async def login(db: AsyncSession, data: LoginRequest) -> str:
    """Return an access token for valid credentials, else raise ``Unauthorized``."""
    user = await _find_user(db, users.c.email == data.email)
    if user is None or not verify_password(data.password, user.password):
        logger.warning("Failed login for %s", data.email)
        raise Unauthorized()
    return create_access_token(user.id)


async def get_viewer(db: AsyncSession, user_id: int) -> Optional[Viewer]:
    user = await _find_user(db, users.c.id == user_id)
    if user is None:
        return None
    return Viewer(id=user.id, username=user.username)


async def get_user(db: AsyncSession, user_id: int) -> Optional[UserResponse]:
    user = await _find_user(db, users.c.id == user_id)
    if user is None:
        return None
    return UserResponse(username=user.username, email=user.email)


async def count_users(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(users))).scalar_one()
