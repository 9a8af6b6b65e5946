"""
Request-scoped dependencies.

Identity comes from the ``X-User-Id`` header set by the authenticating proxy
in front of the API. The session dependency yields the request's database
session; services are built around it.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import get_session
from promptatrium.core.database.entities import User
from promptatrium.core.database.repositories import UserRepository
from promptatrium.core.errors import AuthenticationError
from promptatrium.server.core.constant import USER_ID_HEADER

SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_optional_user_id(
    header_user_id: Annotated[Optional[str], Header(alias=USER_ID_HEADER)] = None,
) -> Optional[str]:
    return header_user_id or None


async def get_current_user_id(
    user_id: Annotated[Optional[str], Depends(get_optional_user_id)],
) -> str:
    if not user_id:
        raise AuthenticationError()
    return user_id


async def get_current_user(
    session: SessionDep,
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> User:
    user = await UserRepository(session).get_by_id(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user


async def get_optional_user(
    session: SessionDep,
    user_id: Annotated[Optional[str], Depends(get_optional_user_id)],
) -> Optional[User]:
    """The calling user, or None for anonymous callers and unknown ids."""
    if not user_id:
        return None
    return await UserRepository(session).get_by_id(user_id)


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
