"""
FastAPI dependencies for authentication.

Provides ``db_session``, ``get_token_issuer`` and ``get_current_user_id``
dependencies that are used across the user routes.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.jwt import TokenIssuer
from core.errors import AuthenticationError
from database.session import get_db_session

_bearer_scheme = HTTPBearer(auto_error=False)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_token_issuer(request: Request) -> TokenIssuer:
    """The issuer built once at startup by ``main.create_app``."""
    return request.app.state.token_issuer


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> str:
    """
    Extract and verify the Bearer token, returning the authenticated
    ``userId`` (UUID string).  Missing or invalid tokens short-circuit
    with 401 before the route runs.
    """
    if credentials is None:
        raise AuthenticationError("Unauthenticated")
    return issuer.verify(credentials.credentials)
