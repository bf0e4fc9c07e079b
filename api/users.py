"""
User API routes — signup, signin, profile update, directory search.

Route prefix: /api/v1/user
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user_id, get_token_issuer
from auth.jwt import TokenIssuer
from core.accounts import AccountLedger
from core.directory import search_directory
from core.users import UserService
from database.stores import AccountStore, IdentityStore
from utils.schemas import (
    DirectoryResponse,
    MessageResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
    UpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["user"])


def get_user_service(
    session: AsyncSession = Depends(db_session),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> UserService:
    return UserService(
        identities=IdentityStore(session),
        ledger=AccountLedger(AccountStore(session)),
        tokens=issuer,
    )


# ── Endpoints ──────────────────────────────────────────────────────────


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    req: SignupRequest,
    service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """Register a new user and open their account."""
    token = await service.signup(
        username=req.username,
        password=req.password,
        first_name=req.first_name,
        last_name=req.last_name,
    )
    return {"message": "User created successfully", "token": token}


@router.post("/signin", response_model=SigninResponse)
async def signin(
    req: SigninRequest,
    service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """Login with username + password."""
    token = await service.signin(username=req.username, password=req.password)
    return {"token": token}


@router.put("/", response_model=MessageResponse)
async def update_profile(
    req: UpdateRequest,
    user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
) -> Dict[str, Any]:
    """Update the caller's own password / first name / last name."""
    await service.update_profile(user_id, req.change_set())
    return {"message": "Updated successfully"}


@router.get("/bulk", response_model=DirectoryResponse)
async def bulk(
    filter: str = Query(default=""),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Case-insensitive name search over all users (no auth)."""
    users = [entry async for entry in search_directory(IdentityStore(session), filter)]
    return {"users": users}
