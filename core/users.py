"""
User lifecycle — signup, signin and profile updates.

Signup runs strictly in order:

    validate → username check → create user → initialise account → issue token

If account initialisation fails after the user row exists, the user is
deleted again (compensating step) before the failure propagates.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict

from auth.jwt import TokenIssuer
from auth.password import hash_password_async, verify_password_async
from core.accounts import AccountLedger
from core.errors import AuthenticationError, ConflictError, StoreError
from database.models import User
from database.stores import IdentityStore

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = ("first_name", "last_name")


class UserService:
    def __init__(
        self,
        identities: IdentityStore,
        ledger: AccountLedger,
        tokens: TokenIssuer,
    ) -> None:
        self.identities = identities
        self.ledger = ledger
        self.tokens = tokens

    async def signup(
        self,
        *,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> str:
        """Create the user and its account; return a bearer token."""
        if await self.identities.find_by_username(username) is not None:
            raise ConflictError()

        password_hash = await hash_password_async(password)
        user = await self.identities.create(
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )

        try:
            await self.ledger.initialize(user.id)
        except Exception as exc:
            logger.error("Account initialisation failed for user %s: %s", user.id, exc)
            await self._compensate_signup(user)
            if isinstance(exc, StoreError):
                raise
            raise StoreError() from exc

        logger.info("Signed up user %s", user.id)
        return self.tokens.issue(str(user.id))

    async def _compensate_signup(self, user: User) -> None:
        try:
            await self.identities.delete_by_id(user.id)
            logger.info("Removed user %s after failed account initialisation", user.id)
        except StoreError:
            logger.exception(
                "Compensating delete failed for user %s; relying on transaction rollback",
                user.id,
            )

    async def signin(self, *, username: str, password: str) -> str:
        """
        Return a fresh token for valid credentials.

        Unknown usernames and wrong passwords raise the same
        ``AuthenticationError``.
        """
        user = await self.identities.find_by_username(username)
        if user is None or not await verify_password_async(password, user.password_hash):
            raise AuthenticationError()

        logger.info("Signed in user %s", user.id)
        return self.tokens.issue(str(user.id))

    async def update_profile(self, user_id: str | uuid.UUID, fields: Dict[str, Any]) -> None:
        """
        Apply the supplied fields to the user's own record.

        ``password`` is re-hashed into ``password_hash``; anything not in
        ``fields`` is left untouched.
        """
        changes: Dict[str, Any] = {
            field: fields[field] for field in _PROFILE_FIELDS if field in fields
        }
        if "password" in fields:
            changes["password_hash"] = await hash_password_async(fields["password"])

        await self.identities.update_by_id(user_id, changes)
        logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(changes)) or "no changes")
