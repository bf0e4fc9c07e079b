"""
Store adapters over the ``users`` and ``accounts`` tables.

Both adapters are bound to the request's ``AsyncSession`` and only
``flush``; committing is left to ``database.session.get_db_session``.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ConflictError, StoreError
from database.models import Account, User

logger = logging.getLogger(__name__)

UPDATABLE_USER_FIELDS = frozenset({"password_hash", "first_name", "last_name"})

_LIKE_ESCAPE = "\\"


def _to_uuid(value: str | uuid.UUID) -> uuid.UUID:
    return uuid.UUID(value) if isinstance(value, str) else value


def _escape_like(value: str) -> str:
    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store operation %s failed: %s", operation, exc)
        raise StoreError() from exc


class IdentityStore:
    """find / create / update / delete over the User table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_username(self, username: str) -> Optional[User]:
        with _store_errors("find_by_username"):
            result = await self.session.execute(
                select(User).where(User.username == username)
            )
            return result.scalar_one_or_none()

    async def create(
        self,
        *,
        username: str,
        password_hash: str,
        first_name: str,
        last_name: str,
    ) -> User:
        """
        Insert a new user.

        The unique index on ``username`` is the source of truth; a
        violation surfaces as ``ConflictError`` even when two signups race
        past the caller's existence check.
        """
        user = User(
            id=uuid.uuid4(),
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            logger.info("Username already taken (unique index): %s", username)
            raise ConflictError() from exc
        except SQLAlchemyError as exc:
            logger.error("Store operation create failed: %s", exc)
            raise StoreError() from exc
        return user

    async def update_by_id(
        self,
        user_id: str | uuid.UUID,
        changes: Dict[str, Any],
    ) -> None:
        """Apply a change-set; only columns present in ``changes`` are touched."""
        unknown = set(changes) - UPDATABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Refusing to update non-updatable user fields: {sorted(unknown)}")
        if not changes:
            return
        with _store_errors("update_by_id"):
            await self.session.execute(
                update(User)
                .where(User.id == _to_uuid(user_id))
                .values(**changes)
                .execution_options(synchronize_session="fetch")
            )
            await self.session.flush()

    async def delete_by_id(self, user_id: str | uuid.UUID) -> None:
        with _store_errors("delete_by_id"):
            await self.session.execute(
                delete(User)
                .where(User.id == _to_uuid(user_id))
                .execution_options(synchronize_session="fetch")
            )
            await self.session.flush()

    async def iter_matching(self, substring: str) -> AsyncIterator[User]:
        """
        Stream users whose first or last name contains ``substring``
        (case-insensitive), ordered by ``id``.
        """
        pattern = f"%{_escape_like(substring)}%"
        stmt = (
            select(User)
            .where(
                or_(
                    User.first_name.ilike(pattern, escape=_LIKE_ESCAPE),
                    User.last_name.ilike(pattern, escape=_LIKE_ESCAPE),
                )
            )
            .order_by(User.id)
        )
        with _store_errors("iter_matching"):
            result = await self.session.stream_scalars(stmt)
            async for user in result:
                yield user


class AccountStore:
    """create / list over the Account table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user_id: str | uuid.UUID, balance: float) -> Account:
        account = Account(id=uuid.uuid4(), user_id=_to_uuid(user_id), balance=balance)
        self.session.add(account)
        with _store_errors("create_account"):
            await self.session.flush()
        return account

    async def list_for_user(self, user_id: str | uuid.UUID) -> List[Account]:
        with _store_errors("list_for_user"):
            result = await self.session.execute(
                select(Account)
                .where(Account.user_id == _to_uuid(user_id))
                .order_by(Account.created_at)
            )
            return list(result.scalars().all())
