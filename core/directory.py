"""
Directory search — unauthenticated name lookup over all users.
"""

from __future__ import annotations

from typing import AsyncIterator

from database.stores import IdentityStore
from utils.schemas import DirectoryEntry


async def search_directory(
    store: IdentityStore,
    filter_text: str = "",
) -> AsyncIterator[DirectoryEntry]:
    """
    Yield the redacted projection of every user whose first or last name
    contains ``filter_text`` (case-insensitive).  An empty filter matches
    everyone.  The stream is single-pass and ordered by user id.
    """
    async for user in store.iter_matching(filter_text or ""):
        yield DirectoryEntry(
            id=str(user.id),
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
        )
