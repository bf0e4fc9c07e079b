"""
Account ledger initialisation — one Account per newly created User.
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from typing import Optional

from database.models import Account
from database.stores import AccountStore

logger = logging.getLogger(__name__)

MIN_STARTING_BALANCE = 1.0
MAX_STARTING_BALANCE = 10001.0  # exclusive


def draw_starting_balance(rng: random.Random) -> float:
    """Uniform float in ``[MIN_STARTING_BALANCE, MAX_STARTING_BALANCE)``."""
    span = MAX_STARTING_BALANCE - MIN_STARTING_BALANCE
    balance = MIN_STARTING_BALANCE + rng.random() * span
    # float rounding can land exactly on the exclusive upper bound
    return min(balance, math.nextafter(MAX_STARTING_BALANCE, MIN_STARTING_BALANCE))


class AccountLedger:
    """
    Creates the starting Account for a user.

    Not idempotent: every call inserts a new Account.  The signup flow is
    the only caller and runs it exactly once, right after the User insert.
    """

    def __init__(self, store: AccountStore, rng: Optional[random.Random] = None) -> None:
        self.store = store
        self.rng = rng or random.Random()

    async def initialize(self, user_id: str | uuid.UUID) -> Account:
        balance = draw_starting_balance(self.rng)
        account = await self.store.create(user_id, balance)
        logger.info("Initialised account %s for user %s", account.id, user_id)
        return account
