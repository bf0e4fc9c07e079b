"""
Tests for the signup / signin / update flows against an in-memory database.
"""

from unittest.mock import AsyncMock

import pytest

from auth.password import verify_password
from core.accounts import AccountLedger
from core.errors import AuthenticationError, ConflictError, StoreError
from core.users import UserService


@pytest.fixture
def ledger(accounts):
    return AccountLedger(accounts)


@pytest.fixture
def service(identities, ledger, issuer):
    return UserService(identities=identities, ledger=ledger, tokens=issuer)


async def _signup(service, username="a@b.com", password="secret1", first="A", last="B"):
    return await service.signup(
        username=username, password=password, first_name=first, last_name=last,
    )


class TestSignup:
    @pytest.mark.asyncio
    async def test_creates_user_account_and_token(self, service, identities, accounts, issuer):
        token = await _signup(service)

        user = await identities.find_by_username("a@b.com")
        assert user is not None
        assert issuer.verify(token) == str(user.id)

        rows = await accounts.list_for_user(user.id)
        assert len(rows) == 1
        assert 1 <= rows[0].balance < 10001

    @pytest.mark.asyncio
    async def test_stores_hash_not_plaintext(self, service, identities):
        await _signup(service)
        user = await identities.find_by_username("a@b.com")
        assert user.password_hash != "secret1"
        assert verify_password("secret1", user.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(self, service, identities, accounts):
        await _signup(service)
        with pytest.raises(ConflictError):
            await _signup(service, first="Other")

        user = await identities.find_by_username("a@b.com")
        assert user.first_name == "A"
        assert len(await accounts.list_for_user(user.id)) == 1

    @pytest.mark.asyncio
    async def test_unique_index_catches_race(self, service, identities):
        await _signup(service)
        # simulate a concurrent signup that passed the existence check
        identities.find_by_username = AsyncMock(return_value=None)
        with pytest.raises(ConflictError):
            await _signup(service)

    @pytest.mark.asyncio
    async def test_account_failure_removes_user(self, identities, issuer):
        ledger = AsyncMock(spec=AccountLedger)
        ledger.initialize.side_effect = RuntimeError("ledger down")
        service = UserService(identities=identities, ledger=ledger, tokens=issuer)

        with pytest.raises(StoreError):
            await _signup(service)

        assert await identities.find_by_username("a@b.com") is None

    @pytest.mark.asyncio
    async def test_account_store_error_propagates_unchanged(self, identities, issuer):
        ledger = AsyncMock(spec=AccountLedger)
        failure = StoreError("accounts unavailable")
        ledger.initialize.side_effect = failure
        service = UserService(identities=identities, ledger=ledger, tokens=issuer)

        with pytest.raises(StoreError) as exc_info:
            await _signup(service)

        assert exc_info.value is failure
        assert await identities.find_by_username("a@b.com") is None


class TestSignin:
    @pytest.mark.asyncio
    async def test_correct_credentials(self, service, identities, issuer):
        await _signup(service)
        token = await service.signin(username="a@b.com", password="secret1")
        user = await identities.find_by_username("a@b.com")
        assert issuer.verify(token) == str(user.id)

    @pytest.mark.asyncio
    async def test_wrong_password(self, service):
        await _signup(service)
        with pytest.raises(AuthenticationError) as exc_info:
            await service.signin(username="a@b.com", password="wrong-one")
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_user_same_error(self, service):
        with pytest.raises(AuthenticationError) as exc_info:
            await service.signin(username="ghost@b.com", password="secret1")
        assert exc_info.value.message == "Invalid credentials"


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_first_name_only(self, service, identities, session):
        await _signup(service)
        user = await identities.find_by_username("a@b.com")
        old_hash = user.password_hash

        await service.update_profile(str(user.id), {"first_name": "Ann"})

        await session.refresh(user)
        assert user.first_name == "Ann"
        assert user.last_name == "B"
        assert user.password_hash == old_hash

    @pytest.mark.asyncio
    async def test_password_is_hashed(self, service, identities, session):
        await _signup(service)
        user = await identities.find_by_username("a@b.com")

        await service.update_profile(str(user.id), {"password": "newpass1"})

        await session.refresh(user)
        assert user.password_hash != "newpass1"
        assert verify_password("newpass1", user.password_hash)
        assert not verify_password("secret1", user.password_hash)

    @pytest.mark.asyncio
    async def test_empty_change_set_is_noop(self, service, identities, session):
        await _signup(service)
        user = await identities.find_by_username("a@b.com")
        await service.update_profile(str(user.id), {})
        await session.refresh(user)
        assert (user.first_name, user.last_name) == ("A", "B")
