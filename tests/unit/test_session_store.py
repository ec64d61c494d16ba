"""Unit tests for the in-memory registration session store."""

import pytest

from src.wb_registration.domain.models import RegistrationData
from src.wb_registration.domain.session_store import InMemoryRegistrationSessionStore
from tests.fakes import FakeClock


def _data(otp_hash: str = "h1") -> RegistrationData:
    return RegistrationData(
        email="a@example.com",
        password_hash="$2b$pw",
        otp_hash=otp_hash,
        username="alice",
        first_name="Alice",
        last_name="Doe",
    )


@pytest.fixture
def store(clock: FakeClock) -> InMemoryRegistrationSessionStore:
    return InMemoryRegistrationSessionStore(clock)


class TestStoreAndGet:
    async def test_store_then_get(
        self, store: InMemoryRegistrationSessionStore, clock: FakeClock
    ) -> None:
        created = await store.store("t1", _data(), 300)
        assert created.verification_attempts == 0
        assert created.created_at == clock()
        assert (created.expires_at - created.created_at).total_seconds() == 300

        got = await store.get("t1")
        assert got is not None
        assert got.email == "a@example.com"

    async def test_unknown_token(self, store: InMemoryRegistrationSessionStore) -> None:
        assert await store.get("nope") is None

    async def test_returned_session_is_a_copy(
        self, store: InMemoryRegistrationSessionStore
    ) -> None:
        await store.store("t1", _data(), 300)
        got = await store.get("t1")
        got.verification_attempts = 99
        assert (await store.get("t1")).verification_attempts == 0


class TestExpiry:
    async def test_still_live_at_exact_expiry(
        self, store: InMemoryRegistrationSessionStore, clock: FakeClock
    ) -> None:
        await store.store("t1", _data(), 300)
        clock.advance(300)
        assert await store.get("t1") is not None

    async def test_expired_session_is_absent_and_evicted(
        self, store: InMemoryRegistrationSessionStore, clock: FakeClock
    ) -> None:
        await store.store("t1", _data(), 300)
        clock.advance(301)
        assert await store.get("t1") is None
        assert len(store) == 0

    async def test_expired_token_is_not_resurrected(
        self, store: InMemoryRegistrationSessionStore, clock: FakeClock
    ) -> None:
        await store.store("t1", _data(), 300)
        clock.advance(301)
        assert await store.refresh("t1", "h2", 300) is None
        assert await store.increment_attempts("t1") is None
        assert await store.get("t1") is None


class TestMutations:
    async def test_refresh_replaces_otp_and_resets(
        self, store: InMemoryRegistrationSessionStore, clock: FakeClock
    ) -> None:
        await store.store("t1", _data("h1"), 300)
        await store.increment_attempts("t1")
        await store.increment_attempts("t1")
        clock.advance(200)

        refreshed = await store.refresh("t1", "h2", 300)
        assert refreshed is not None
        assert refreshed.data.otp_hash == "h2"
        assert refreshed.verification_attempts == 0
        assert (refreshed.expires_at - clock.now).total_seconds() == 300

    async def test_increment_attempts_counts_up(
        self, store: InMemoryRegistrationSessionStore
    ) -> None:
        await store.store("t1", _data(), 300)
        assert await store.increment_attempts("t1") == 1
        assert await store.increment_attempts("t1") == 2
        assert (await store.get("t1")).verification_attempts == 2

    async def test_delete_is_final(self, store: InMemoryRegistrationSessionStore) -> None:
        await store.store("t1", _data(), 300)
        await store.delete("t1")
        await store.delete("t1")
        assert await store.get("t1") is None
        assert await store.refresh("t1", "h2", 300) is None


async def test_sweep_removes_only_expired(clock: FakeClock) -> None:
    store = InMemoryRegistrationSessionStore(clock)
    await store.store("old", _data(), 60)
    await store.store("new", _data(), 600)
    clock.advance(120)

    assert await store.sweep_expired() == 1
    assert len(store) == 1
    assert await store.get("new") is not None
