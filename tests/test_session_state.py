from __future__ import annotations

import asyncio

from parse_rest.core.domain.models import ParseUser
from parse_rest.core.services.session_state import SessionState


def _user(index: int) -> ParseUser:
    user = ParseUser(object_id=f"u{index}")
    user.session_token = f"r:{index}"
    return user


def test_readers_see_whole_snapshots_during_concurrent_logins() -> None:
    async def _run() -> None:
        state = SessionState()
        observed: list[tuple[str | None, str | None]] = []
        done = asyncio.Event()

        async def reader() -> None:
            while not done.is_set():
                snapshot = state.snapshot
                user_token = snapshot.user.session_token if snapshot.user else None
                observed.append((snapshot.token, user_token))
                await asyncio.sleep(0)

        async def writer(index: int) -> None:
            await asyncio.sleep(0)
            user = _user(index)
            await state.set(user.session_token or "", user)

        readers = [asyncio.create_task(reader()) for _ in range(3)]
        await asyncio.gather(*(writer(i) for i in range(50)))
        done.set()
        await asyncio.gather(*readers)

        assert observed
        assert all(token == user_token for token, user_token in observed)
        assert state.token is not None and state.user is not None
        assert state.user.session_token == state.token

    asyncio.run(_run())


def test_clear_resets_token_and_user_together() -> None:
    async def _run() -> None:
        state = SessionState()
        await state.set("r:1", _user(1))

        await state.clear()

        assert state.snapshot.token is None
        assert state.snapshot.user is None
        assert not state.snapshot.is_authenticated

    asyncio.run(_run())


def test_clear_if_only_clears_the_matching_token() -> None:
    async def _run() -> None:
        state = SessionState()
        await state.set("r:new", _user(2))

        assert await state.clear_if("r:old") is False
        assert state.token == "r:new"
        assert await state.clear_if("r:new") is True
        assert state.token is None

    asyncio.run(_run())


def test_states_are_independent_per_instance() -> None:
    async def _run() -> None:
        first, second = SessionState(), SessionState()
        await first.set("r:1", _user(1))

        assert first.token == "r:1"
        assert second.token is None

    asyncio.run(_run())
