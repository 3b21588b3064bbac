"""
BroadcastCore behaviour against fake transports and an injected fetcher.

No database or sockets: each connection's transport records the frames it
was sent, and the fetcher returns canned hydrated messages.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from roomchat.core.exceptions import RepositoryException
from roomchat.services.realtime.broadcast import BroadcastCore


class FakeTransport:
    def __init__(self, fail: bool = False) -> None:
        self.frames: List[Dict[str, Any]] = []
        self.fail = fail
        self.close_codes: List[int] = []

    async def send_json(self, data: Any, mode: str = "text") -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.frames.append(data)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        self.close_codes.append(code)

    def events(self) -> List[str]:
        return [frame["event"] for frame in self.frames]


def _hydrated(message_id: str, sender_id: str, content: str = "hello") -> Dict[str, Any]:
    return {
        "_id": message_id,
        "sender": {"_id": sender_id, "username": f"user-{sender_id}"},
        "content": content,
        "createdAt": "2024-05-01T12:00:00Z",
        "updatedAt": "2024-05-01T12:00:00Z",
    }


class FakeStore:
    def __init__(self, messages: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.messages = messages or {}
        self.calls: List[str] = []

    async def __call__(self, message_id: str) -> Optional[Dict[str, Any]]:
        self.calls.append(message_id)
        return self.messages.get(message_id)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore({"m1": _hydrated("m1", "alice")})


@pytest.fixture
def core(store: FakeStore) -> BroadcastCore:
    return BroadcastCore(fetch_message=store)


async def _admit(core: BroadcastCore, user_id: str, transport: Optional[FakeTransport] = None):
    transport = transport or FakeTransport()
    connection = await core.admit(transport, user_id)
    transport.frames.clear()  # drop the connect frame
    return connection, transport


@pytest.mark.asyncio
async def test_admit_sends_connect_frame(core: BroadcastCore):
    transport = FakeTransport()
    connection = await core.admit(transport, "alice")

    assert transport.frames == [
        {
            "event": "connect",
            "data": {"connectionId": connection.connection_id, "userId": "alice"},
        }
    ]
    assert len(core.registry) == 1


@pytest.mark.asyncio
async def test_created_reaches_every_connection_including_originator(core: BroadcastCore):
    alice, alice_t = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")
    _, carol_t = await _admit(core, "carol")

    delivered = await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert delivered == 3
    for transport in (alice_t, bob_t, carol_t):
        assert transport.frames == [{"event": "receiveMessage", "data": _hydrated("m1", "alice")}]


@pytest.mark.asyncio
async def test_created_accepts_sender_object(core: BroadcastCore):
    alice, _ = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")

    await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": {"_id": "alice"}})

    assert bob_t.events() == ["receiveMessage"]


@pytest.mark.asyncio
@pytest.mark.parametrize("event", ["sendMessage", "editMessage"])
@pytest.mark.parametrize("sender", ["bob", {"_id": "bob"}, None, {"username": "alice"}, ""])
async def test_sender_mismatch_produces_no_broadcast(
    core: BroadcastCore, store: FakeStore, event: str, sender: Any
):
    alice, alice_t = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")

    delivered = await core.dispatch(alice, event, {"_id": "m1", "sender": sender})

    assert delivered == 0
    assert alice_t.frames == [] and bob_t.frames == []
    # Rejected before the store is touched
    assert store.calls == []


@pytest.mark.asyncio
async def test_created_for_missing_message_is_dropped(core: BroadcastCore):
    alice, alice_t = await _admit(core, "alice")

    assert await core.dispatch(alice, "sendMessage", {"_id": "gone", "sender": "alice"}) == 0
    assert alice_t.frames == []


@pytest.mark.asyncio
async def test_edited_excludes_originator(core: BroadcastCore):
    alice, alice_t = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")
    _, carol_t = await _admit(core, "carol")

    delivered = await core.dispatch(alice, "editMessage", _hydrated("m1", "alice", "edited"))

    assert delivered == 2
    assert alice_t.frames == []
    assert bob_t.frames == [{"event": "editMessage", "data": _hydrated("m1", "alice")}]
    assert carol_t.events() == ["editMessage"]


@pytest.mark.asyncio
async def test_edited_payload_is_refetched_not_echoed(core: BroadcastCore, store: FakeStore):
    alice, _ = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")

    await core.dispatch(
        alice, "editMessage", {"_id": "m1", "sender": "alice", "content": "forged content"}
    )

    assert bob_t.frames[0]["data"]["content"] == "hello"
    assert store.calls == ["m1"]


@pytest.mark.asyncio
async def test_deleted_excludes_originator_and_sends_bare_id(core: BroadcastCore, store: FakeStore):
    alice, alice_t = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")

    delivered = await core.dispatch(alice, "deleteMessage", {"_id": "m1"})

    assert delivered == 1
    assert alice_t.frames == []
    assert bob_t.frames == [{"event": "deleteMessage", "data": "m1"}]
    assert store.calls == []


@pytest.mark.asyncio
async def test_deleted_does_not_check_sender(core: BroadcastCore):
    alice, _ = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")

    await core.dispatch(alice, "deleteMessage", {"_id": "m9", "sender": "someone-else"})

    assert bob_t.frames == [{"event": "deleteMessage", "data": "m9"}]


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{}, {"_id": ""}, None, "m1"])
async def test_deleted_without_id_is_dropped(core: BroadcastCore, payload: Any):
    alice, _ = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")

    assert await core.dispatch(alice, "deleteMessage", payload) == 0
    assert bob_t.frames == []


@pytest.mark.asyncio
async def test_unknown_event_is_dropped(core: BroadcastCore):
    alice, alice_t = await _admit(core, "alice")

    assert await core.dispatch(alice, "typing", {"_id": "m1"}) == 0
    assert alice_t.frames == []


@pytest.mark.asyncio
async def test_store_failure_is_logged_and_dropped(caplog):
    async def broken_store(message_id: str):
        raise RepositoryException("database unavailable")

    core = BroadcastCore(fetch_message=broken_store)
    alice, alice_t = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")

    delivered = await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert delivered == 0
    assert alice_t.frames == [] and bob_t.frames == []
    assert len(core.registry) == 2
    assert "database unavailable" in caplog.text


@pytest.mark.asyncio
async def test_closed_connections_are_skipped(core: BroadcastCore):
    alice, alice_t = await _admit(core, "alice")
    bob, bob_t = await _admit(core, "bob")
    bob.close()

    delivered = await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert delivered == 1
    assert alice_t.events() == ["receiveMessage"]
    assert bob_t.frames == []


@pytest.mark.asyncio
async def test_failed_send_evicts_only_that_connection(core: BroadcastCore):
    alice, alice_t = await _admit(core, "alice")
    broken_t = FakeTransport()
    broken, _ = await _admit(core, "bob", broken_t)
    broken_t.fail = True
    _, carol_t = await _admit(core, "carol")

    delivered = await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert delivered == 2
    assert alice_t.events() == ["receiveMessage"]
    assert carol_t.events() == ["receiveMessage"]
    assert broken not in core.registry
    assert len(core.registry) == 2


@pytest.mark.asyncio
async def test_evicted_connection_is_closed_and_stops_dispatching(core: BroadcastCore, store: FakeStore):
    alice, alice_t = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")
    alice_t.fail = True

    await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert alice.is_open is False
    assert alice_t.close_codes == [1011]
    assert bob_t.events() == ["receiveMessage"]

    # Further frames from the evicted socket are not fanned out
    alice_t.fail = False
    delivered = await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert delivered == 0
    assert bob_t.events() == ["receiveMessage"]
    assert alice_t.frames == []
    assert store.calls == ["m1"]


@pytest.mark.asyncio
async def test_close_failure_during_eviction_is_tolerated(core: BroadcastCore):
    class UnclosableTransport(FakeTransport):
        async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
            raise RuntimeError("already closed")

    alice, alice_t = await _admit(core, "alice")
    broken_t = UnclosableTransport()
    await _admit(core, "bob", broken_t)
    broken_t.fail = True

    assert await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"}) == 1
    assert alice_t.events() == ["receiveMessage"]
    assert len(core.registry) == 1


@pytest.mark.asyncio
async def test_in_flight_notification_completes_after_originator_leaves():
    gate = asyncio.Event()
    fetching = asyncio.Event()

    async def gated_store(message_id: str) -> Optional[Dict[str, Any]]:
        fetching.set()
        await gate.wait()
        return _hydrated(message_id, "alice", "edited")

    core = BroadcastCore(fetch_message=gated_store)
    alice, alice_t = await _admit(core, "alice")
    _, bob_t = await _admit(core, "bob")
    _, carol_t = await _admit(core, "carol")

    task = asyncio.create_task(
        core.dispatch(alice, "editMessage", {"_id": "m1", "sender": "alice"})
    )
    await fetching.wait()
    core.release(alice)
    gate.set()

    assert await task == 2
    assert alice_t.frames == []
    assert bob_t.frames == [{"event": "editMessage", "data": _hydrated("m1", "alice", "edited")}]
    assert carol_t.events() == ["editMessage"]


@pytest.mark.asyncio
async def test_released_connection_receives_nothing(core: BroadcastCore):
    alice, _ = await _admit(core, "alice")
    bob, bob_t = await _admit(core, "bob")
    core.release(bob)

    await core.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert bob_t.frames == []
    assert len(core.registry) == 1


@pytest.mark.asyncio
async def test_independent_cores_do_not_share_connections(store: FakeStore):
    first, second = BroadcastCore(fetch_message=store), BroadcastCore(fetch_message=store)
    alice, _ = await _admit(first, "alice")
    _, other_t = await _admit(second, "bob")

    await first.dispatch(alice, "sendMessage", {"_id": "m1", "sender": "alice"})

    assert other_t.frames == []
