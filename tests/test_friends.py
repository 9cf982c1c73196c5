"""
Friendship graph tests

Service level:
- Sending friend requests
- Accepting friend requests
- Friend and pending-request listings

HTTP level:
- /friend-request and /accept-friend-request status codes
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.errors import CannotFriendSelf, DuplicateRequest, NoSuchRequest, UnknownUser
from app.models.friendship import Friendship, FriendshipStatus
from app.services.friends import (
    accept_friend_request,
    are_friends,
    list_friends,
    list_pending_requests,
    send_friend_request,
)
from app.services.users import register

pytestmark = pytest.mark.anyio


@pytest.fixture
async def users(db_session):
    ids = {}
    for name in ("alice", "bob", "charlie"):
        ids[name] = await register(db_session, name, name.title(), "SuperSecret123")
    await db_session.commit()
    return ids


async def test_send_friend_request_creates_pending_edge(db_session, users):
    edge_id = await send_friend_request(db_session, users["alice"], users["bob"])
    await db_session.commit()

    edge = await db_session.get(Friendship, edge_id)
    assert edge.requester_id == users["alice"]
    assert edge.addressee_id == users["bob"]
    assert edge.status == FriendshipStatus.pending.value


async def test_duplicate_request_is_rejected(db_session, users):
    await send_friend_request(db_session, users["alice"], users["bob"])
    await db_session.commit()

    with pytest.raises(DuplicateRequest):
        await send_friend_request(db_session, users["alice"], users["bob"])


async def test_duplicate_request_after_acceptance_is_rejected(db_session, users):
    await send_friend_request(db_session, users["alice"], users["bob"])
    await accept_friend_request(db_session, users["bob"], users["alice"])
    await db_session.commit()

    with pytest.raises(DuplicateRequest):
        await send_friend_request(db_session, users["alice"], users["bob"])


async def test_reverse_request_is_an_independent_edge(db_session, users):
    await send_friend_request(db_session, users["alice"], users["bob"])
    await send_friend_request(db_session, users["bob"], users["alice"])
    await db_session.commit()

    rows = (await db_session.execute(select(Friendship))).scalars().all()
    assert len(rows) == 2


async def test_cannot_friend_self(db_session, users):
    with pytest.raises(CannotFriendSelf):
        await send_friend_request(db_session, users["alice"], users["alice"])


async def test_request_to_unknown_user(db_session, users):
    with pytest.raises(UnknownUser):
        await send_friend_request(db_session, users["alice"], 99999)


async def test_accept_without_request(db_session, users):
    with pytest.raises(NoSuchRequest):
        await accept_friend_request(db_session, users["bob"], users["alice"])


async def test_only_addressee_can_accept(db_session, users):
    await send_friend_request(db_session, users["alice"], users["bob"])
    await db_session.commit()

    # alice asked; alice cannot accept on bob's behalf
    with pytest.raises(NoSuchRequest):
        await accept_friend_request(db_session, users["alice"], users["bob"])


async def test_accept_twice(db_session, users):
    await send_friend_request(db_session, users["alice"], users["bob"])
    await accept_friend_request(db_session, users["bob"], users["alice"])
    await db_session.commit()

    with pytest.raises(NoSuchRequest):
        await accept_friend_request(db_session, users["bob"], users["alice"])


async def test_accept_flips_status_without_reverse_row(db_session, users):
    edge_id = await send_friend_request(db_session, users["alice"], users["bob"])
    await accept_friend_request(db_session, users["bob"], users["alice"])
    await db_session.commit()

    rows = (await db_session.execute(select(Friendship))).scalars().all()
    assert [r.id for r in rows] == [edge_id]
    await db_session.refresh(rows[0])
    assert rows[0].status == FriendshipStatus.accepted.value


async def test_are_friends_is_symmetric_once_accepted(db_session, users):
    await send_friend_request(db_session, users["alice"], users["bob"])
    assert not await are_friends(db_session, users["alice"], users["bob"])

    await accept_friend_request(db_session, users["bob"], users["alice"])
    assert await are_friends(db_session, users["alice"], users["bob"])
    assert await are_friends(db_session, users["bob"], users["alice"])
    assert not await are_friends(db_session, users["alice"], users["charlie"])


async def test_list_friends_and_pending(db_session, users):
    await send_friend_request(db_session, users["alice"], users["bob"])
    await send_friend_request(db_session, users["charlie"], users["bob"])
    await accept_friend_request(db_session, users["bob"], users["alice"])
    await db_session.commit()

    assert [u.username for u in await list_friends(db_session, users["bob"])] == ["alice"]
    assert [u.username for u in await list_friends(db_session, users["alice"])] == ["bob"]
    assert [u.username for u in await list_pending_requests(db_session, users["bob"])] == ["charlie"]
    assert await list_pending_requests(db_session, users["alice"]) == []


# --- HTTP ---


async def test_friend_request_flow_over_http(client, authed_user):
    alice = await authed_user(client, username="alice")
    bob = await authed_user(client, username="bob")

    r = await client.post("/friend-request", json={"friendId": bob["id"]}, headers=alice["headers"])
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Friend request sent successfully"}

    r = await client.post("/friend-request", json={"friendId": bob["id"]}, headers=alice["headers"])
    assert r.status_code == 400
    assert r.json()["detail"] == "Friend request already sent"

    r = await client.get("/friend-requests", headers=bob["headers"])
    assert r.status_code == 200
    assert [u["username"] for u in r.json()] == ["alice"]

    r = await client.post("/accept-friend-request", json={"friendId": alice["id"]}, headers=bob["headers"])
    assert r.status_code == 200, r.text
    assert r.json() == {"message": "Friend request accepted successfully"}

    r = await client.get("/friends", headers=alice["headers"])
    assert r.status_code == 200
    assert r.json() == [{"id": bob["id"], "username": "bob", "name": "bob"}]


async def test_accept_unknown_request_over_http(client, authed_user):
    alice = await authed_user(client)
    bob = await authed_user(client)

    r = await client.post("/accept-friend-request", json={"friendId": alice["id"]}, headers=bob["headers"])
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid friend request"


async def test_friend_request_edge_cases_over_http(client, authed_user):
    alice = await authed_user(client)

    r = await client.post("/friend-request", json={"friendId": alice["id"]}, headers=alice["headers"])
    assert r.status_code == 400

    r = await client.post("/friend-request", json={"friendId": 99999}, headers=alice["headers"])
    assert r.status_code == 404


async def test_request_race_on_unique_pair(db_session, users, monkeypatch):
    from app.services import friends as friends_service

    await send_friend_request(db_session, users["alice"], users["bob"])
    await db_session.commit()

    real_edge_exists = friends_service._edge_exists
    calls = []

    async def _miss_first_check(db, requester_id, addressee_id):
        calls.append((requester_id, addressee_id))
        if len(calls) == 1:
            return False
        return await real_edge_exists(db, requester_id, addressee_id)

    monkeypatch.setattr(friends_service, "_edge_exists", _miss_first_check)
    with pytest.raises(DuplicateRequest):
        await send_friend_request(db_session, users["alice"], users["bob"])

    # session is still usable after the rollback
    edge_id = await send_friend_request(db_session, users["charlie"], users["bob"])
    await db_session.commit()
    assert (await db_session.get(Friendship, edge_id)).requester_id == users["charlie"]


async def test_request_from_missing_requester_is_not_a_duplicate(db_session, users):
    with pytest.raises(IntegrityError):
        await send_friend_request(db_session, 99999, users["bob"])

    rows = (await db_session.execute(select(Friendship))).scalars().all()
    assert rows == []


async def test_stale_identity_request_is_a_store_error_over_http(client, authed_user):
    from app.core.security import create_access_token

    bob = await authed_user(client)
    ghost_headers = {"Authorization": f"Bearer {create_access_token(99999, 'ghost')}"}

    r = await client.post("/friend-request", json={"friendId": bob["id"]}, headers=ghost_headers)
    assert r.status_code == 500
    assert r.text == "Internal Server Error"
