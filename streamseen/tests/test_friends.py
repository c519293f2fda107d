# tests/test_friends.py
import pytest
from sqlalchemy import select

from streamseen.core.errors import AlreadyRequestedOrFriends, NotFound
from streamseen.db.crud import activity as activity_crud
from streamseen.db.crud import friends as friends_crud
from streamseen.db.crud import lists as lists_crud
from streamseen.db.crud import users as users_crud
from streamseen.db.models import ACCEPTED, DECLINED, PENDING, Activity, Friendship

ALICE, BOB, CAROL = "u-alice", "u-bob", "u-carol"


async def _edges(db):
    rows = (await db.execute(
        select(Friendship.user_id, Friendship.friend_id, Friendship.status).order_by(Friendship.id)
    )).all()
    return [tuple(r) for r in rows]


@pytest.mark.asyncio
async def test_request_then_accept_is_symmetric(db, users):
    edge = await friends_crud.send_request(db, ALICE, BOB)
    assert edge.status == PENDING

    await friends_crud.accept(db, BOB, ALICE)

    assert await friends_crud.are_friends(db, ALICE, BOB)
    assert await friends_crud.are_friends(db, BOB, ALICE)
    assert [u.id for u in await friends_crud.get_friends(db, ALICE)] == [BOB]
    assert [u.id for u in await friends_crud.get_friends(db, BOB)] == [ALICE]
    assert sorted(await _edges(db)) == [(ALICE, BOB, ACCEPTED), (BOB, ALICE, ACCEPTED)]


@pytest.mark.asyncio
async def test_second_request_either_direction_is_rejected(db, users):
    await friends_crud.send_request(db, ALICE, BOB)

    with pytest.raises(AlreadyRequestedOrFriends):
        await friends_crud.send_request(db, ALICE, BOB)
    with pytest.raises(AlreadyRequestedOrFriends):
        await friends_crud.send_request(db, BOB, ALICE)

    await friends_crud.accept(db, BOB, ALICE)
    with pytest.raises(AlreadyRequestedOrFriends):
        await friends_crud.send_request(db, ALICE, BOB)


@pytest.mark.asyncio
async def test_request_to_self_or_unknown_user(db, users):
    with pytest.raises(NotFound):
        await friends_crud.send_request(db, ALICE, ALICE)
    with pytest.raises(NotFound):
        await friends_crud.send_request(db, ALICE, "u-nobody")
    assert await _edges(db) == []


@pytest.mark.asyncio
async def test_decline_is_terminal(db, users):
    await friends_crud.send_request(db, ALICE, BOB)
    await friends_crud.decline(db, BOB, ALICE)

    assert await _edges(db) == [(ALICE, BOB, DECLINED)]
    with pytest.raises(NotFound):
        await friends_crud.accept(db, BOB, ALICE)
    with pytest.raises(AlreadyRequestedOrFriends):
        await friends_crud.send_request(db, ALICE, BOB)
    assert not await friends_crud.are_friends(db, ALICE, BOB)


@pytest.mark.asyncio
async def test_only_the_recipient_can_accept(db, users):
    await friends_crud.send_request(db, ALICE, BOB)
    with pytest.raises(NotFound):
        await friends_crud.accept(db, ALICE, BOB)
    assert await _edges(db) == [(ALICE, BOB, PENDING)]


@pytest.mark.asyncio
async def test_remove_deletes_both_directions(db, users):
    await friends_crud.send_request(db, ALICE, BOB)
    await friends_crud.accept(db, BOB, ALICE)

    await friends_crud.remove(db, BOB, ALICE)

    assert await _edges(db) == []
    assert await friends_crud.get_friends(db, ALICE) == []
    # A fresh request is possible again.
    await friends_crud.send_request(db, BOB, ALICE)


@pytest.mark.asyncio
async def test_request_lists(db, users):
    await friends_crud.send_request(db, ALICE, BOB)
    await friends_crud.send_request(db, CAROL, BOB)

    incoming = await friends_crud.get_friend_requests(db, BOB)
    assert {r.user.id for r in incoming} == {ALICE, CAROL}

    sent = await friends_crud.get_sent_requests(db, ALICE)
    assert [r.friend.id for r in sent] == [BOB]
    assert await friends_crud.get_sent_requests(db, BOB) == []


@pytest.mark.asyncio
async def test_friend_added_activity_uses_display_name(db, users):
    await friends_crud.send_request(db, ALICE, BOB)
    await friends_crud.send_request(db, ALICE, CAROL)

    names = (await db.execute(
        select(Activity.friend_name).where(Activity.user_id == ALICE).order_by(Activity.id)
    )).scalars().all()
    # Carol has no last name, so her id stands in.
    assert list(names) == ["Bob Jones", CAROL]


@pytest.mark.asyncio
async def test_feed_shows_friends_who_share_activity(db, users, film):
    for other in (BOB, CAROL):
        await friends_crud.send_request(db, ALICE, other)
        await friends_crud.accept(db, other, ALICE)

    await lists_crud.add_to_watchlist(db, BOB, film("Dune", 2021))
    await lists_crud.add_to_watched(db, BOB, film("Heat", 1995), rating=5)
    await lists_crud.add_to_watchlist(db, CAROL, film("Alien", 1979))
    await users_crud.update_privacy_settings(db, CAROL, {"share_activity": False})

    feed = await activity_crud.get_friends_activity(db, ALICE)
    assert [(a.user.id, a.type, a.title) for a in feed] == [
        (BOB, "watched", "Heat"),
        (BOB, "added_to_watchlist", "Dune"),
    ]

    assert len(await activity_crud.get_friends_activity(db, ALICE, limit=1)) == 1
    # Alice's own entries never show in her feed.
    assert all(a.user_id != ALICE for a in feed)


@pytest.mark.asyncio
async def test_feed_ignores_pending_requests(db, users, film):
    await friends_crud.send_request(db, ALICE, BOB)
    await lists_crud.add_to_watchlist(db, BOB, film("Dune", 2021))
    assert await activity_crud.get_friends_activity(db, ALICE) == []


@pytest.mark.asyncio
async def test_crossed_requests_leave_one_edge(db, users, monkeypatch):
    # Both sides checked for an existing edge before either insert landed.
    async def stale_friendship(*args, **kwargs):
        return None

    monkeypatch.setattr(friends_crud, "get_friendship", stale_friendship)

    await friends_crud.send_request(db, ALICE, BOB)
    with pytest.raises(AlreadyRequestedOrFriends):
        await friends_crud.send_request(db, BOB, ALICE)

    assert await _edges(db) == [(ALICE, BOB, PENDING)]


@pytest.mark.asyncio
async def test_reciprocal_edge_does_not_take_the_pair_key(db, users):
    await friends_crud.send_request(db, ALICE, BOB)
    await friends_crud.accept(db, BOB, ALICE)

    keys = (await db.execute(
        select(Friendship.user_id, Friendship.pair_key).order_by(Friendship.id)
    )).all()
    assert [tuple(k) for k in keys] == [(ALICE, "u-alice|u-bob"), (BOB, None)]

    await friends_crud.remove(db, ALICE, BOB)
    await friends_crud.send_request(db, BOB, ALICE)
    assert await _edges(db) == [(BOB, ALICE, PENDING)]
