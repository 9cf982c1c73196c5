from __future__ import annotations

import logging

from sqlalchemy import ColumnElement, select, update, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.errors import CannotFriendSelf, DuplicateRequest, NoSuchRequest, UnknownUser
from app.models.friendship import Friendship, FriendshipStatus
from app.models.user import User
from app.services.users import get_user

logger = logging.getLogger(__name__)


def _accepted_between(a: int, b: int) -> ColumnElement[bool]:
    """Accepted edge joining a and b, whichever of them asked."""
    f = Friendship
    return and_(
        f.status == FriendshipStatus.accepted.value,
        or_(
            and_(f.requester_id == a, f.addressee_id == b),
            and_(f.requester_id == b, f.addressee_id == a),
        ),
    )


async def _edge_exists(db: AsyncSession, requester_id: int, addressee_id: int) -> bool:
    # Only the exact ordered pair counts; a reverse request is a separate edge.
    q = select(Friendship.id).where(
        Friendship.requester_id == requester_id,
        Friendship.addressee_id == addressee_id,
    )
    return (await db.execute(q)).scalar_one_or_none() is not None


async def send_friend_request(db: AsyncSession, requester_id: int, addressee_id: int) -> int:
    if requester_id == addressee_id:
        raise CannotFriendSelf()

    if await get_user(db, addressee_id) is None:
        raise UnknownUser()

    if await _edge_exists(db, requester_id, addressee_id):
        raise DuplicateRequest()

    edge = Friendship(
        requester_id=requester_id,
        addressee_id=addressee_id,
        status=FriendshipStatus.pending.value,
    )
    db.add(edge)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        # Only the unique pair constraint means a duplicate; anything else
        # (e.g. a requester id with no user row) is a store error.
        if await _edge_exists(db, requester_id, addressee_id):
            raise DuplicateRequest() from exc
        raise

    logger.info("Friend request id=%s from user %s to user %s", edge.id, requester_id, addressee_id)
    return edge.id


async def accept_friend_request(db: AsyncSession, addressee_id: int, requester_id: int) -> None:
    # Single conditional UPDATE so concurrent accepts cannot both succeed.
    result = await db.execute(
        update(Friendship)
        .where(
            Friendship.requester_id == requester_id,
            Friendship.addressee_id == addressee_id,
            Friendship.status == FriendshipStatus.pending.value,
        )
        .values(status=FriendshipStatus.accepted.value)
    )
    if result.rowcount == 0:
        raise NoSuchRequest()

    logger.info("User %s accepted friend request from user %s", addressee_id, requester_id)


async def are_friends(db: AsyncSession, user_a: int, user_b: int) -> bool:
    q = select(Friendship.id).where(_accepted_between(user_a, user_b)).limit(1)
    return (await db.execute(q)).scalar_one_or_none() is not None


async def list_friends(db: AsyncSession, user_id: int) -> list[User]:
    f = Friendship
    u = aliased(User)

    q = (
        select(u)
        .join(
            f,
            ((f.requester_id == user_id) & (u.id == f.addressee_id))
            | ((f.addressee_id == user_id) & (u.id == f.requester_id)),
        )
        .where(f.status == FriendshipStatus.accepted.value)
        .order_by(u.username.asc())
    )

    rows = (await db.execute(q)).scalars().all()
    return list(rows)


async def list_pending_requests(db: AsyncSession, user_id: int) -> list[User]:
    q = (
        select(User)
        .join(Friendship, Friendship.requester_id == User.id)
        .where(
            Friendship.addressee_id == user_id,
            Friendship.status == FriendshipStatus.pending.value,
        )
        .order_by(Friendship.id.asc())
    )
    rows = (await db.execute(q)).scalars().all()
    return list(rows)
