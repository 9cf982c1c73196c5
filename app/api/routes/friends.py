from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_identity, get_db
from app.api.http_errors import value_error
from app.core.security import TokenIdentity
from app.models.user import User
from app.schemas.friends import FriendIdRequest, FriendListItem, MessageResponse
from app.services.friends import (
    accept_friend_request,
    list_friends,
    list_pending_requests,
    send_friend_request,
)

router = APIRouter(tags=["friends"])


def _to_item(user: User) -> FriendListItem:
    return FriendListItem(id=user.id, username=user.username, name=user.display_name)


@router.post("/friend-request", response_model=MessageResponse)
async def send_request(
    payload: FriendIdRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    try:
        await send_friend_request(db, identity.user_id, payload.friend_id)
        await db.commit()
    except ValueError as e:
        await db.rollback()
        raise value_error(
            e,
            code_statuses={
                "duplicate_request": 400,
                "cannot_friend_self": 400,
                "unknown_user": 404,
            },
            detail_overrides={
                "duplicate_request": "Friend request already sent",
                "cannot_friend_self": "You cannot friend yourself",
                "unknown_user": "User not found",
            },
            default_detail="Failed to send friend request",
        ) from e

    return MessageResponse(message="Friend request sent successfully")


@router.post("/accept-friend-request", response_model=MessageResponse)
async def accept_request(
    payload: FriendIdRequest,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    try:
        await accept_friend_request(db, identity.user_id, payload.friend_id)
        await db.commit()
    except ValueError as e:
        await db.rollback()
        raise value_error(
            e,
            code_statuses={"no_such_request": 400},
            detail_overrides={"no_such_request": "Invalid friend request"},
            default_detail="Failed to accept friend request",
        ) from e

    return MessageResponse(message="Friend request accepted successfully")


@router.get("/friends", response_model=list[FriendListItem])
async def get_friends(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    friends = await list_friends(db, identity.user_id)
    return [_to_item(f) for f in friends]


@router.get("/friend-requests", response_model=list[FriendListItem])
async def get_pending_requests(
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    requesters = await list_pending_requests(db, identity.user_id)
    return [_to_item(u) for u in requesters]
