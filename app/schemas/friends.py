from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FriendIdRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    friend_id: int = Field(alias="friendId", gt=0)


class MessageResponse(BaseModel):
    message: str


class FriendListItem(BaseModel):
    id: int
    username: str
    name: str
