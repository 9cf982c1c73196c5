from app.models.friendship import Friendship, FriendshipStatus
from app.models.post import Post
from app.models.user import User

__all__ = ["Friendship", "FriendshipStatus", "Post", "User"]
