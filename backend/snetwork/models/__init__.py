# Models package init
"""
S-Network Backend — ORM Models Package
========================================

Importing this package registers every table on `Base.metadata`
(used by `init_models()` and by the test fixtures).
"""

from snetwork.models.user import User
from snetwork.models.post import Post, PostAccess, Comment
from snetwork.models.vote import Vote
from snetwork.models.follow import Follower, FollowRequest
from snetwork.models.notification import Notification
from snetwork.models.group import Group, GroupMember, GroupInvitation, GroupJoinRequest
from snetwork.models.group_content import (
    GroupPost,
    GroupPostComment,
    GroupEvent,
    EventRSVP,
)
from snetwork.models.chat import ChatConversation, ChatParticipant, ChatMessage, GroupMessage

__all__ = [
    "User",
    "Post",
    "PostAccess",
    "Comment",
    "Vote",
    "Follower",
    "FollowRequest",
    "Notification",
    "Group",
    "GroupMember",
    "GroupInvitation",
    "GroupJoinRequest",
    "GroupPost",
    "GroupPostComment",
    "GroupEvent",
    "EventRSVP",
    "ChatConversation",
    "ChatParticipant",
    "ChatMessage",
    "GroupMessage",
]
