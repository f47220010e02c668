# Services package init
"""
S-Network Backend — Services Layer
====================================

What:  Business rules, sitting between routes (HTTP) and models (tables).
How:   Each module exposes a stateless service object (e.g. `post_service`)
       whose methods take the request's AsyncSession and the acting User.
       Services flush but never commit: the session dependency commits once
       per request, so every operation is a single transaction.

Service Inventory:
    - UserService:              registration, login, profiles, search
    - FollowService:            follows, follow requests, follower lists
    - NotificationService:      notifications and the merged listing
    - VoteService:              toggle votes and denormalized counters
    - PostService / CommentService:       the main feed
    - GroupService:             groups and memberships
    - GroupInvitationService:   invitations and join requests
    - GroupContentService:      group posts, comments and events
    - ChatService:              conversations and group messages

Import order (no cycles):
    notification ← follow ← user
    notification, vote ← post ← comment
    notification ← chat ← group ← group_invitation, group_content
"""
