# Routes package init
"""
S-Network Backend — API Routes Package
========================================

What:  HTTP route handlers. Every router except health uses prefix="/api".

Route Inventory:
    - auth.py:           /register, /login
    - users.py:          /profile, /users/...
    - posts.py:          /posts/... (posts, comments, votes)
    - follows.py:        /follow/..., /followers, /following
    - notifications.py:  /notifications/...
    - groups.py:         /groups, membership, invitations, join requests
    - group_content.py:  /groups/{id}/posts|events, /groups/posts/..., /groups/events/...
    - chat.py:           /conversations/..., /groups/{id}/chat|messages
    - health.py:         /health

Routes stay thin: resolve the acting user, call one service method, return
its schema. Business rules live in snetwork.services.
"""
