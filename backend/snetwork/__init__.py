"""
S-Network Backend — Application Package Initializer
====================================================

What: Marks the `snetwork` directory as a Python package.
Who:  Used by uvicorn (`snetwork.main:app`), pytest, and every internal import.

Architecture Note:
    The backend is a layered JSON API:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← visibility, votes, follows, notifications
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy over SQLite
    └─────────────────────────────────────┘

    Each feature (users, posts, follows, notifications, groups, chat) owns one
    service module and one route module; they meet only through shared tables.
"""

__version__ = "1.0.0"
