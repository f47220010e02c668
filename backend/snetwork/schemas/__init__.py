# Schemas package init
"""
S-Network Backend — Pydantic Request/Response Schemas
=======================================================

Schemas are separate from the SQLAlchemy models: they decide exactly which
fields leave the API (password hashes never do) and they carry computed
fields (counts, the viewer's vote, is_author) that have no column.
"""
