"""
Songbook Backend: Application Package
=====================================

What:  Song (note) management service with owner and collaborator access control.
Who:   Imported by uvicorn (`songbook.main:app`), Alembic and the test suite.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (SongStore, AccessResolver)│  ← Data access + access resolution
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Services receive their database session at construction, so every layer
    below the routes can be exercised without HTTP.
"""

__version__ = "1.0.0"
