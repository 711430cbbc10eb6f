# Services package init
"""
Songbook Backend: Services Layer
================================

What:  Data access and access-control logic, independent of HTTP.

Service Inventory:
    - SongStore: Song CRUD, ownership read, username search
    - AccessResolver: Owner-then-collaborator access decisions
    - CollaborationService: Table-backed collaborator verification

Every service takes its AsyncSession (or the services it builds on) in its
constructor; none holds module-level state.
"""
