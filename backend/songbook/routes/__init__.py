# Routes package init
"""
Songbook Backend: API Routes Package
====================================

Route Inventory:
    - songs.py:   POST/GET /songs, GET/PUT/DELETE /songs/{id}
    - users.py:   GET /users?username=
    - health.py:  GET /health

Routes stay thin: read the request, check access, call one service
operation, shape the response.
"""
