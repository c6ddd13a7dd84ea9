"""Infrastructure layer package.

Implements Port interfaces with concrete adapters (PostgreSQL, in-memory).
Domain services and gateway routers MUST NOT import from this package directly;
only the composition root (src/main.py) wires adapters in.
"""
