"""Infrastructure Layer — database session management and structured logging.

Invariants:
    - Infrastructure never imports from core/ domain logic, except core/errors.py
    - Every SQLAlchemy failure that escapes a store is mapped to DatabaseError

Design Decisions:
    - Cross-cutting concerns live here so services stay focused on the graph
"""
