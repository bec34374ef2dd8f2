"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - Engine and session lifecycle live in infrastructure/database.py
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL (ADR: native async, no thread pool overhead)
"""
