"""ORM Models - SQLAlchemy declarative models for the connection graph.

Invariants:
    - All models inherit from Base (db/base.py)
    - Connection is owned by the edge store; User/Neighborhood/UserNeighborhood are
      read-only mirrors of the identity directory

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from app.models.user import User  # noqa: F401
from app.models.neighborhood import Neighborhood  # noqa: F401
from app.models.user_neighborhood import UserNeighborhood  # noqa: F401
from app.models.connection import Connection  # noqa: F401
