"""API Dependencies — caller identity and per-request service wiring.

Invariants:
    - Every graph endpoint resolves the caller through get_current_user_id
    - A missing or malformed X-User-Id header is a 401, never a 400 or 500
    - Stores and services are built per request around the request's AsyncSession

Design Decisions:
    - Identity arrives from the upstream gateway as a header; token verification
      happens before traffic reaches this service
    - Settings read through get_settings() so tests can override bounds via
      app.dependency_overrides[get_settings]
"""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.domain_types import UserId
from app.core.errors import CallerIdentityError
from app.infrastructure.database import get_db
from app.services.connection_service import ConnectionService
from app.services.edge_store import SqlEdgeStore
from app.services.recommendation_service import RecommendationService
from app.services.user_directory import SqlUserDirectory


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> UserId:
    if not x_user_id:
        raise CallerIdentityError("Missing X-User-Id header")
    try:
        return UserId(UUID(x_user_id))
    except ValueError:
        raise CallerIdentityError("X-User-Id is not a valid UUID")


def get_edge_store(db: AsyncSession = Depends(get_db)) -> SqlEdgeStore:
    return SqlEdgeStore(db)


def get_user_directory(db: AsyncSession = Depends(get_db)) -> SqlUserDirectory:
    return SqlUserDirectory(db)


def get_connection_service(
    store: SqlEdgeStore = Depends(get_edge_store),
    directory: SqlUserDirectory = Depends(get_user_directory),
    settings: Settings = Depends(get_settings),
) -> ConnectionService:
    return ConnectionService(
        store, directory, rerequest_limit=settings.rerequest_limit,
    )


def get_recommendation_service(
    store: SqlEdgeStore = Depends(get_edge_store),
    directory: SqlUserDirectory = Depends(get_user_directory),
    settings: Settings = Depends(get_settings),
) -> RecommendationService:
    return RecommendationService(
        store, directory,
        candidate_cap=settings.recommendation_candidate_cap,
        max_limit=settings.recommendation_max_limit,
    )
