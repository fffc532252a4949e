from __future__ import annotations

from fastapi import HTTPException, Request, status

from teamride.config.settings import settings
from teamride.errors import PersistenceError, StateConflictError, TeamRideError, ValidationError
from teamride.groups.layout_cache import LayoutCache
from teamride.groups.models import GroupSettings
from teamride.repository.base import Repository


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_layout_cache(request: Request) -> LayoutCache:
    return request.app.state.layout_cache


def get_group_settings() -> GroupSettings:
    return settings.group_settings()


def to_http_exception(err: TeamRideError) -> HTTPException:
    """Map a core error to its HTTP status.

    NOT_FOUND -> 404, validation -> 422, state conflict -> 409,
    persistence -> 503.
    """
    detail = {"code": err.code, "details": err.details}
    if err.code == "NOT_FOUND":
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    if isinstance(err, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)
    if isinstance(err, StateConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    if isinstance(err, PersistenceError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
