"""
FastAPI dependencies for the marking tree endpoints.

The host application is expected to override ``get_current_user_id`` with
its own authentication; the header-based default is for trusted internal
callers and tests.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from marking_tree.business_logic.context import EngineContext
from marking_tree.database import get_db
from marking_tree.exceptions import UnauthorizedException
from marking_tree.sources.registry import SourceRegistry


def get_current_user_id(
    x_user_id: Annotated[Optional[int], Header()] = None,
) -> int:
    if x_user_id is None:
        raise UnauthorizedException(detail="No authenticated user for this request")
    return x_user_id


def get_source_registry(request: Request) -> SourceRegistry:
    return request.app.state.sources


def get_engine_context(
    user_id: Annotated[int, Depends(get_current_user_id)],
    db: Session = Depends(get_db),
) -> EngineContext:
    """A fresh context per request, so nothing memoized outlives it."""
    return EngineContext(db=db, user_id=user_id)
