from fastapi import APIRouter, Depends, Query
from fastapi_pagination import Page, Params
from fastapi_pagination.ext.sqlalchemy import paginate
from sqlalchemy.orm import Session

from app.db import get_db
from app.routers.utils.dependencies import get_thread_context_by_id
from app.schemas.thread_context import (
    ThreadContextInDB,
    ThreadContextRead,
    ThreadContextSummary,
    ThreadStats,
)
from app.services.thread_context_service import ThreadContextService

router = APIRouter(
    prefix="/threads",
    tags=["threads"],
    responses={404: {"description": "Not found"}},
)


@router.get("/stats", response_model=ThreadStats)
def get_thread_stats(db: Session = Depends(get_db)) -> ThreadStats:
    return ThreadStats(active_threads=ThreadContextService(db).count_active())


@router.get("", response_model=Page[ThreadContextSummary])
def list_threads_for_user(
    user_id: str = Query(..., min_length=1),
    params: Params = Depends(),
    db: Session = Depends(get_db),
) -> Page[ThreadContextSummary]:
    """List a user's thread contexts, oldest first, without transcripts."""
    svc = ThreadContextService(db)
    return paginate(
        svc.get_user_threads_query(user_id),
        params=params,
        transformer=lambda rows: [svc.to_summary(row) for row in rows],
    )


@router.get("/{thread_id}", response_model=ThreadContextRead)
def get_thread(
    context: ThreadContextInDB = Depends(get_thread_context_by_id),
) -> ThreadContextRead:
    return ThreadContextRead.model_validate(context.model_dump())
