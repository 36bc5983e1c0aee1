from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.thread_context import ThreadContextInDB
from app.services.thread_context_service import ThreadContextService


def get_thread_context_by_id(
    thread_id: str,
    db: Session = Depends(get_db),
) -> ThreadContextInDB:
    """FastAPI dependency to get a thread context by thread ID."""
    context = ThreadContextService(db).get(thread_id)
    if context is None:
        raise HTTPException(status_code=404, detail="Thread context not found")
    return context
