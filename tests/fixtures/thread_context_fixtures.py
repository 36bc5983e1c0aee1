"""Fixtures for thread contexts."""

from datetime import datetime, timedelta, timezone

import pytest

from app.schemas.thread_context import ThreadContextInDB, ThreadMessage
from app.services.thread_context_service import ThreadContextService


@pytest.fixture(scope="function")
def fixed_now():
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def make_thread_context(db, faker, fixed_now):
    """
    Factory inserting a thread context through the store.
    age_hours sets last_activity relative to fixed_now.
    """

    def _make(
        thread_id=None,
        user_id=None,
        messages=None,
        age_hours=0.0,
        is_active=True,
    ) -> ThreadContextInDB:
        messages = messages or []
        last_activity = fixed_now - timedelta(hours=age_hours)
        context = ThreadContextInDB(
            thread_id=thread_id or faker.unique.numerify("#" * 18),
            user_id=user_id or faker.numerify("#" * 18),
            channel_id=faker.numerify("#" * 18),
            guild_id=faker.numerify("#" * 18),
            messages=messages,
            created_at=last_activity - timedelta(minutes=5),
            last_activity=last_activity,
            is_active=is_active,
            message_count=len(messages),
        )
        ThreadContextService(db).insert(context)
        return context

    return _make


@pytest.fixture(scope="function")
def setup_thread_context(make_thread_context, faker, fixed_now):
    """A thread context holding one recorded exchange."""
    return make_thread_context(
        messages=[
            ThreadMessage(role="user", content=faker.sentence(), timestamp=fixed_now),
            ThreadMessage(
                role="assistant", content=faker.paragraph(), timestamp=fixed_now
            ),
        ]
    )
