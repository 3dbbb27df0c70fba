"""
Synth Backend: Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── clock: Controllable UTC clock shared by store and scheduler
    ├── store: Empty EntityStore on that clock
    ├── seeded_store: Store holding the demo marketplace
    ├── author / buyer: Two users in `store`
    ├── make_snippet: Factory for snippets owned by any user
    ├── scheduler: PublishScheduler over `store` with a 3-day delay
    └── test_client: HTTPX AsyncClient for API endpoint testing
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings for testing BEFORE any synth imports
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["SNAPSHOT_PATH"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from synth.config import DEFAULT_DOWNLOADABLE_DELAY  # noqa: E402
from synth.schemas.inserts import InsertSnippet, InsertUser  # noqa: E402
from synth.services.publish_scheduler import PublishScheduler  # noqa: E402
from synth.storage.seed import seed_demo_data  # noqa: E402
from synth.storage.store import EntityStore  # noqa: E402


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    """A fresh, empty store whose timestamps come from `clock`."""
    return EntityStore(clock=clock)


@pytest.fixture
def seeded_store(store):
    seed_demo_data(store)
    return store


@pytest.fixture
def author(store):
    return store.create_user(
        InsertUser(username="alice", password="pw", email="alice@example.com", avatar="a.png")
    )


@pytest.fixture
def buyer(store):
    return store.create_user(
        InsertUser(username="bob", password="pw", email="bob@example.com", avatar="b.png")
    )


@pytest.fixture
def make_snippet(store, clock):
    """
    Factory for snippets.

    Usage:
        snippet = make_snippet(author.id, title="Hook", total_sales=3)

    Snippets are published unless `draft=True`; any extra keyword is applied
    with update_snippet after creation (for counters the payload cannot set).
    """

    def _make(user_id, title="Snippet", draft=False, price="2.99", bundle_id=None, **changes):
        snippet = store.create_snippet(
            InsertSnippet(
                title=title,
                code="print('hi')",
                language="python",
                price=price,
                user_id=user_id,
                bundle_id=bundle_id,
                published_at=None if draft else clock(),
            )
        )
        if changes:
            snippet = store.update_snippet(snippet.id, **changes)
        return snippet

    return _make


@pytest.fixture
def scheduler(store):
    return PublishScheduler(store, DEFAULT_DOWNLOADABLE_DELAY)


@pytest_asyncio.fixture
async def test_client(store):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan, so the test store is attached
    to app.state directly.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from synth.main import create_app

    app = create_app()
    app.state.store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
