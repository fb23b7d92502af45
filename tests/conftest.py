from decimal import Decimal
from typing import TYPE_CHECKING, AsyncGenerator, Callable
from unittest.mock import AsyncMock
from uuid import uuid4

if TYPE_CHECKING:
    from bant_scoring.core.cache import CacheService

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bant_scoring.core.default_scoring_config import DEFAULT_SCORING_CONFIG
from bant_scoring.core.locks import KeyedLock
from bant_scoring.main import app
from bant_scoring.schemas.lead import LeadSnapshot
from bant_scoring.schemas.scoring_config import ScoringConfigSnapshot
from bant_scoring.services.lead_scoring import LeadScoringService
from tests.fakes import FakeUnitOfWork, InMemoryStore, config_row


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.incr = AsyncMock(return_value=1)
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis) -> "CacheService":
    """Return a ``CacheService`` backed by the mock Redis client."""
    from bant_scoring.core.cache import CacheService

    return CacheService(redis_client=mock_redis)


# ---------------------------------------------------------------------------
# Leads and configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def make_lead() -> Callable[..., LeadSnapshot]:
    """Factory for lead snapshots with contact details filled in."""

    def _make(**overrides) -> LeadSnapshot:
        data = {
            "id": uuid4(),
            "email": "marie.dupont@example.fr",
            "first_name": "Marie",
            "last_name": "Dupont",
            "lead_type": "estimation_quick",
        }
        data.update(overrides)
        return LeadSnapshot(**data)

    return _make


@pytest.fixture
def hot_lead(make_lead) -> LeadSnapshot:
    """Scores 95: budget 20, authority 25, need 25, timeline 25."""
    return make_lead(
        phone="+33612345678",
        estimated_value=Decimal("320000"),
        ownership_status="proprietaire_unique",
        project_type="vente_urgente",
        timeline="immediate",
    )


@pytest.fixture
def review_lead(make_lead) -> LeadSnapshot:
    """Scores 40: budget 8, authority 8, need 12, timeline 12."""
    return make_lead(
        ownership_status="mandataire",
        project_type="investissement",
        timeline="6_12_mois",
    )


@pytest.fixture
def default_snapshot() -> ScoringConfigSnapshot:
    return ScoringConfigSnapshot.from_rows(
        [config_row(c) for c in DEFAULT_SCORING_CONFIG]
    )


# ---------------------------------------------------------------------------
# Scoring service over the in-memory store
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def scoring_service(store) -> LeadScoringService:
    return LeadScoringService(
        uow_factory=lambda: FakeUnitOfWork(store),
        locks=KeyedLock(),
        max_workers=4,
        max_adjustment=50,
    )
