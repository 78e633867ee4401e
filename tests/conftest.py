"""
Pytest configuration and fixtures.
"""
import hashlib
import hmac
import json
import os
import time
from typing import Any, AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

# The application module builds its default app at import time
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_fake_key_for_testing")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_fake_secret")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ratapay.api.main import create_app
from ratapay.config import Settings
from ratapay.core.services import ServiceContainer
from ratapay.database.connection import Database
from ratapay.database.store import TransactionStore
from ratapay.integrations.stripe_client import CircuitBreaker, StripeClient

WEBHOOK_SECRET = "whsec_test_fake_secret"


def build_event(event_type: str, transaction_id: Optional[str] = "pi_1") -> dict[str, Any]:
    """Stripe-shaped event payload."""
    obj: dict[str, Any] = {"object": "payment_intent"}
    if transaction_id is not None:
        obj["id"] = transaction_id
    return {
        "id": f"evt_{event_type.replace('.', '_')}",
        "object": "event",
        "type": event_type,
        "data": {"object": obj},
    }


def encode_event(event: dict[str, Any]) -> bytes:
    """Serialize an event the way Stripe sends it."""
    return json.dumps(event, separators=(",", ":")).encode("utf-8")


def sign_payload(
    payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None
) -> str:
    """Generate a valid Stripe-Signature header for testing."""
    if timestamp is None:
        timestamp = int(time.time())
    signed_payload = f"{timestamp}.".encode("utf-8") + payload
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture
def test_settings(tmp_path: Any) -> Settings:
    """Create test settings backed by a throwaway SQLite file."""
    return Settings(
        stripe_secret_key="sk_test_fake_key_for_testing",
        stripe_webhook_secret=WEBHOOK_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ratapay_test.db'}",
        app_name="ratapay-test",
        app_env="test",
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def database(test_settings: Settings) -> AsyncGenerator[Database, Any]:
    """Initialized test database."""
    db = Database(test_settings)
    await db.init()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def store(database: Database) -> TransactionStore:
    """Status store over the test database."""
    return TransactionStore(database.session_factory)


@pytest.fixture
def mock_stripe_client(test_settings: Settings) -> AsyncMock:
    """Stripe client that mints intent pi_1."""
    client = AsyncMock(spec=StripeClient)
    client.settings = test_settings
    client.circuit_breaker = CircuitBreaker()

    mock_payment_intent = MagicMock()
    mock_payment_intent.id = "pi_1"
    mock_payment_intent.client_secret = "secret_pi_1"
    mock_payment_intent.status = "requires_payment_method"
    client.create_payment_intent.return_value = mock_payment_intent
    return client


@pytest_asyncio.fixture
async def services(
    test_settings: Settings, database: Database, mock_stripe_client: AsyncMock
) -> ServiceContainer:
    """Service container wired to the test database and mocked Stripe."""
    return ServiceContainer(
        test_settings, database=database, stripe_client=mock_stripe_client
    )


@pytest_asyncio.fixture
async def client(
    test_settings: Settings, services: ServiceContainer
) -> AsyncGenerator[AsyncClient, Any]:
    """Create test HTTP client."""
    app = create_app(test_settings, services=services)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_intent_data() -> dict[str, Any]:
    """Sample intent creation request."""
    return {"name": "Alice", "email": "a@x.com", "amount": 19.99}
