"""
Explicitly constructed application services.

One ``ServiceContainer`` holds the shared database pool, the Stripe client and
the components built on them. ``start()`` runs before traffic is served and
``close()`` on shutdown.
"""
from typing import Optional

import structlog

from ratapay.config import Settings
from ratapay.core.event_processor import EventProcessor
from ratapay.core.intent_originator import IntentOriginator
from ratapay.core.status_query import StatusQueryService
from ratapay.database.connection import Database
from ratapay.database.store import TransactionStore
from ratapay.integrations.stripe_client import StripeClient
from ratapay.integrations.webhook_verifier import EventVerifier
from ratapay.monitoring.health import HealthCheck

logger = structlog.get_logger(__name__)


class ServiceContainer:
    """Wires the status store, Stripe client and core components together."""

    def __init__(
        self,
        settings: Settings,
        database: Optional[Database] = None,
        stripe_client: Optional[StripeClient] = None,
        verifier: Optional[EventVerifier] = None,
    ) -> None:
        self.settings = settings
        self.database = database or Database(settings)
        self.stripe_client = stripe_client or StripeClient(settings)
        self.verifier = verifier or EventVerifier(settings)

        self.store = TransactionStore(self.database.session_factory)
        self.originator = IntentOriginator(self.stripe_client, self.store, settings)
        self.processor = EventProcessor(self.store)
        self.status_query = StatusQueryService(self.store)
        self.health = HealthCheck(self.database, self.stripe_client)

    async def start(self) -> None:
        """Open the database pool and make sure tables exist."""
        await self.database.init()
        logger.info("services_started")

    async def close(self) -> None:
        """Release the database pool."""
        await self.database.close()
        logger.info("services_closed")
