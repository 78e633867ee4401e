"""
Health checks for liveness/readiness probes.

Checks:
- Database connectivity
- Stripe client availability (configuration and circuit breaker)
"""
from typing import TYPE_CHECKING, Any, Dict

import structlog

from ratapay.database.connection import Database

if TYPE_CHECKING:
    from ratapay.integrations.stripe_client import StripeClient

logger = structlog.get_logger(__name__)


class HealthCheckError(Exception):
    """Raised when health check fails."""

    pass


class HealthCheck:
    """
    Health check service for monitoring system dependencies.

    Provides:
    - Database connectivity check
    - Stripe availability check
    - Overall system health status
    """

    def __init__(self, database: Database, stripe_client: "StripeClient") -> None:
        self.database = database
        self.stripe_client = stripe_client

    async def check_database(self) -> Dict[str, Any]:
        """
        Check database connectivity.

        Returns:
            Dict[str, Any]: Database health status

        Raises:
            HealthCheckError: If database check fails
        """
        try:
            await self.database.ping()
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            raise HealthCheckError(f"Database health check failed: {str(e)}") from e

        return {
            "status": "healthy",
            "service": "database",
            "message": "Database connection successful",
        }

    async def check_stripe(self) -> Dict[str, Any]:
        """
        Check that Stripe calls are currently allowed.

        No request is sent to Stripe; an open circuit breaker means recent
        calls have been failing.

        Raises:
            HealthCheckError: If the circuit breaker is open
        """
        state = self.stripe_client.circuit_breaker.state
        if state == "open":
            logger.warning("stripe_health_check_failed", circuit_state=state)
            raise HealthCheckError("Stripe circuit breaker is open")

        return {
            "status": "healthy",
            "service": "stripe",
            "message": "Stripe client available",
            "circuit_state": state,
            "test_mode": self.stripe_client.settings.is_test_mode,
        }

    async def check_all(self) -> Dict[str, Any]:
        """
        Run all health checks.

        Returns:
            Dict[str, Any]: Overall health status
        """
        checks = {}
        all_healthy = True

        for name, check in (("database", self.check_database), ("stripe", self.check_stripe)):
            try:
                checks[name] = await check()
            except HealthCheckError as e:
                checks[name] = {
                    "status": "unhealthy",
                    "service": name,
                    "error": str(e),
                }
                all_healthy = False

        return {
            "status": "healthy" if all_healthy else "unhealthy",
            "checks": checks,
        }

    async def liveness(self) -> Dict[str, Any]:
        """Liveness probe; does not touch external dependencies."""
        return {
            "status": "alive",
            "message": "Application is running",
        }

    async def readiness(self) -> Dict[str, Any]:
        """Readiness probe; verifies all dependencies are available."""
        return await self.check_all()
