"""
Stripe API client with bounded calls and error classification.

Implements:
- Timeout around every Stripe call
- Circuit breaker pattern
- Error classification for logging and metrics

Calls are never retried here; the caller decides what a failure means.
"""
import asyncio
import time
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import stripe
import structlog

from ratapay.config import Settings
from ratapay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StripeErrorType(Enum):
    """Classification of Stripe errors."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    RATE_LIMIT = "rate_limit"


class StripeError(Exception):
    """Base exception for Stripe-related errors."""

    def __init__(
        self,
        message: str,
        error_type: StripeErrorType,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize Stripe error.

        Args:
            message: Error message
            error_type: Classification of error
            original_error: Original Stripe exception
        """
        super().__init__(message)
        self.error_type = error_type
        self.original_error = original_error


class CircuitBreaker:
    """
    Circuit breaker for Stripe API calls.

    Stops calling Stripe for ``timeout`` seconds once ``failure_threshold``
    consecutive transient failures have been seen.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout: int = 60,
        success_threshold: int = 2,
    ):
        """
        Initialize circuit breaker.

        Args:
            failure_threshold: Number of failures before opening circuit
            timeout: Seconds before attempting to close circuit
            success_threshold: Successful calls needed to close circuit
        """
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.success_threshold = success_threshold
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = "closed"  # closed, open, half_open

    def before_call(self) -> None:
        """
        Check whether a call may proceed.

        Raises:
            StripeError: If circuit is open
        """
        if self.state != "open":
            return

        if (
            self.last_failure_time
            and time.time() - self.last_failure_time > self.timeout
        ):
            self._set_state("half_open")
            self.success_count = 0
            logger.info("circuit_breaker_half_open")
            return

        raise StripeError("Circuit breaker is open", StripeErrorType.TRANSIENT)

    def on_success(self) -> None:
        """Record successful call."""
        self.failure_count = 0
        if self.state == "half_open":
            self.success_count += 1
            if self.success_count >= self.success_threshold:
                self._set_state("closed")
                logger.info("circuit_breaker_closed")

    def on_failure(self) -> None:
        """Record failed call."""
        self.failure_count += 1
        self.last_failure_time = time.time()
        if self.state == "half_open" or self.failure_count >= self.failure_threshold:
            self._set_state("open")
            logger.warning(
                "circuit_breaker_opened",
                failure_count=self.failure_count,
            )

    def _set_state(self, state: str) -> None:
        self.state = state
        metrics.set_circuit_breaker_state(state)


class StripeClient:
    """
    Wrapper for the Stripe API used by the intent originator.

    Features:
    - Bounded, non-blocking calls (the SDK runs in the default executor)
    - Circuit breaker pattern
    - Comprehensive error classification
    """

    def __init__(
        self,
        settings: Settings,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        """Initialize Stripe client."""
        stripe.api_key = settings.stripe_secret_key
        if settings.stripe_api_version:
            stripe.api_version = settings.stripe_api_version
        stripe.max_network_retries = 0
        # SDK HTTP timeout matches the awaited bound
        stripe.default_http_client = stripe.RequestsClient(
            timeout=settings.stripe_timeout_seconds
        )
        self.settings = settings
        self.circuit_breaker = circuit_breaker or CircuitBreaker()

        logger.info(
            "stripe_client_initialized",
            api_version=settings.stripe_api_version,
            test_mode=settings.is_test_mode,
        )

    @staticmethod
    def _classify_error(error: stripe.StripeError) -> StripeErrorType:
        """
        Classify Stripe error.

        Args:
            error: Stripe error

        Returns:
            StripeErrorType: Error classification
        """
        if isinstance(error, stripe.RateLimitError):
            return StripeErrorType.RATE_LIMIT
        elif isinstance(error, (stripe.APIConnectionError, stripe.APIError)):
            return StripeErrorType.TRANSIENT
        elif isinstance(
            error,
            (
                stripe.CardError,
                stripe.InvalidRequestError,
                stripe.AuthenticationError,
                stripe.PermissionError,
            ),
        ):
            return StripeErrorType.PERMANENT
        else:
            # Unknown errors are treated as transient
            return StripeErrorType.TRANSIENT

    def _handle_stripe_error(self, operation: str, error: stripe.StripeError) -> StripeError:
        """
        Classify a Stripe error and feed the circuit breaker.

        Args:
            operation: Name of the Stripe operation
            error: Stripe error

        Returns:
            StripeError: Classified error for the caller to raise
        """
        error_type = self._classify_error(error)
        if error_type != StripeErrorType.PERMANENT:
            self.circuit_breaker.on_failure()

        logger.error(
            "stripe_api_error",
            operation=operation,
            error_type=error_type.value,
            error_code=getattr(error, "code", None),
            error_message=str(error),
        )
        metrics.record_stripe_api_error(error_type.value)

        return StripeError(
            message=str(error),
            error_type=error_type,
            original_error=error,
        )

    async def _call(self, operation: str, func: Callable[[], T]) -> T:
        """
        Run a blocking Stripe SDK call with the circuit breaker and a timeout.

        Raises:
            StripeError: If the circuit is open, the call times out or Stripe errors
        """
        self.circuit_breaker.before_call()

        loop = asyncio.get_running_loop()
        start_time = time.time()
        try:
            result = await asyncio.wait_for(
                loop.run_in_executor(None, func),
                timeout=self.settings.stripe_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            self.circuit_breaker.on_failure()
            metrics.record_stripe_api_call(operation, "timeout", time.time() - start_time)
            metrics.record_stripe_api_error(StripeErrorType.TRANSIENT.value)
            logger.error(
                "stripe_api_timeout",
                operation=operation,
                timeout_seconds=self.settings.stripe_timeout_seconds,
            )
            raise StripeError(
                f"Stripe {operation} timed out", StripeErrorType.TRANSIENT, e
            ) from e
        except stripe.StripeError as e:
            metrics.record_stripe_api_call(operation, "error", time.time() - start_time)
            raise self._handle_stripe_error(operation, e) from e

        self.circuit_breaker.on_success()
        metrics.record_stripe_api_call(operation, "success", time.time() - start_time)
        return result

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        description: str,
        receipt_email: Optional[str] = None,
    ) -> stripe.PaymentIntent:
        """
        Create a Stripe PaymentIntent.

        Args:
            amount_cents: Amount in minor currency units
            currency: Currency code (e.g., 'usd')
            description: Human-readable description shown in the dashboard
            receipt_email: Where Stripe sends the receipt

        Returns:
            stripe.PaymentIntent: Created payment intent

        Raises:
            StripeError: If payment intent creation fails
        """
        logger.info(
            "creating_payment_intent",
            amount_cents=amount_cents,
            currency=currency,
        )

        def _create() -> stripe.PaymentIntent:
            params: dict[str, Any] = {
                "amount": amount_cents,
                "currency": currency.lower(),
                "description": description,
            }
            if receipt_email:
                params["receipt_email"] = receipt_email
            return stripe.PaymentIntent.create(**params)

        payment_intent = await self._call("create_payment_intent", _create)

        logger.info(
            "payment_intent_created",
            payment_intent_id=payment_intent.id,
            status=payment_intent.status,
        )

        return payment_intent
