"""
Prometheus metrics for the payment status service.

Tracks:
- Payment intent creation outcomes
- Stripe API calls, durations and errors
- Circuit breaker state
- Webhook events by type and outcome
- Status queries
"""
from prometheus_client import Counter, Gauge, Histogram

# Payment intent metrics
payment_intents_created_total = Counter(
    "payment_intents_created_total",
    "Total payment intent creation attempts",
    ["outcome"],  # created, failed
)

payment_intent_amount_cents = Histogram(
    "payment_intent_amount_cents",
    "Requested payment intent amounts in cents",
    buckets=(50, 100, 500, 1000, 5000, 10000, 50000, 100000, 500000, 1000000),
)

# Stripe API metrics
stripe_api_requests_total = Counter(
    "stripe_api_requests_total",
    "Total Stripe API requests",
    ["operation", "status"],
)

stripe_api_errors_total = Counter(
    "stripe_api_errors_total",
    "Total Stripe API errors",
    ["error_type"],  # transient, permanent, rate_limit
)

stripe_api_duration_seconds = Histogram(
    "stripe_api_duration_seconds",
    "Stripe API call duration in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
)

stripe_circuit_breaker_state = Gauge(
    "stripe_circuit_breaker_state",
    "Stripe circuit breaker state (0=closed, 1=open, 2=half_open)",
)

# Webhook metrics
webhook_events_received_total = Counter(
    "webhook_events_received_total",
    "Total webhook events received",
    ["event_type"],
)

webhook_events_processed_total = Counter(
    "webhook_events_processed_total",
    "Total webhook events processed",
    ["event_type", "outcome"],  # applied, not_found, ignored
)

webhook_signature_failures_total = Counter(
    "webhook_signature_failures_total",
    "Total webhook deliveries rejected for a bad signature",
)

webhook_processing_duration_seconds = Histogram(
    "webhook_processing_duration_seconds",
    "Webhook processing duration in seconds",
    ["event_type"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

# Status query metrics
status_queries_total = Counter(
    "status_queries_total",
    "Total payment status queries",
    ["result"],  # found, defaulted
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_intent_creation(outcome: str, amount_cents: int | None = None) -> None:
        """Record a payment intent creation attempt."""
        payment_intents_created_total.labels(outcome=outcome).inc()
        if amount_cents is not None:
            payment_intent_amount_cents.observe(amount_cents)

    @staticmethod
    def record_stripe_api_call(
        operation: str, status: str, duration_seconds: float
    ) -> None:
        """Record Stripe API call."""
        stripe_api_requests_total.labels(operation=operation, status=status).inc()
        stripe_api_duration_seconds.labels(operation=operation).observe(duration_seconds)

    @staticmethod
    def record_stripe_api_error(error_type: str) -> None:
        """Record Stripe API error."""
        stripe_api_errors_total.labels(error_type=error_type).inc()

    @staticmethod
    def set_circuit_breaker_state(state: str) -> None:
        """Set circuit breaker state."""
        state_map = {"closed": 0, "open": 1, "half_open": 2}
        stripe_circuit_breaker_state.set(state_map.get(state, 0))

    @staticmethod
    def record_webhook_event(event_type: str, outcome: str, duration_seconds: float) -> None:
        """Record webhook event processing."""
        webhook_events_received_total.labels(event_type=event_type).inc()
        webhook_events_processed_total.labels(event_type=event_type, outcome=outcome).inc()
        webhook_processing_duration_seconds.labels(event_type=event_type).observe(
            duration_seconds
        )

    @staticmethod
    def record_signature_failure() -> None:
        """Record a rejected webhook delivery."""
        webhook_signature_failures_total.inc()

    @staticmethod
    def record_status_query(result: str) -> None:
        """Record a status query."""
        status_queries_total.labels(result=result).inc()


# Export singleton instance
metrics = MetricsCollector()
