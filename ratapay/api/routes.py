"""
API routes for payment intent tracking.
"""
import asyncio
import time
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ratapay.core.intent_originator import PaymentCreationFailed
from ratapay.core.services import ServiceContainer
from ratapay.database.store import StoreError
from ratapay.integrations.webhook_verifier import SignatureInvalid
from ratapay.monitoring.metrics import metrics

from .schemas import (
    CreateIntentRequest,
    CreateIntentResponse,
    HealthCheckResponse,
    PaymentStatusResponse,
    WebhookResponse,
)

logger = structlog.get_logger(__name__)

# Create routers
payment_router = APIRouter(tags=["payments"])
webhook_router = APIRouter(tags=["webhooks"])
monitoring_router = APIRouter(tags=["monitoring"])


def get_services(request: Request) -> ServiceContainer:
    """Services built for this application instance."""
    return request.app.state.services


@payment_router.post(
    "/webhook",
    response_model=CreateIntentResponse,
    summary="Create a payment intent",
    description="Receives payer data from the front-end and creates a payment intent with Stripe.",
    responses={500: {"description": "Error creating payment intent"}},
)
async def create_payment_intent(
    request: CreateIntentRequest,
    services: ServiceContainer = Depends(get_services),
) -> CreateIntentResponse:
    """Create a payment intent and start tracking it as pending."""
    start_time = time.time()

    try:
        created = await services.originator.create_intent(
            name=request.name,
            email=request.email,
            amount=request.amount,
        )
    except PaymentCreationFailed as e:
        logger.error("api_create_payment_intent_error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment failed",
        )

    logger.info(
        "api_create_payment_intent_success",
        transaction_id=created.transaction_id,
        duration_seconds=time.time() - start_time,
    )

    return CreateIntentResponse(
        client_secret=created.client_secret,
        transaction_id=created.transaction_id,
        payment_intent_id=created.transaction_id,
    )


@webhook_router.post(
    "/stripe-webhook",
    response_model=WebhookResponse,
    summary="Stripe webhook endpoint",
    description="Verifies and applies Stripe payment intent events.",
    responses={400: {"description": "Webhook signature verification failed"}},
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """
    Handle Stripe webhook events.

    Always acknowledges a verified delivery, including unknown event types and
    events for untracked intents.
    """
    start_time = time.time()

    # Signature is computed over the raw bytes
    body = await request.body()

    try:
        event = services.verifier.verify(body, stripe_signature)
    except SignatureInvalid as e:
        metrics.record_signature_failure()
        logger.error("api_webhook_signature_error", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook Error: {e}",
        )

    try:
        ack = await asyncio.wait_for(
            services.processor.apply(event),
            timeout=services.settings.webhook_timeout_seconds,
        )
    except (StoreError, asyncio.TimeoutError) as e:
        # Stripe redelivers on a non-2xx answer
        logger.error(
            "api_webhook_processing_error",
            event_id=event.event_id,
            event_type=event.event_type,
            error=str(e) or type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed",
        )

    metrics.record_webhook_event(
        event.event_type or "unknown", ack.outcome.value, time.time() - start_time
    )

    return {"received": True}


@payment_router.get(
    "/payment-status/{transaction_id}",
    response_model=PaymentStatusResponse,
    summary="Get payment status by PaymentIntent ID",
)
async def get_payment_status(
    transaction_id: str,
    services: ServiceContainer = Depends(get_services),
) -> Dict[str, Any]:
    """Current status; 'pending' for unknown ids."""
    return {"status": await services.status_query.get_status(transaction_id)}


@monitoring_router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Health check",
    description="Check overall system health",
)
async def health(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Health check endpoint for monitoring."""
    return await services.health.check_all()


@monitoring_router.get(
    "/health/live",
    response_model=HealthCheckResponse,
    summary="Liveness probe",
)
async def liveness(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Liveness probe endpoint."""
    return await services.health.liveness()


@monitoring_router.get(
    "/health/ready",
    response_model=HealthCheckResponse,
    summary="Readiness probe",
)
async def readiness(services: ServiceContainer = Depends(get_services)) -> Dict[str, Any]:
    """Readiness probe endpoint."""
    result = await services.health.readiness()
    if result["status"] != "healthy":
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result)
    return result


@monitoring_router.get(
    "/metrics",
    summary="Prometheus metrics",
    include_in_schema=False,
)
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
