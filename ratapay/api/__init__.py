"""FastAPI application and routes."""
from .main import app, create_app
from .schemas import (
    CreateIntentRequest,
    CreateIntentResponse,
    PaymentStatusResponse,
    WebhookResponse,
)

__all__ = [
    "app",
    "create_app",
    "CreateIntentRequest",
    "CreateIntentResponse",
    "PaymentStatusResponse",
    "WebhookResponse",
]
