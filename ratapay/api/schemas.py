"""
Pydantic schemas for API request/response models.

Field names on the wire are camelCase to match the front-end client.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateIntentRequest(BaseModel):
    """Request schema for creating a payment intent."""

    name: str = Field(..., description="Payer name")
    email: str = Field(..., description="Receipt email address")
    amount: Decimal = Field(..., description="Amount in major currency units (e.g. 19.99)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "Alice", "email": "a@x.com", "amount": 19.99},
            ]
        }
    }


class CreateIntentResponse(BaseModel):
    """Response schema for payment intent creation."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "clientSecret": "pi_1_secret_abc",
                    "transactionId": "pi_1",
                    "paymentIntentId": "pi_1",
                }
            ]
        },
    )

    client_secret: str = Field(..., alias="clientSecret", description="Stripe client secret")
    transaction_id: str = Field(..., alias="transactionId", description="Stripe PaymentIntent ID")
    payment_intent_id: str = Field(
        ..., alias="paymentIntentId", description="Same as transactionId"
    )


class WebhookResponse(BaseModel):
    """Response schema for webhook deliveries."""

    received: bool = Field(..., description="Delivery acknowledged")


class PaymentStatusResponse(BaseModel):
    """Response schema for payment status."""

    status: str = Field(..., description="Payment status, 'pending' when unknown")


class HealthCheckResponse(BaseModel):
    """Response schema for health checks."""

    status: str = Field(..., description="Overall health status (healthy/unhealthy)")
    checks: Optional[Dict[str, Any]] = Field(default=None, description="Individual service checks")
    message: Optional[str] = Field(default=None, description="Status message")
