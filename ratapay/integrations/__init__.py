"""External integrations for payment processing."""
from .stripe_client import CircuitBreaker, StripeClient, StripeError, StripeErrorType
from .webhook_verifier import EventVerifier, SignatureInvalid

__all__ = [
    "CircuitBreaker",
    "EventVerifier",
    "SignatureInvalid",
    "StripeClient",
    "StripeError",
    "StripeErrorType",
]
