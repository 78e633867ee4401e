"""
Payment intent creation.

Flow:
1. Validate and convert the amount to minor units
2. Create the PaymentIntent at Stripe
3. Record the intent as ``pending``
4. Return the client secret and intent id to the caller
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

import structlog
from pydantic import BaseModel, ConfigDict

from ratapay.config import Settings
from ratapay.database.models import TransactionStatus
from ratapay.database.store import StoreError, TransactionStore
from ratapay.integrations.stripe_client import StripeClient, StripeError
from ratapay.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)


class PaymentCreationFailed(Exception):
    """Raised when a payment intent could not be created and recorded."""

    pass


class InvalidAmount(PaymentCreationFailed):
    """Raised when the requested amount is not a positive value."""

    pass


class CreatedIntent(BaseModel):
    """What the client needs to finish the payment with Stripe."""

    model_config = ConfigDict(frozen=True)

    client_secret: str
    transaction_id: str


def to_minor_units(amount: Union[Decimal, float, int, str]) -> int:
    """
    Convert a major-unit amount to minor units, rounding half up.

    Raises:
        InvalidAmount: If the amount is not numeric or not positive
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmount(f"Amount is not a number: {amount!r}") from e

    if not value.is_finite() or value <= 0:
        raise InvalidAmount(f"Amount must be positive: {amount!r}")

    minor = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if minor <= 0:
        raise InvalidAmount(f"Amount rounds to zero: {amount!r}")
    return minor


class IntentOriginator:
    """Creates payment intents at Stripe and starts tracking them."""

    def __init__(
        self,
        stripe_client: StripeClient,
        store: TransactionStore,
        settings: Settings,
    ) -> None:
        self.stripe_client = stripe_client
        self.store = store
        self.settings = settings

    async def create_intent(
        self,
        name: str,
        email: str,
        amount: Union[Decimal, float, int, str],
    ) -> CreatedIntent:
        """
        Create a payment intent and record it as pending.

        Args:
            name: Payer name, used in the intent description
            email: Receipt destination
            amount: Amount in major currency units

        Returns:
            CreatedIntent: Client secret and transaction id

        Raises:
            PaymentCreationFailed: If validation, Stripe or the store fails
        """
        try:
            amount_cents = to_minor_units(amount)
        except InvalidAmount as e:
            metrics.record_intent_creation("failed")
            logger.warning("payment_intent_amount_rejected", error=str(e))
            raise

        logger.info(
            "payment_intent_creation_started",
            amount_cents=amount_cents,
            currency=self.settings.currency,
        )

        try:
            payment_intent = await self.stripe_client.create_payment_intent(
                amount_cents=amount_cents,
                currency=self.settings.currency,
                description=f"The Customer is {name}",
                receipt_email=email,
            )
        except StripeError as e:
            metrics.record_intent_creation("failed", amount_cents)
            logger.error(
                "payment_intent_creation_failed",
                error=str(e),
                error_type=e.error_type.value,
            )
            raise PaymentCreationFailed("Payment failed") from e

        transaction_id = payment_intent.id

        try:
            await self.store.insert(transaction_id, TransactionStatus.PENDING)
        except StoreError as e:
            metrics.record_intent_creation("failed", amount_cents)
            # Stripe now holds an intent that is not tracked locally
            logger.error(
                "intent_created_without_record",
                transaction_id=transaction_id,
                error=str(e),
            )
            raise PaymentCreationFailed("Payment failed") from e

        metrics.record_intent_creation("created", amount_cents)
        logger.info("payment_intent_tracked", transaction_id=transaction_id)

        return CreatedIntent(
            client_secret=payment_intent.client_secret,
            transaction_id=transaction_id,
        )
