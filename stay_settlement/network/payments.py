"""
Payment processor gateway (Stripe).

Wraps the three processor operations the pipeline needs: opening a hosted
checkout session, verifying webhook signatures, and issuing refunds.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import stripe
import structlog

from stay_settlement.config import (
    PAYMENT_SECRET_KEY,
    PAYMENT_TIMEOUT_SECONDS,
    PAYMENT_WEBHOOK_SECRET,
)
from stay_settlement.errors import ServiceUnavailable, SignatureInvalid
from stay_settlement.metrics import payment_requests

logger = structlog.get_logger(__name__)

# Bounded calls, no silent replays of checkout creation or refunds
stripe.default_http_client = stripe.RequestsClient(timeout=PAYMENT_TIMEOUT_SECONDS)
stripe.max_network_retries = 0


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


class PaymentGateway:
    """Stripe-backed implementation of the payment processor interface."""

    def __init__(self, secret_key: str = PAYMENT_SECRET_KEY, webhook_secret: str = PAYMENT_WEBHOOK_SECRET):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    def create_checkout_session(
        self,
        *,
        amount: int,
        currency: str,
        product_name: str,
        description: str,
        customer_email: str,
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
        connected_account_id: Optional[str] = None,
        application_fee_amount: Optional[int] = None,
    ) -> CheckoutSession:
        """
        Open a hosted checkout session for a single line item.

        Args:
            amount (int): Total to charge, in minor units.
            connected_account_id (str, optional): Owner payout account the
                charge is routed to, if one is configured.
            application_fee_amount (int, optional): Platform commission kept
                from a charge routed to a connected account, in minor units.

        Raises:
            ServiceUnavailable: If the processor call fails.
        """
        params: Dict[str, Any] = {
            "mode": "payment",
            "customer_email": customer_email,
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "unit_amount": amount,
                        "product_data": {"name": product_name, "description": description},
                    },
                    "quantity": 1,
                }
            ],
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if connected_account_id:
            params["payment_intent_data"] = {
                "on_behalf_of": connected_account_id,
                "transfer_data": {"destination": connected_account_id},
            }
            if application_fee_amount:
                params["payment_intent_data"]["application_fee_amount"] = application_fee_amount

        try:
            session = stripe.checkout.Session.create(api_key=self.secret_key, **params)
        except stripe.StripeError as err:
            payment_requests.labels(operation="create_checkout_session", outcome="failure").inc()
            logger.error("checkout_session_create_failed", error=str(err))
            raise ServiceUnavailable("Payment processor unavailable") from err

        payment_requests.labels(operation="create_checkout_session", outcome="success").inc()
        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify a webhook payload signature and decode the event.

        Returns:
            Dict[str, Any]: The decoded event body.

        Raises:
            SignatureInvalid: If the signature header is missing or does not
                match, or the payload is not valid JSON.
        """
        if not signature:
            raise SignatureInvalid("Missing signature header")
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"), signature, self.webhook_secret
            )
            event = json.loads(payload)
        except stripe.SignatureVerificationError as err:
            raise SignatureInvalid("Invalid signature") from err
        except (UnicodeDecodeError, ValueError) as err:
            raise SignatureInvalid("Invalid payload") from err

        if not isinstance(event, dict):
            raise SignatureInvalid("Invalid payload")
        return event

    def refund(self, payment_intent_id: str) -> str:
        """
        Refund a captured payment in full.

        Returns:
            str: The processor's refund id.

        Raises:
            ServiceUnavailable: If the refund could not be issued.
        """
        try:
            refund = stripe.Refund.create(api_key=self.secret_key, payment_intent=payment_intent_id)
        except stripe.StripeError as err:
            payment_requests.labels(operation="refund", outcome="failure").inc()
            logger.error("refund_failed", payment_intent_id=payment_intent_id, error=str(err))
            raise ServiceUnavailable("Refund could not be issued") from err

        payment_requests.labels(operation="refund", outcome="success").inc()
        logger.info("refund_issued", payment_intent_id=payment_intent_id, refund_id=refund.id)
        return str(refund.id)
