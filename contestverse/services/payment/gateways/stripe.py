"""
Stripe Payment Gateway Implementation
Implements the BasePaymentGateway for Stripe Checkout over the REST API
"""
import os
import hmac
import json
import time
import hashlib
import httpx
from typing import Dict, Any, Optional
from dotenv import load_dotenv

from contestverse.services.payment.gateways.base import (
    BasePaymentGateway,
    CheckoutSessionResult,
    CheckoutSessionStatus,
    WebhookVerificationResult
)

load_dotenv()


class StripeGateway(BasePaymentGateway):
    """
    Stripe Checkout Implementation

    Features:
    - Hosted checkout session creation
    - Session retrieval for payment reconciliation
    - Webhook signature verification (HMAC-SHA256, Stripe-Signature header)
    """

    gateway_id = "stripe"
    gateway_name = "Stripe Checkout"

    API_URL = "https://api.stripe.com/v1"
    WEBHOOK_TOLERANCE_SECONDS = 300

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize Stripe gateway"""
        env_config = self._load_config_from_env()

        if config is not None:
            env_config.update({k: v for k, v in config.items() if v is not None})

        super().__init__(env_config)

        self.secret_key = self.config.get("secret_key")
        self.webhook_secret = self.config.get("webhook_secret")
        self.api_url = self.config.get("api_url", self.API_URL)
        self.transport = transport

    def _load_config_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        secret_key = os.getenv("STRIPE_SECRET_KEY")
        webhook_secret = os.getenv("STRIPE_WEBHOOK_SECRET")

        if not secret_key:
            print("[WARN] STRIPE_SECRET_KEY not found in environment")
        if not webhook_secret:
            print("[WARN] STRIPE_WEBHOOK_SECRET not found in environment; webhooks will be rejected")

        return {
            "secret_key": secret_key,
            "webhook_secret": webhook_secret,
            "api_url": os.getenv("STRIPE_API_URL", self.API_URL),
        }

    def _validate_config(self):
        """Validate required Stripe configuration"""
        if not self.config.get("secret_key"):
            raise ValueError("STRIPE_SECRET_KEY is required")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_url,
            auth=(self.secret_key, ""),
            timeout=30.0,
            transport=self.transport
        )

    @staticmethod
    def _error_message(response: httpx.Response, fallback: str) -> str:
        try:
            return response.json().get("error", {}).get("message") or fallback
        except ValueError:
            return fallback

    async def create_checkout_session(
        self,
        product_name: str,
        unit_amount: int,
        currency: str,
        customer_email: str,
        metadata: Dict[str, Any],
        success_url: str,
        cancel_url: str
    ) -> CheckoutSessionResult:
        """
        Create a Stripe Checkout session in payment mode.
        Stripe expects form-encoded nested parameters.
        """
        payload = {
            "mode": "payment",
            "line_items[0][price_data][currency]": currency,
            "line_items[0][price_data][unit_amount]": str(unit_amount),
            "line_items[0][price_data][product_data][name]": product_name,
            "line_items[0][quantity]": "1",
            "customer_email": customer_email,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        for key, value in (metadata or {}).items():
            if value is not None:
                payload[f"metadata[{key}]"] = str(value)

        try:
            async with self._client() as client:
                response = await client.post("/checkout/sessions", data=payload)

            if response.status_code == 200:
                response_data = response.json()
                return CheckoutSessionResult(
                    success=True,
                    session_id=response_data.get("id"),
                    url=response_data.get("url")
                )

            return CheckoutSessionResult(
                success=False,
                error_message=self._error_message(response, "Failed to create checkout session")
            )

        except httpx.HTTPError as e:
            return CheckoutSessionResult(success=False, error_message=str(e))

    async def retrieve_session(self, session_id: str) -> CheckoutSessionStatus:
        """Get checkout session outcome from Stripe"""
        try:
            async with self._client() as client:
                response = await client.get(f"/checkout/sessions/{session_id}")

            if response.status_code != 200:
                return CheckoutSessionStatus(
                    success=False,
                    session_id=session_id,
                    error_message=self._error_message(response, "Failed to retrieve checkout session")
                )

            response_data = response.json()

            # payment_intent is an ID unless the caller asked Stripe to expand it
            payment_intent = response_data.get("payment_intent")
            if isinstance(payment_intent, dict):
                payment_intent = payment_intent.get("id")

            customer_email = response_data.get("customer_email") or \
                (response_data.get("customer_details") or {}).get("email")

            return CheckoutSessionStatus(
                success=True,
                session_id=response_data.get("id", session_id),
                payment_status=response_data.get("payment_status"),
                amount_total=response_data.get("amount_total"),
                currency=response_data.get("currency"),
                customer_email=customer_email,
                payment_intent_id=payment_intent,
                metadata=response_data.get("metadata") or {}
            )

        except httpx.HTTPError as e:
            return CheckoutSessionStatus(
                success=False,
                session_id=session_id,
                error_message=str(e)
            )

    async def verify_webhook(
        self,
        headers: Dict[str, str],
        raw_body: bytes
    ) -> WebhookVerificationResult:
        """
        Verify Stripe webhook signature.

        Signature verification:
        1. Read t (timestamp) and v1 (signatures) from Stripe-Signature
        2. HMAC-SHA256 of "{t}.{raw body}" with the endpoint secret, hex encoded
        3. Compare with each v1 and reject stale timestamps
        """
        if not self.webhook_secret:
            return WebhookVerificationResult(
                is_valid=False,
                error_message="Webhook secret is not configured"
            )

        headers_lower = {k.lower(): v for k, v in headers.items()}
        signature_header = headers_lower.get("stripe-signature")

        if not signature_header:
            return WebhookVerificationResult(
                is_valid=False,
                error_message="Missing Stripe-Signature header"
            )

        timestamp = None
        signatures = []
        for part in signature_header.split(","):
            key, _, value = part.strip().partition("=")
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)

        if not timestamp or not signatures:
            return WebhookVerificationResult(
                is_valid=False,
                error_message="Malformed Stripe-Signature header"
            )

        try:
            if abs(time.time() - int(timestamp)) > self.WEBHOOK_TOLERANCE_SECONDS:
                return WebhookVerificationResult(
                    is_valid=False,
                    error_message="Webhook timestamp outside tolerance"
                )
        except ValueError:
            return WebhookVerificationResult(
                is_valid=False,
                error_message="Malformed Stripe-Signature header"
            )

        signed_payload = f"{timestamp}.".encode("utf-8") + raw_body
        expected = hmac.new(
            self.webhook_secret.encode("utf-8"),
            signed_payload,
            hashlib.sha256
        ).hexdigest()

        if not any(hmac.compare_digest(expected, sig) for sig in signatures):
            return WebhookVerificationResult(
                is_valid=False,
                error_message="Invalid webhook signature"
            )

        try:
            event = json.loads(raw_body)
        except ValueError:
            return WebhookVerificationResult(
                is_valid=False,
                error_message="Webhook body is not valid JSON"
            )

        session = (event.get("data") or {}).get("object") or {}

        return WebhookVerificationResult(
            is_valid=True,
            event_type=event.get("type"),
            session_id=session.get("id")
        )
