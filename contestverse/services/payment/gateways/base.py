"""
Base Payment Gateway
Abstract class defining the interface for hosted-checkout payment providers
"""
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from enum import Enum


class CheckoutPaymentStatus(str, Enum):
    """Payment status of a checkout session"""
    PAID = "paid"
    UNPAID = "unpaid"
    NO_PAYMENT_REQUIRED = "no_payment_required"


@dataclass
class CheckoutSessionResult:
    """Result of creating a checkout session"""
    success: bool
    session_id: Optional[str] = None
    url: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class CheckoutSessionStatus:
    """Outcome of a checkout session as reported by the provider"""
    success: bool
    session_id: Optional[str] = None
    payment_status: Optional[str] = None
    amount_total: Optional[int] = None  # minor units
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    payment_intent_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == CheckoutPaymentStatus.PAID.value


@dataclass
class WebhookVerificationResult:
    """Result of webhook verification"""
    is_valid: bool
    event_type: Optional[str] = None
    session_id: Optional[str] = None
    error_message: Optional[str] = None


class BasePaymentGateway(ABC):
    """
    Abstract base class for payment gateways.
    All payment gateways must implement these methods.
    """

    gateway_id: str = "base"
    gateway_name: str = "Base Gateway"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize gateway with configuration.

        Args:
            config: Gateway configuration including API keys, endpoints, etc.
        """
        self.config = config
        self._validate_config()

    @abstractmethod
    def _validate_config(self):
        """Validate required configuration parameters"""
        pass

    @abstractmethod
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
        Create a hosted checkout session for a single line item.

        Args:
            product_name: Name shown on the checkout page
            unit_amount: Price in minor currency units
            currency: Currency code
            customer_email: Payer's email
            metadata: Key/value pairs returned with the session later
            success_url: Redirect after payment
            cancel_url: Redirect after cancellation

        Returns:
            CheckoutSessionResult with the redirect URL
        """
        pass

    @abstractmethod
    async def retrieve_session(self, session_id: str) -> CheckoutSessionStatus:
        """
        Retrieve the current outcome of a checkout session.

        Args:
            session_id: Provider's checkout session ID

        Returns:
            CheckoutSessionStatus with payment details
        """
        pass

    @abstractmethod
    async def verify_webhook(
        self,
        headers: Dict[str, str],
        raw_body: bytes
    ) -> WebhookVerificationResult:
        """
        Verify webhook signature and extract the checkout session reference.

        Args:
            headers: Request headers
            raw_body: Raw request body (bytes)

        Returns:
            WebhookVerificationResult with verification status and data
        """
        pass

    @staticmethod
    def to_minor_units(amount: float) -> int:
        """Convert a major-unit price (10.5) to minor units (1050)"""
        return int(round(float(amount) * 100))
