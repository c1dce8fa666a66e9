"""
Payment Gateway Factory
Creates the configured payment gateway
"""
import os
from typing import Dict, Type

from contestverse.services.payment.gateways.base import BasePaymentGateway
from contestverse.services.payment.gateways.stripe import StripeGateway
from contestverse.services.errors import UpstreamError


class PaymentGatewayFactory:
    """Looks up gateways by ID and keeps one instance per gateway"""

    # Registry of available gateways
    _gateways: Dict[str, Type[BasePaymentGateway]] = {
        "stripe": StripeGateway,
    }

    # Cached gateway instances
    _instances: Dict[str, BasePaymentGateway] = {}

    @classmethod
    def get_gateway(cls, gateway_id: str) -> BasePaymentGateway:
        """
        Get a payment gateway instance, configured from the environment.

        Raises:
            ValueError: If gateway is not registered or misconfigured
        """
        if gateway_id not in cls._gateways:
            raise ValueError(f"Unknown payment gateway: {gateway_id}. Available: {list(cls._gateways.keys())}")

        if gateway_id not in cls._instances:
            cls._instances[gateway_id] = cls._gateways[gateway_id]()

        return cls._instances[gateway_id]

    @classmethod
    def get_default_gateway(cls) -> BasePaymentGateway:
        """Get the gateway named by PAYMENT_GATEWAY (stripe by default)"""
        return cls.get_gateway(os.getenv("PAYMENT_GATEWAY", "stripe"))


async def get_payment_gateway() -> BasePaymentGateway:
    """Dependency to get the configured payment gateway"""
    try:
        return PaymentGatewayFactory.get_default_gateway()
    except ValueError as e:
        print(f"[ERROR] Payment gateway unavailable: {e}")
        raise UpstreamError("Payment gateway is not configured")
