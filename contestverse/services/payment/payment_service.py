"""
Payment Service
Checkout creation and reconciliation of provider outcomes into payments
"""
import os
from dataclasses import dataclass
from typing import Optional, Dict, Any, List
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from dotenv import load_dotenv

from contestverse.models.payment import PaymentInDB
from contestverse.services.contest.contest import ContestService
from contestverse.services.errors import ConflictError, PaymentNotCompletedError, UpstreamError
from contestverse.services.payment.gateways.base import BasePaymentGateway
from contestverse.services.payment.tracking import generate_tracking_id
from contestverse.utils.mongo import parse_object_id

load_dotenv()


@dataclass
class ReconciliationResult:
    """Outcome of reconciling one checkout session"""
    success: bool
    tracking_id: Optional[str]
    transaction_id: Optional[str]
    payment_id: Optional[Any] = None
    already_processed: bool = False
    message: str = "Payment recorded"


class PaymentService:
    """
    Service for payment operations.

    A payment is stored once per provider transaction id; that id, not the
    checkout session id, is the deduplication key for repeated callbacks.
    """

    def __init__(self, db: AsyncIOMotorDatabase, gateway: Optional[BasePaymentGateway] = None):
        self.db = db
        self.payments = db.payments
        self.contests = db.contests
        self.submissions = db.submissions
        self.gateway = gateway
        self.contest_service = ContestService(db)
        self.site_domain = os.getenv("SITE_DOMAIN", "http://localhost:5173").rstrip("/")
        self.currency = os.getenv("PAYMENT_CURRENCY", "usd")

    def _require_gateway(self) -> BasePaymentGateway:
        if self.gateway is None:
            raise UpstreamError("Payment gateway is not configured")
        return self.gateway

    async def create_checkout_session(
        self,
        price: float,
        contest_id: str,
        contest_name: str,
        customer_email: str
    ) -> str:
        """
        Start a hosted checkout for a contest entry.

        Returns:
            Redirect URL of the checkout page
        """
        gateway = self._require_gateway()
        result = await gateway.create_checkout_session(
            product_name=contest_name,
            unit_amount=gateway.to_minor_units(price),
            currency=self.currency,
            customer_email=customer_email,
            metadata={"contestId": contest_id, "contestName": contest_name},
            success_url=f"{self.site_domain}/dashboard/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.site_domain}/dashboard/payment-cancelled"
        )

        if not result.success or not result.url:
            print(f"[ERROR] Checkout session creation failed: {result.error_message}")
            raise UpstreamError("Failed to create checkout session")

        print(f"[INFO] Checkout session {result.session_id} created for {customer_email}")
        return result.url

    async def reconcile(self, session_id: str) -> ReconciliationResult:
        """
        Turn a checkout session outcome into a stored payment.

        1. Known transaction id: return the stored tracking id, change nothing.
        2. Session not paid: PaymentNotCompletedError, change nothing.
        3. Otherwise insert the payment, then add one participant to the
           contest. The increment is best effort and never fails the call.

        Raises:
            UpstreamError: provider could not be queried
            PaymentNotCompletedError: session is not paid
        """
        if not session_id:
            raise ConflictError("session_id is required")

        session = await self._require_gateway().retrieve_session(session_id)
        if not session.success:
            print(f"[ERROR] Could not retrieve checkout session {session_id}: {session.error_message}")
            raise UpstreamError("Failed to retrieve checkout session")

        transaction_id = session.payment_intent_id

        if transaction_id:
            existing = await self.payments.find_one({"transactionId": transaction_id})
            if existing:
                return self._already_processed(existing)

        if not session.is_paid:
            raise PaymentNotCompletedError()

        if not transaction_id:
            print(f"[ERROR] Paid session {session_id} has no transaction id")
            raise UpstreamError("Checkout session has no transaction id")

        metadata = session.metadata or {}
        payment = PaymentInDB(
            amount=(session.amount_total or 0) / 100,
            currency=session.currency,
            user_email=session.customer_email,
            contest_id=metadata.get("contestId"),
            contest_name=metadata.get("contestName"),
            transaction_id=transaction_id,
            payment_status=session.payment_status,
            tracking_id=generate_tracking_id(),
            session_id=session.session_id
        ).model_dump(by_alias=True)

        try:
            result = await self.payments.insert_one(payment)
        except DuplicateKeyError:
            # A concurrent reconcile stored this transaction first
            existing = await self.payments.find_one({"transactionId": transaction_id})
            if existing:
                return self._already_processed(existing)
            raise

        print(f"[OK] Payment {payment['trackingId']} recorded for transaction {transaction_id}")

        if payment.get("contestId"):
            await self.contest_service.increment_participants(payment["contestId"])
        else:
            print(f"[WARN] Payment {payment['trackingId']} has no contest reference")

        return ReconciliationResult(
            success=True,
            tracking_id=payment["trackingId"],
            transaction_id=transaction_id,
            payment_id=result.inserted_id
        )

    def _already_processed(self, payment: Dict[str, Any]) -> ReconciliationResult:
        print(f"[INFO] Transaction {payment.get('transactionId')} already reconciled")
        return ReconciliationResult(
            success=True,
            tracking_id=payment.get("trackingId"),
            transaction_id=payment.get("transactionId"),
            payment_id=payment.get("_id"),
            already_processed=True,
            message="Already processed"
        )

    async def reconcile_webhook(self, headers: Dict[str, str], raw_body: bytes) -> Optional[ReconciliationResult]:
        """
        Verify a provider webhook and reconcile completed checkouts.

        Returns:
            ReconciliationResult, or None for event types that need no action.
            A completed checkout that is not paid yet (delayed payment methods)
            gives an unsuccessful result; the async_payment_succeeded event
            settles it later.

        Raises:
            ConflictError: signature verification failed
        """
        verification = await self._require_gateway().verify_webhook(headers, raw_body)

        if not verification.is_valid:
            print(f"[SECURITY] Invalid webhook: {verification.error_message}")
            raise ConflictError(verification.error_message or "Invalid webhook signature")

        if verification.event_type not in ("checkout.session.completed",
                                           "checkout.session.async_payment_succeeded"):
            return None

        if not verification.session_id:
            raise ConflictError("Webhook event has no checkout session")

        try:
            return await self.reconcile(verification.session_id)
        except PaymentNotCompletedError:
            print(f"[INFO] Checkout session {verification.session_id} completed, awaiting payment")
            return ReconciliationResult(
                success=False,
                tracking_id=None,
                transaction_id=None,
                message="Awaiting payment"
            )

    async def get_payments(self, user_email: Optional[str] = None) -> List[Dict[str, Any]]:
        """Payment history, all or for one payer"""
        query = {}
        if user_email:
            query["userEmail"] = user_email

        cursor = self.payments.find(query).sort("paidAt", -1)
        return await cursor.to_list(length=None)

    async def get_participated_contests(self, user_email: str) -> List[Dict[str, Any]]:
        """
        The user's paid entries with contest deadline and submission state.
        Missing contests or malformed contest ids give a null deadline.
        """
        payments = await self.payments.find({"userEmail": user_email}).to_list(length=None)

        entries = []
        for payment in payments:
            contest = None
            contest_oid = parse_object_id(payment.get("contestId"))
            if contest_oid is not None:
                try:
                    contest = await self.contests.find_one({"_id": contest_oid})
                except Exception as e:
                    print(f"[WARN] Contest lookup failed for payment {payment.get('trackingId')}: {str(e)}")
                    contest = None

            submission = await self.submissions.find_one({
                "contestId": payment.get("contestId"),
                "userEmail": user_email
            })

            entries.append({
                **payment,
                "deadline": contest.get("deadline") if contest else None,
                "isSubmitted": submission is not None,
            })

        return entries
