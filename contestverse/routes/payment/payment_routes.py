"""
Payment Routes
Checkout, reconciliation callback, provider webhook and payment history
"""
from fastapi import APIRouter, Depends, Query, Request
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from contestverse.models.payment import CheckoutSessionCreate
from contestverse.routes.auth.dependencies import (
    get_current_identity,
    get_database,
    get_identity_service
)
from contestverse.services.auth.identity import Identity, IdentityService
from contestverse.services.errors import ForbiddenError, ServiceError
from contestverse.services.payment.gateways.base import BasePaymentGateway
from contestverse.services.payment.gateways.factory import get_payment_gateway
from contestverse.services.payment.payment_service import PaymentService, ReconciliationResult
from contestverse.utils.mongo import serialize_document
from contestverse.utils.response import success_response, error_response

router = APIRouter(tags=["Payments"])


def reconciliation_payload(result: ReconciliationResult) -> dict:
    return {
        "trackingId": result.tracking_id,
        "transactionId": result.transaction_id,
        "paymentInfo": {"inserted_id": result.payment_id},
        "alreadyProcessed": result.already_processed,
    }


@router.post("/create-checkout-session")
async def create_checkout_session(
    checkout: CheckoutSessionCreate,
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database),
    gateway: BasePaymentGateway = Depends(get_payment_gateway)
):
    """
    Start a hosted checkout for a contest entry fee.

    Returns the provider URL the client redirects to.
    """
    url = await PaymentService(db, gateway).create_checkout_session(
        price=checkout.price,
        contest_id=checkout.contest_id,
        contest_name=checkout.contest_name,
        customer_email=current.email
    )
    return success_response(message="Checkout session created", data={"url": url})


@router.patch("/payment-success")
async def payment_success(
    session_id: str = Query(..., description="Checkout session ID from the success redirect"),
    db: AsyncIOMotorDatabase = Depends(get_database),
    gateway: BasePaymentGateway = Depends(get_payment_gateway)
):
    """
    Record a completed checkout.

    - Safe to call repeatedly: a known transaction returns its tracking ID
    - 400 while the session is not paid
    """
    try:
        result = await PaymentService(db, gateway).reconcile(session_id)
    except ServiceError:
        raise
    except Exception as e:
        print(f"[ERROR] payment_success failed for session {session_id}: {str(e)}")
        return error_response(message="Internal Server Error", status_code=500)

    return success_response(message=result.message, data=reconciliation_payload(result))


@router.post("/payments/webhook")
async def payment_webhook(
    request: Request,
    db: AsyncIOMotorDatabase = Depends(get_database),
    gateway: BasePaymentGateway = Depends(get_payment_gateway)
):
    """
    Handle payment provider webhook.

    SECURITY:
    - Verifies webhook signature
    - Reconciles idempotently (duplicate deliveries are safe)
    """
    raw_body = await request.body()
    headers = dict(request.headers)

    try:
        result = await PaymentService(db, gateway).reconcile_webhook(headers, raw_body)
    except ServiceError:
        raise
    except Exception as e:
        print(f"[ERROR] Webhook handler error: {str(e)}")
        return error_response(message="Internal error", status_code=500)

    if result is None:
        return success_response(message="Event ignored")

    # Acknowledged so the provider stops redelivering; nothing was stored
    if not result.success:
        return success_response(message=result.message)

    return success_response(message=result.message, data=reconciliation_payload(result))


@router.get("/payments")
async def get_payments(
    email: Optional[str] = Query(None),
    current: Identity = Depends(get_current_identity),
    identity: IdentityService = Depends(get_identity_service),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Payment history.

    - With email: only the caller's own
    - Without email: every payment, admin only
    """
    if email:
        if email != current.email:
            raise ForbiddenError("forbidden access")
    elif not await identity.has_capability(db, current.email, "admin"):
        raise ForbiddenError("forbidden access")

    payments = await PaymentService(db).get_payments(user_email=email)
    return success_response(
        message="Payments retrieved successfully",
        data=[serialize_document(p) for p in payments]
    )


@router.get("/my-participated-contests")
async def get_participated_contests(
    current: Identity = Depends(get_current_identity),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests the caller paid for, with deadline and submission state"""
    try:
        entries = await PaymentService(db).get_participated_contests(current.email)
    except Exception as e:
        print(f"[ERROR] Error fetching participated contests: {str(e)}")
        return error_response(message="Failed to fetch contests", status_code=500)

    return success_response(
        message="Participated contests retrieved successfully",
        data=[serialize_document(e) for e in entries]
    )
