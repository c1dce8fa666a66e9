"""Unit tests for checkout creation and payment reconciliation."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import DuplicateKeyError

from contestverse.services.errors import ConflictError, PaymentNotCompletedError, UpstreamError
from contestverse.services.payment.payment_service import PaymentService
from tests.support.fake_gateway import VALID_SIGNATURE
from tests.support.fake_identity import ALICE, BOB

pytestmark = pytest.mark.unit


@pytest.fixture
def service(db, gateway):
    return PaymentService(db, gateway)


class TestCreateCheckoutSession:
    async def test_price_is_sent_in_minor_units(self, service, gateway):
        url = await service.create_checkout_session(10, "abc123", "Logo Design", ALICE)

        assert url == "https://checkout.test/pay/cs_test_1"
        call = gateway.created[0]
        assert call["unit_amount"] == 1000
        assert call["currency"] == "usd"
        assert call["customer_email"] == ALICE
        assert call["metadata"] == {"contestId": "abc123", "contestName": "Logo Design"}
        assert call["success_url"] == (
            "http://localhost:5173/dashboard/payment-success?session_id={CHECKOUT_SESSION_ID}"
        )
        assert call["cancel_url"] == "http://localhost:5173/dashboard/payment-cancelled"

    async def test_provider_failure(self, service, gateway):
        gateway.fail_create = True
        with pytest.raises(UpstreamError):
            await service.create_checkout_session(10, "abc123", "Logo Design", ALICE)

    async def test_no_gateway_configured(self, db):
        with pytest.raises(UpstreamError, match="not configured"):
            await PaymentService(db).create_checkout_session(10, "abc123", "Logo", ALICE)


class TestReconcile:
    async def test_paid_session_records_payment_and_counts_participant(self, db, service, gateway, make_contest):
        contest = await make_contest(approvalStatus="approved")
        gateway.add_session("cs_1", contest_id=str(contest["_id"]), payment_intent_id="pi_1")

        result = await service.reconcile("cs_1")

        assert result.success
        assert not result.already_processed
        assert result.message == "Payment recorded"
        assert result.transaction_id == "pi_1"
        assert result.tracking_id.startswith("PRCL-")

        payment = await db.payments.find_one({"transactionId": "pi_1"})
        assert payment["_id"] == result.payment_id
        assert payment["amount"] == 10.0
        assert payment["currency"] == "usd"
        assert payment["userEmail"] == ALICE
        assert payment["contestId"] == str(contest["_id"])
        assert payment["contestName"] == "Logo Design"
        assert payment["paymentStatus"] == "paid"
        assert payment["trackingId"] == result.tracking_id
        assert payment["paidAt"] is not None

        stored = await db.contests.find_one({"_id": contest["_id"]})
        assert stored["participants"] == 1

    async def test_repeat_calls_are_idempotent(self, db, service, gateway, make_contest):
        contest = await make_contest(approvalStatus="approved")
        gateway.add_session("cs_1", contest_id=str(contest["_id"]), payment_intent_id="pi_1")

        first = await service.reconcile("cs_1")
        second = await service.reconcile("cs_1")
        third = await service.reconcile("cs_1")

        assert second.already_processed and third.already_processed
        assert second.message == "Already processed"
        assert second.tracking_id == first.tracking_id == third.tracking_id
        assert await db.payments.count_documents({}) == 1

        stored = await db.contests.find_one({"_id": contest["_id"]})
        assert stored["participants"] == 1

    async def test_new_session_for_same_transaction_is_not_double_counted(self, db, service, gateway, make_contest):
        contest = await make_contest()
        gateway.add_session("cs_1", contest_id=str(contest["_id"]), payment_intent_id="pi_1")
        gateway.add_session("cs_2", contest_id=str(contest["_id"]), payment_intent_id="pi_1")

        await service.reconcile("cs_1")
        result = await service.reconcile("cs_2")

        assert result.already_processed
        assert await db.payments.count_documents({}) == 1

    async def test_unpaid_session_changes_nothing(self, db, service, gateway, make_contest):
        contest = await make_contest()
        gateway.add_session("cs_1", payment_status="unpaid", contest_id=str(contest["_id"]))

        with pytest.raises(PaymentNotCompletedError) as exc:
            await service.reconcile("cs_1")

        assert exc.value.status_code == 400
        assert exc.value.message == "Payment not paid"
        assert await db.payments.count_documents({}) == 0
        stored = await db.contests.find_one({"_id": contest["_id"]})
        assert stored["participants"] == 0

    async def test_unpaid_session_without_intent(self, db, service, gateway):
        gateway.add_session("cs_1", payment_status="unpaid", payment_intent_id=None)
        with pytest.raises(PaymentNotCompletedError):
            await service.reconcile("cs_1")

    async def test_unknown_session(self, service):
        with pytest.raises(UpstreamError):
            await service.reconcile("cs_missing")

    async def test_empty_session_id(self, service):
        with pytest.raises(ConflictError):
            await service.reconcile("")

    async def test_missing_contest_still_records_payment(self, db, service, gateway):
        gateway.add_session("cs_1", contest_id="0123456789abcdef01234567")

        result = await service.reconcile("cs_1")

        assert result.success
        assert await db.payments.count_documents({}) == 1

    async def test_increment_failure_is_tolerated(self, db, service, gateway, make_contest, monkeypatch):
        contest = await make_contest()
        gateway.add_session("cs_1", contest_id=str(contest["_id"]))
        monkeypatch.setattr(db.contests, "update_one", AsyncMock(side_effect=RuntimeError("store down")))

        result = await service.reconcile("cs_1")

        assert result.success
        assert await db.payments.count_documents({}) == 1

    async def test_concurrent_insert_returns_stored_payment(self, db, service, gateway, make_contest, monkeypatch):
        contest = await make_contest()
        gateway.add_session("cs_1", contest_id=str(contest["_id"]), payment_intent_id="pi_1")
        winner = {"_id": "existing", "transactionId": "pi_1", "trackingId": "PRCL-20250101-AAAAAA"}

        # First lookup misses, the insert loses the race, the re-read finds the winner
        monkeypatch.setattr(db.payments, "find_one", AsyncMock(side_effect=[None, winner]))
        monkeypatch.setattr(db.payments, "insert_one", AsyncMock(side_effect=DuplicateKeyError("E11000")))

        result = await service.reconcile("cs_1")

        assert result.already_processed
        assert result.tracking_id == "PRCL-20250101-AAAAAA"
        stored = await db.contests.find_one({"_id": contest["_id"]})
        assert stored["participants"] == 0


class TestReconcileWebhook:
    def event(self, event_type: str = "checkout.session.completed", session_id: str = "cs_1") -> bytes:
        return json.dumps({"type": event_type, "data": {"object": {"id": session_id}}}).encode()

    async def test_completed_checkout_is_reconciled(self, db, service, gateway, make_contest):
        contest = await make_contest()
        gateway.add_session("cs_1", contest_id=str(contest["_id"]))

        result = await service.reconcile_webhook({"stripe-signature": VALID_SIGNATURE}, self.event())

        assert result.success
        assert await db.payments.count_documents({}) == 1

    async def test_completed_but_unpaid_awaits_payment(self, db, service, gateway):
        gateway.add_session("cs_1", payment_status="unpaid")

        result = await service.reconcile_webhook({"stripe-signature": VALID_SIGNATURE}, self.event())

        assert not result.success
        assert result.message == "Awaiting payment"
        assert await db.payments.count_documents({}) == 0

    async def test_other_events_are_ignored(self, service, gateway):
        result = await service.reconcile_webhook(
            {"stripe-signature": VALID_SIGNATURE},
            self.event("checkout.session.expired"),
        )
        assert result is None
        assert gateway.retrieved == []

    async def test_bad_signature(self, db, service):
        with pytest.raises(ConflictError):
            await service.reconcile_webhook({"stripe-signature": "forged"}, self.event())
        assert await db.payments.count_documents({}) == 0


class TestHistory:
    async def test_payments_newest_first(self, db, service):
        for day, transaction_id, email in [(1, "pi_1", ALICE), (2, "pi_2", BOB), (3, "pi_3", ALICE)]:
            await db.payments.insert_one({
                "transactionId": transaction_id,
                "userEmail": email,
                "paidAt": datetime(2025, 1, day, tzinfo=timezone.utc),
            })

        everything = await service.get_payments()
        alices = await service.get_payments(ALICE)

        assert len(everything) == 3
        assert [p["transactionId"] for p in alices] == ["pi_3", "pi_1"]

    async def test_participated_contests_annotations(self, db, service, gateway, make_contest, make_submission):
        entered = await make_contest(name="Logo Design")
        skipped = await make_contest(name="Poster")
        gateway.add_session("cs_1", payment_intent_id="pi_1", contest_id=str(entered["_id"]))
        gateway.add_session("cs_2", payment_intent_id="pi_2", contest_id=str(skipped["_id"]))
        gateway.add_session("cs_3", payment_intent_id="pi_3", contest_id="not-an-object-id")
        for session_id in ("cs_1", "cs_2", "cs_3"):
            await service.reconcile(session_id)
        await make_submission(entered, ALICE)

        entries = {e["transactionId"]: e for e in await service.get_participated_contests(ALICE)}

        assert entries["pi_1"]["isSubmitted"] is True
        assert entries["pi_1"]["deadline"] == entered["deadline"]
        assert entries["pi_2"]["isSubmitted"] is False
        assert entries["pi_3"]["deadline"] is None
