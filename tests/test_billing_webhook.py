"""
Stripe Webhookのテスト
"""

import hashlib
import hmac
import json
import time

import pytest
import stripe

from invoice_pit.services.billing_service import BillingService

WEBHOOK_SECRET = "whsec_test_secret"


def sign(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Stripe-Signatureヘッダーを組み立てる"""
    timestamp = timestamp or int(time.time())
    signed_payload = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class TestConstructEvent:
    """署名検証とイベント取り出し"""

    def setup_method(self):
        self.service = BillingService(secret="whsec_unit", tolerance=300)
        self.payload = '{"type": "ping", "data": {"object": {}}}'

    def test_valid_signature(self):
        header = sign(self.payload, secret="whsec_unit")
        event = self.service.construct_event(self.payload.encode("utf-8"), header)

        assert event["type"] == "ping"

    def test_wrong_signature(self):
        header = sign(self.payload, secret="whsec_other")

        with pytest.raises(stripe.SignatureVerificationError):
            self.service.construct_event(self.payload.encode("utf-8"), header)

    def test_expired_timestamp(self):
        header = sign(self.payload, secret="whsec_unit", timestamp=int(time.time()) - 1000)

        with pytest.raises(stripe.SignatureVerificationError):
            self.service.construct_event(self.payload.encode("utf-8"), header)

    def test_malformed_header(self):
        with pytest.raises(stripe.SignatureVerificationError):
            self.service.construct_event(self.payload.encode("utf-8"), "v1=abc")

    def test_missing_secret(self):
        service = BillingService(secret="")
        header = sign(self.payload, secret="")

        with pytest.raises(stripe.SignatureVerificationError):
            service.construct_event(self.payload.encode("utf-8"), header)

    def test_payload_must_be_object(self):
        header = sign("[1, 2]", secret="whsec_unit")

        with pytest.raises(ValueError):
            self.service.construct_event(b"[1, 2]", header)

    def test_subscription_status_mapping(self):
        assert self.service.map_subscription_status("active") == "active"
        assert self.service.map_subscription_status("trialing") == "active"
        assert self.service.map_subscription_status("past_due") == "inactive"
        assert self.service.map_subscription_status("canceled") == "cancelled"


class TestStripeWebhook:
    """Webhookエンドポイント"""

    def _post(self, client, event):
        payload = json.dumps(event)
        return client.post(
            "/webhook/stripe",
            content=payload,
            headers={"Stripe-Signature": sign(payload), "Content-Type": "application/json"},
        )

    def test_invalid_signature(self, client):
        response = client.post(
            "/webhook/stripe",
            content='{"type": "checkout.session.completed"}',
            headers={"Stripe-Signature": "t=1,v1=bad"},
        )
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Webhook Error")

    def test_missing_signature(self, client):
        response = client.post("/webhook/stripe", content='{"type": "ping"}')
        assert response.status_code == 400

    def test_invalid_utf8_body(self, client):
        response = client.post(
            "/webhook/stripe",
            content=b'{"type": "x", "junk": "\xff\xfe"}',
            headers={"Stripe-Signature": "t=1,v1=bad"},
        )
        assert response.status_code == 400

    def test_signed_non_object_body(self, client):
        response = self._post(client, [1, 2])

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid payload"

    def test_signed_body_with_non_object_data(self, client):
        response = self._post(client, {"type": "customer.subscription.deleted", "data": [1]})

        assert response.status_code == 200

    def test_checkout_completed_activates(self, client, db_session, talent):
        talent.subscription_status = "trial"
        db_session.commit()

        response = self._post(client, {
            "type": "checkout.session.completed",
            "data": {"object": {"metadata": {"userId": str(talent.id)}, "subscription": "sub_123"}},
        })

        assert response.status_code == 200
        assert response.json() == {"received": True}
        db_session.refresh(talent)
        assert talent.subscription_status == "active"
        assert talent.subscription_id == "sub_123"
        assert talent.subscription_start_date is not None

    def test_subscription_updated(self, client, db_session, talent):
        talent.subscription_id = "sub_456"
        db_session.commit()

        self._post(client, {
            "type": "customer.subscription.updated",
            "data": {"object": {"id": "sub_456", "status": "past_due"}},
        })

        db_session.refresh(talent)
        assert talent.subscription_status == "inactive"

    def test_subscription_deleted(self, client, db_session, talent):
        talent.subscription_id = "sub_789"
        db_session.commit()

        self._post(client, {
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_789"}},
        })

        db_session.refresh(talent)
        assert talent.subscription_status == "cancelled"

    def test_unhandled_event(self, client):
        response = self._post(client, {"type": "invoice.created", "data": {"object": {}}})

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_checkout_for_unknown_user(self, client, db_session):
        response = self._post(client, {
            "type": "checkout.session.completed",
            "data": {"object": {"metadata": {"userId": "not-a-uuid"}, "subscription": "sub_1"}},
        })

        assert response.status_code == 200
