"""
Stripe Webhook連携サービス
サブスクリプションの状態をプロフィールに反映する
"""

from datetime import datetime
from typing import Dict, Optional
import json
import logging
import uuid

import stripe
from sqlalchemy.orm import Session

from invoice_pit.config import settings
from invoice_pit.models.database import transaction
from invoice_pit.models.profile import Profile

logger = logging.getLogger(__name__)


class BillingService:
    """Stripe Webhook処理"""

    def __init__(self, secret: Optional[str] = None, tolerance: Optional[int] = None):
        self._secret = secret
        self._tolerance = tolerance

    @property
    def secret(self) -> str:
        return self._secret if self._secret is not None else settings.STRIPE_WEBHOOK_SECRET

    @property
    def tolerance(self) -> int:
        return self._tolerance if self._tolerance is not None else settings.STRIPE_WEBHOOK_TOLERANCE

    def construct_event(self, payload: bytes, sig_header: str) -> Dict:
        """
        Stripe-Signatureヘッダーを検証してイベントを取り出す

        署名不正は stripe.SignatureVerificationError、
        本文がUTF-8のJSONオブジェクトでない場合は ValueError。
        """
        if not self.secret:
            raise stripe.SignatureVerificationError("Webhook secret not configured", sig_header)

        # construct_eventと同じ検証を先に行い、オブジェクト以外のJSONを弾く
        text = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(text, sig_header, self.secret, self.tolerance)

        event = json.loads(text)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload must be a JSON object")
        return event

    def handle_event(self, db: Session, event: Dict) -> Dict:
        """
        Webhookイベントを処理
        """
        event_type = event.get("type", "")
        data = event.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            obj = {}

        if event_type == "checkout.session.completed":
            return self._activate(db, event_type, obj)

        if event_type == "customer.subscription.updated":
            status = self.map_subscription_status(obj.get("status", ""))
            return self._set_status(db, event_type, obj.get("id"), status)

        if event_type == "customer.subscription.deleted":
            return self._set_status(db, event_type, obj.get("id"), "cancelled")

        logger.info(f"Unhandled event type: {event_type}")
        return {"handled": False}

    def map_subscription_status(self, stripe_status: str) -> str:
        if stripe_status in ("canceled", "incomplete_expired"):
            return "cancelled"
        if stripe_status in ("past_due", "unpaid"):
            return "inactive"
        return "active"

    def _activate(self, db: Session, event_type: str, session: Dict) -> Dict:
        metadata = session.get("metadata")
        user_id = metadata.get("userId") if isinstance(metadata, dict) else None
        subscription_id = session.get("subscription")
        if not user_id or not subscription_id:
            logger.warning("Checkout session without userId or subscription")
            return {"handled": False}

        try:
            profile = db.get(Profile, uuid.UUID(str(user_id)))
        except ValueError:
            logger.warning(f"Invalid userId in checkout session: {user_id}")
            return {"handled": False}

        if not profile:
            logger.warning(f"Profile not found for checkout session: {user_id}")
            return {"handled": False}

        with transaction(db, event_type):
            profile.subscription_status = "active"
            profile.subscription_id = str(subscription_id)
            profile.subscription_start_date = datetime.now()

        logger.info(f"Subscription activated for user {user_id}")
        return {"handled": True, "status": "active"}

    def _set_status(self, db: Session, event_type: str, subscription_id: Optional[str], status: str) -> Dict:
        if not subscription_id:
            return {"handled": False}

        with transaction(db, event_type):
            profiles = db.query(Profile).filter(Profile.subscription_id == str(subscription_id)).all()
            for profile in profiles:
                profile.subscription_status = status

        logger.info(f"Subscription {subscription_id} set to {status} ({len(profiles)} profiles)")
        return {"handled": True, "status": status}


billing_service = BillingService()
