"""
Stripe Webhook処理
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

import stripe

from invoice_pit.models.database import get_db
from invoice_pit.services.billing_service import billing_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """Stripe Webhookエンドポイント"""
    signature = request.headers.get("Stripe-Signature", "")
    body = await request.body()

    try:
        event = billing_service.construct_event(body, signature)
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise HTTPException(status_code=400, detail=f"Webhook Error: {e}")
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise HTTPException(status_code=400, detail="Invalid payload")

    logger.info(f"Received Stripe event: {event.get('type')}")
    billing_service.handle_event(db, event)

    return {"received": True}
