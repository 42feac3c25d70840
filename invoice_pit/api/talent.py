"""
タレント側エンドポイント
プロフィール、請求書の作成・編集・再提出・削除
"""

from typing import Literal, Optional
import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from invoice_pit.api.deps import get_current_talent
from invoice_pit.core.accounts import update_profile
from invoice_pit.core.invoice_lifecycle import invoice_lifecycle, is_editable
from invoice_pit.core.profile_check import get_missing_profile_fields
from invoice_pit.core.subscription import (
    check_subscription_limits,
    format_subscription_status,
    get_trial_days_remaining,
)
from invoice_pit.models.database import get_db
from invoice_pit.models.profile import Profile
from invoice_pit.schemas import (
    InvoiceCreate,
    InvoiceOut,
    InvoiceUpdate,
    PaymentStatusUpdate,
    ProfileOut,
    ProfileUpdate,
)
from invoice_pit.services.pdf_service import pdf_service

router = APIRouter()


def _invoice_response(invoice) -> dict:
    data = InvoiceOut.model_validate(invoice).model_dump(mode="json")
    data["is_editable"] = is_editable(invoice)
    return data


@router.get("/profile", response_model=ProfileOut)
def get_profile(talent: Profile = Depends(get_current_talent)):
    return talent


@router.put("/profile", response_model=ProfileOut)
def put_profile(
    data: ProfileUpdate,
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    return update_profile(db, talent, data)


@router.get("/subscription")
def get_subscription(talent: Profile = Depends(get_current_talent)):
    """無料枠の利用状況"""
    limits = check_subscription_limits(talent)
    return {
        "status": talent.subscription_status,
        "status_label": format_subscription_status(talent.subscription_status),
        "invoice_count": talent.invoice_count,
        "trial_days_remaining": get_trial_days_remaining(talent.trial_end_date),
        "missing_profile_fields": get_missing_profile_fields(talent),
        **limits,
    }


@router.get("/invoices")
def list_invoices(
    returned_only: bool = Query(False),
    search: Optional[str] = Query(None),
    payment_status: Optional[Literal["paid", "unpaid"]] = Query(None),
    sort_by: Literal["date", "amount"] = Query("date"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    """請求書一覧（集計付き）"""
    invoices, stats = invoice_lifecycle.search_talent_invoices(
        db,
        talent.id,
        returned_only=returned_only,
        search=search,
        payment_status=payment_status,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {"invoices": [_invoice_response(inv) for inv in invoices], "stats": stats}


@router.post("/invoices", status_code=201)
def create_invoice(
    data: InvoiceCreate,
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    invoice = invoice_lifecycle.create_invoice(db, talent, data)
    return _invoice_response(invoice)


@router.get("/invoices/{invoice_id}")
def get_invoice(
    invoice_id: uuid.UUID,
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    invoice = invoice_lifecycle.get_talent_invoice(db, talent.id, invoice_id)
    return _invoice_response(invoice)


@router.put("/invoices/{invoice_id}")
def update_invoice(
    invoice_id: uuid.UUID,
    data: InvoiceUpdate,
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    """編集（差し戻し中なら再提出）"""
    invoice = invoice_lifecycle.update_invoice(db, talent.id, invoice_id, data)
    return _invoice_response(invoice)


@router.delete("/invoices/{invoice_id}", status_code=204)
def delete_invoice(
    invoice_id: uuid.UUID,
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    invoice_lifecycle.delete_invoice(db, talent.id, invoice_id)
    return Response(status_code=204)


@router.post("/invoices/{invoice_id}/payment-status")
def set_payment_status(
    invoice_id: uuid.UUID,
    data: PaymentStatusUpdate,
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    invoice = invoice_lifecycle.set_payment_status(db, talent.id, invoice_id, data.payment_status)
    return _invoice_response(invoice)


@router.get("/invoices/{invoice_id}/pdf")
def download_pdf(
    invoice_id: uuid.UUID,
    talent: Profile = Depends(get_current_talent),
    db: Session = Depends(get_db),
):
    invoice = invoice_lifecycle.get_talent_invoice(db, talent.id, invoice_id)
    content = pdf_service.generate_invoice_pdf(invoice, talent)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice.invoice_number}.pdf"'},
    )
