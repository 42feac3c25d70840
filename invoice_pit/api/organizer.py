"""
主催者側エンドポイント
受信した請求書の承認・支払・差し戻し
"""

from datetime import date
from typing import Literal, Optional
import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from invoice_pit.api.deps import get_current_organizer
from invoice_pit.core.invoice_lifecycle import invoice_lifecycle
from invoice_pit.models.database import get_db
from invoice_pit.models.organizer import Organizer
from invoice_pit.schemas import OrganizerInvoiceOut, ReturnRequest
from invoice_pit.services.export_service import export_service

router = APIRouter()

OrganizerStatus = Literal["pending", "approved", "paid", "returned"]


def _organizer_invoice_response(organizer_invoice, invoice=None) -> dict:
    data = OrganizerInvoiceOut.model_validate(organizer_invoice).model_dump(mode="json")
    if invoice is not None:
        data["return_comment"] = invoice.return_comment
        data["return_status"] = invoice.return_status
    return data


@router.get("/invoices")
def list_invoices(
    status: Optional[OrganizerStatus] = Query(None),
    organizer: Organizer = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    invoices = invoice_lifecycle.list_organizer_invoices(db, organizer.id, status)
    return [_organizer_invoice_response(inv) for inv in invoices]


@router.get("/invoices/export")
def export_invoices(
    format: Literal["csv", "xlsx"] = Query("csv"),
    status: Optional[OrganizerStatus] = Query(None),
    organizer: Organizer = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    """請求書一覧のダウンロード"""
    invoices = invoice_lifecycle.list_organizer_invoices(db, organizer.id, status)
    filename = f"invoices_{date.today().isoformat()}"

    if format == "xlsx":
        return Response(
            content=export_service.generate_excel(invoices),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f'attachment; filename="{filename}.xlsx"'},
        )

    return Response(
        content=export_service.generate_csv(invoices),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}.csv"'},
    )


@router.get("/invoices/{organizer_invoice_id}")
def get_invoice(
    organizer_invoice_id: uuid.UUID,
    organizer: Organizer = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    organizer_invoice, invoice = invoice_lifecycle.get_organizer_invoice(db, organizer.id, organizer_invoice_id)
    return _organizer_invoice_response(organizer_invoice, invoice)


@router.post("/invoices/{organizer_invoice_id}/approve")
def approve_invoice(
    organizer_invoice_id: uuid.UUID,
    organizer: Organizer = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    organizer_invoice = invoice_lifecycle.approve(db, organizer.id, organizer_invoice_id)
    return _organizer_invoice_response(organizer_invoice)


@router.post("/invoices/{organizer_invoice_id}/pay")
def pay_invoice(
    organizer_invoice_id: uuid.UUID,
    organizer: Organizer = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    organizer_invoice = invoice_lifecycle.mark_paid(db, organizer.id, organizer_invoice_id)
    return _organizer_invoice_response(organizer_invoice)


@router.post("/invoices/{organizer_invoice_id}/return")
def return_invoice(
    organizer_invoice_id: uuid.UUID,
    request: ReturnRequest,
    organizer: Organizer = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    organizer_invoice = invoice_lifecycle.return_invoice(db, organizer.id, organizer_invoice_id, request.comment)
    return _organizer_invoice_response(organizer_invoice)
