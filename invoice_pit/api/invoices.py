"""
請求項目ジャンル・金額プレビュー
"""

from fastapi import APIRouter

from invoice_pit.core.invoice_categories import INVOICE_CATEGORIES
from invoice_pit.core.invoice_lifecycle import invoice_lifecycle
from invoice_pit.schemas import InvoiceTotals, PreviewRequest

router = APIRouter()


@router.get("/categories")
def list_categories():
    """請求項目ジャンル一覧"""
    return INVOICE_CATEGORIES


@router.post("/invoices/preview", response_model=InvoiceTotals)
def preview_totals(request: PreviewRequest):
    """入力中の明細から金額を計算"""
    return invoice_lifecycle.preview(request.items)
