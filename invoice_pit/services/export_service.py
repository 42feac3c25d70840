"""
主催者向け請求書一覧のCSV/Excel出力
"""

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
from typing import List
import io
import logging

import pandas as pd

from invoice_pit.models.organizer_invoice import OrganizerInvoice

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "pending": "未承認",
    "approved": "承認済み",
    "paid": "支払済み",
    "returned": "差し戻し",
}

COLUMNS = [
    "請求書番号",
    "タレント名",
    "メールアドレス",
    "件名",
    "請求日",
    "支払期日",
    "小計",
    "消費税",
    "源泉徴収",
    "合計金額",
    "銀行名",
    "支店名",
    "口座種別",
    "口座番号",
    "口座名義",
    "ステータス",
]

AMOUNT_COLUMNS = ("小計", "消費税", "源泉徴収", "合計金額")


def _format_date(value) -> str:
    return value.strftime("%Y/%m/%d") if value else "-"


class ExportService:
    """請求書一覧エクスポート"""

    def __init__(self):
        self.header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        self.header_font = Font(bold=True, color="FFFFFF")
        self.border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )

    def to_dataframe(self, invoices: List[OrganizerInvoice]) -> pd.DataFrame:
        rows = []
        for invoice in invoices:
            rows.append(
                {
                    "請求書番号": invoice.invoice_number,
                    "タレント名": invoice.talent_name or "-",
                    "メールアドレス": invoice.talent_email or "-",
                    "件名": invoice.subject or "-",
                    "請求日": _format_date(invoice.created_at),
                    "支払期日": _format_date(invoice.payment_due_date),
                    "小計": invoice.subtotal,
                    "消費税": invoice.tax,
                    "源泉徴収": invoice.withholding,
                    "合計金額": invoice.total,
                    "銀行名": invoice.bank_name or "-",
                    "支店名": invoice.branch_name or "-",
                    "口座種別": invoice.account_type or "-",
                    "口座番号": invoice.account_number or "-",
                    "口座名義": invoice.account_holder or "-",
                    "ステータス": STATUS_LABELS.get(invoice.status, invoice.status),
                }
            )
        return pd.DataFrame(rows, columns=COLUMNS)

    def generate_csv(self, invoices: List[OrganizerInvoice]) -> bytes:
        """Excelで文字化けしないようBOM付きUTF-8で出力"""
        df = self.to_dataframe(invoices)
        return df.to_csv(index=False).encode("utf-8-sig")

    def generate_excel(self, invoices: List[OrganizerInvoice]) -> bytes:
        wb = Workbook()
        ws = wb.active
        ws.title = "請求書一覧"

        # ヘッダー
        for col, header in enumerate(COLUMNS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = Alignment(horizontal="center")
            cell.border = self.border

        # データ
        df = self.to_dataframe(invoices)
        for row_num, (_, row) in enumerate(df.iterrows(), 2):
            for col, header in enumerate(COLUMNS, 1):
                value = row[header]
                cell = ws.cell(row=row_num, column=col, value=int(value) if header in AMOUNT_COLUMNS else value)
                cell.border = self.border
                if header in AMOUNT_COLUMNS:
                    cell.number_format = "#,##0"

        # 列幅調整
        for i, header in enumerate(COLUMNS, 1):
            ws.column_dimensions[get_column_letter(i)].width = 14 if header not in ("件名", "メールアドレス") else 28

        buffer = io.BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        logger.info(f"Exported {len(invoices)} invoices to Excel")
        return buffer.read()


export_service = ExportService()
