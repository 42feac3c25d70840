"""
請求書PDF出力サービス
保存済みの金額スナップショットをそのまま印字する（再計算しない）
"""

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont
import io
import os
import logging

from invoice_pit.models.invoice import Invoice
from invoice_pit.models.profile import Profile

logger = logging.getLogger(__name__)

CID_FONT_NAME = "HeiseiKakuGo-W5"


class PDFService:
    """請求書PDF生成サービス"""

    def __init__(self):
        self.font_name = None
        self._register_fonts()

    def _register_fonts(self):
        """日本語フォント登録"""
        if self.font_name:
            return

        font_paths = [
            "/usr/share/fonts/ipa-gothic/ipag.ttf",
            "/usr/share/fonts/truetype/ipa-gothic/ipag.ttf",
            "/usr/share/fonts/opentype/ipaexfont-gothic/ipaexg.ttf",
        ]

        for font_path in font_paths:
            if os.path.exists(font_path):
                try:
                    pdfmetrics.registerFont(TTFont("IPAGothic", font_path))
                    self.font_name = "IPAGothic"
                    logger.info(f"Registered font: {font_path}")
                    return
                except Exception as e:
                    logger.warning(f"Failed to register font {font_path}: {e}")

        # reportlab同梱のCIDフォント
        pdfmetrics.registerFont(UnicodeCIDFont(CID_FONT_NAME))
        self.font_name = CID_FONT_NAME
        logger.info(f"Using built-in CID font {CID_FONT_NAME}")

    def _yen(self, amount: int) -> str:
        if amount < 0:
            return f"-¥{abs(amount):,}"
        return f"¥{amount:,}"

    def generate_invoice_pdf(self, invoice: Invoice, profile: Profile) -> bytes:
        """請求書PDF生成"""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4, leftMargin=15 * mm, rightMargin=15 * mm, title=invoice.invoice_number
        )

        font_name = self.font_name
        title_style = ParagraphStyle("Title", fontName=font_name, fontSize=20, alignment=1, spaceAfter=10)
        right_style = ParagraphStyle("Right", fontName=font_name, fontSize=9, alignment=2)
        body_style = ParagraphStyle("Body", fontName=font_name, fontSize=10, leading=14)
        recipient_style = ParagraphStyle("Recipient", fontName=font_name, fontSize=14, leading=20)

        elements = [Paragraph("請求書", title_style)]

        elements.append(Paragraph(f"請求書番号: {invoice.invoice_number}", right_style))
        elements.append(Paragraph(f"請求日: {invoice.invoice_date.strftime('%Y年%m月%d日')}", right_style))
        elements.append(Spacer(1, 6 * mm))

        # 請求先
        honorific = "様" if invoice.recipient_type == "individual" else "御中"
        elements.append(Paragraph(f"{invoice.recipient_name or ''} {honorific}", recipient_style))
        if invoice.recipient_address:
            elements.append(Paragraph(invoice.recipient_address, body_style))
        elements.append(Spacer(1, 4 * mm))

        # 請求元
        issuer_lines = [profile.full_name or "", f"〒{profile.postal_code or ''} {profile.address or ''}"]
        if profile.phone:
            issuer_lines.append(f"TEL: {profile.phone}")
        if profile.invoice_reg_number:
            issuer_lines.append(f"登録番号: {profile.invoice_reg_number}")
        for line in issuer_lines:
            elements.append(Paragraph(line, right_style))
        elements.append(Spacer(1, 6 * mm))

        if invoice.notes:
            for line in invoice.notes.splitlines():
                elements.append(Paragraph(line, body_style))
            elements.append(Spacer(1, 4 * mm))

        if invoice.subject:
            elements.append(Paragraph(f"件名: {invoice.subject}", body_style))
        if invoice.work_date:
            elements.append(Paragraph(f"作業日: {invoice.work_date.strftime('%Y年%m月%d日')}", body_style))
        if invoice.payment_due_date:
            elements.append(Paragraph(f"お支払期限: {invoice.payment_due_date.strftime('%Y年%m月%d日')}", body_style))
        elements.append(Paragraph(f"ご請求金額: {self._yen(invoice.total)}", recipient_style))
        elements.append(Spacer(1, 4 * mm))

        # 明細
        table_data = [["項目", "数量", "単価", "金額"]]
        for item in invoice.items or []:
            quantity = item.get("quantity", 1)
            unit_amount = item.get("unitAmount", 0)
            line_amount = quantity * unit_amount
            if item.get("category") == "discount":
                line_amount = -abs(line_amount)
            label = item.get("name", "")
            if item.get("isTaxExempt"):
                label += "（非課税）"
            elif item.get("isTaxIncluded"):
                label += "（税込）"
            table_data.append([label, str(quantity), self._yen(unit_amount), self._yen(line_amount)])

        table = Table(table_data, colWidths=[85 * mm, 20 * mm, 35 * mm, 40 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("FONTNAME", (0, 0), (-1, -1), font_name),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )
        elements.append(table)
        elements.append(Spacer(1, 4 * mm))

        # 金額（保存済みの値）
        summary_data = [
            ["小計（税抜）", self._yen(invoice.subtotal)],
            ["消費税", self._yen(invoice.tax)],
            ["源泉徴収税", self._yen(-invoice.withholding)],
            ["合計", self._yen(invoice.total)],
        ]
        summary = Table(summary_data, colWidths=[40 * mm, 40 * mm], hAlign="RIGHT")
        summary.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, -1), font_name),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
                ]
            )
        )
        elements.append(summary)
        elements.append(Spacer(1, 8 * mm))

        # 振込先
        bank = f"{profile.bank_name or ''} {profile.branch_name or ''} {profile.account_type or ''} {profile.account_number or ''}"
        elements.append(Paragraph("【お振込先】", body_style))
        elements.append(Paragraph(bank.strip(), body_style))
        elements.append(Paragraph(f"口座名義: {profile.account_holder or ''}", body_style))

        doc.build(elements)
        buffer.seek(0)
        return buffer.read()


pdf_service = PDFService()
