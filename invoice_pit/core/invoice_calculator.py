"""
請求金額計算エンジン
明細から小計・消費税・源泉徴収税・合計を算出する
"""

from decimal import Decimal, ROUND_FLOOR
from typing import Iterable

from invoice_pit.schemas import InvoiceTotals, LineItem


def _floor(value: Decimal) -> int:
    """負の値も含めて-∞方向に切り捨て"""
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


class InvoiceCalculator:
    """請求金額計算エンジン"""

    # 源泉徴収税率 10.21%（所得税10% + 復興特別所得税）
    WITHHOLDING_RATE = Decimal("0.1021")

    def signed_amount(self, item: LineItem) -> int:
        """
        明細金額（単価×数量）。値引きは常にマイナス
        """
        raw_amount = item.unit_amount * item.quantity
        if item.category == "discount":
            return -abs(raw_amount)
        return raw_amount

    def _divisor(self, tax_rate_percent) -> Decimal:
        return Decimal("1") + Decimal(str(tax_rate_percent)) / Decimal("100")

    def tax_contribution(self, item: LineItem, tax_rate_percent) -> int:
        """
        明細ごとの消費税額
        """
        if item.is_tax_exempt:
            return 0

        amount = Decimal(self.signed_amount(item))
        if item.is_tax_included:
            # 税込金額から内税を抜き出す
            return _floor(amount - amount / self._divisor(tax_rate_percent))

        return _floor(amount * Decimal(str(tax_rate_percent)) / Decimal("100"))

    def subtotal_contribution(self, item: LineItem, tax_rate_percent) -> int:
        """
        明細ごとの税抜金額
        """
        amount = self.signed_amount(item)
        if item.is_tax_exempt:
            return amount

        if item.is_tax_included and Decimal(str(tax_rate_percent)) > 0:
            return amount - self.tax_contribution(item, tax_rate_percent)

        return amount

    def withholding_contribution(self, item: LineItem, tax_rate_percent) -> int:
        """
        明細ごとの源泉徴収税額（税抜金額 × 10.21%）
        """
        if not item.is_withholding_target:
            return 0

        amount = Decimal(self.signed_amount(item))
        if item.is_tax_included:
            base_amount = Decimal(_floor(amount / self._divisor(tax_rate_percent)))
        else:
            base_amount = amount

        return _floor(base_amount * self.WITHHOLDING_RATE)

    def calculate(self, items: Iterable[LineItem], tax_rate_percent) -> InvoiceTotals:
        """
        請求書全体の金額計算

        入力値の検証はしない。数量・単価の妥当性は呼び出し側で保証する。
        """
        subtotal = 0
        tax = 0
        withholding = 0

        for item in items:
            subtotal += self.subtotal_contribution(item, tax_rate_percent)
            tax += self.tax_contribution(item, tax_rate_percent)
            withholding += self.withholding_contribution(item, tax_rate_percent)

        return InvoiceTotals(
            subtotal=subtotal,
            tax=tax,
            withholding=withholding,
            total=subtotal + tax - withholding,
        )


invoice_calculator = InvoiceCalculator()
