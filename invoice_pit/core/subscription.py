"""
サブスクリプション・無料枠の判定
"""

from datetime import datetime
from typing import Dict, Optional
import calendar
import math

from invoice_pit.config import settings
from invoice_pit.models.profile import Profile

STATUS_LABELS = {
    "trial": "トライアル中",
    "active": "有料プラン",
    "inactive": "無効",
    "cancelled": "キャンセル済み",
}


def add_months(value: datetime, months: int) -> datetime:
    """月加算（月末は丸める）"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def trial_end_from(start: datetime) -> datetime:
    return add_months(start, settings.FREE_TIER_TRIAL_MONTHS)


def check_subscription_limits(profile: Profile, now: Optional[datetime] = None) -> Dict:
    """
    請求書を作成できるか判定
    無料枠は「3件」または「3ヶ月」の早い方まで
    """
    if profile.subscription_status == "active":
        return {"can_create_invoice": True}

    now = now or datetime.now()
    max_invoices = settings.FREE_TIER_MAX_INVOICES
    invoice_count = profile.invoice_count or 0

    is_trial_expired = bool(profile.trial_end_date and now > profile.trial_end_date)
    has_exceeded_invoice_limit = invoice_count >= max_invoices

    if is_trial_expired or has_exceeded_invoice_limit:
        if is_trial_expired and has_exceeded_invoice_limit:
            reason = f"トライアル期間が終了し、無料枠（{max_invoices}件）を使い切りました。有料プランにアップグレードしてください。"
        elif has_exceeded_invoice_limit:
            reason = f"無料枠（{max_invoices}件）を使い切りました。有料プランにアップグレードしてください。"
        else:
            reason = "トライアル期間が終了しました。有料プランにアップグレードしてください。"

        return {
            "can_create_invoice": False,
            "reason": reason,
            "is_trial_expired": is_trial_expired,
            "has_exceeded_invoice_limit": has_exceeded_invoice_limit,
        }

    # 残り1〜2件になったら警告
    invoices_remaining = max_invoices - invoice_count
    if 0 < invoices_remaining <= 2:
        return {
            "can_create_invoice": True,
            "reason": f"無料枠の残りは{invoices_remaining}件です。有料プランにアップグレードすると無制限に作成できます。",
            "is_trial_expired": False,
            "has_exceeded_invoice_limit": False,
        }

    return {"can_create_invoice": True}


def format_subscription_status(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def get_trial_days_remaining(trial_end_date: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    if trial_end_date is None:
        return None

    now = now or datetime.now()
    days = math.ceil((trial_end_date - now).total_seconds() / (60 * 60 * 24))
    return days if days > 0 else 0
