"""
請求書番号・主催者コードの生成
"""

from datetime import datetime
from typing import Optional
import re
import secrets

# I, O, 0, 1 を除外
ORGANIZER_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ORGANIZER_CODE_LENGTH = 8

_ORGANIZER_CODE_PATTERN = re.compile(r"^[A-Z0-9]{6,8}$")


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """INV-YYYYMM-#### 形式（末尾4桁はランダム）"""
    now = now or datetime.now()
    return f"INV-{now.year}{now.month:02d}-{secrets.randbelow(10000):04d}"


def generate_organizer_code() -> str:
    return "".join(secrets.choice(ORGANIZER_CODE_ALPHABET) for _ in range(ORGANIZER_CODE_LENGTH))


def normalize_organizer_code(raw: str) -> Optional[str]:
    """
    入力された主催者コードを大文字化して検証
    形式が不正な場合はNone
    """
    code = (raw or "").strip().upper()
    if not _ORGANIZER_CODE_PATTERN.match(code):
        return None
    return code
