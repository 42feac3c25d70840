"""
プロフィール登録状況のチェック
請求書の作成には氏名・住所・振込先が必要
"""

from typing import List, Optional

from invoice_pit.models.profile import Profile

REQUIRED_FIELDS = [
    ("full_name", "お名前"),
    ("postal_code", "郵便番号"),
    ("address", "住所"),
    ("bank_name", "銀行名"),
    ("branch_name", "支店名"),
    ("account_type", "口座種別"),
    ("account_number", "口座番号"),
    ("account_holder", "口座名義"),
]


def get_missing_profile_fields(profile: Optional[Profile]) -> List[str]:
    if profile is None:
        return ["全ての情報"]
    return [label for field, label in REQUIRED_FIELDS if not getattr(profile, field)]


def is_profile_complete(profile: Optional[Profile]) -> bool:
    return not get_missing_profile_fields(profile)
