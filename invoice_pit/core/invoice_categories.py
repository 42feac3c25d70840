"""
請求項目ジャンル
ジャンル選択時に明細の初期値（項目名・税区分・源泉徴収）を決める
"""

from typing import Dict, List, Optional

from invoice_pit.schemas import LineItem


INVOICE_CATEGORIES: List[Dict] = [
    {"id": "performance_fee", "label": "出演料", "is_tax_included": False, "is_withholding_target": True, "is_tax_exempt": False},
    {"id": "ticket_back", "label": "チケットバック", "is_tax_included": True, "is_withholding_target": False, "is_tax_exempt": False},
    {"id": "royalty", "label": "ロイヤリティ", "is_tax_included": True, "is_withholding_target": False, "is_tax_exempt": False},
    {"id": "music_performance", "label": "演奏料", "is_tax_included": False, "is_withholding_target": True, "is_tax_exempt": False},
    {"id": "music_production", "label": "楽曲制作料", "is_tax_included": False, "is_withholding_target": True, "is_tax_exempt": False},
    {"id": "production_commission", "label": "制作業務委託費", "is_tax_included": False, "is_withholding_target": False, "is_tax_exempt": False},
    {"id": "honorarium", "label": "謝礼", "is_tax_included": True, "is_withholding_target": False, "is_tax_exempt": False},
    {"id": "transportation", "label": "交通費", "is_tax_included": False, "is_withholding_target": False, "is_tax_exempt": True},
    {"id": "discount", "label": "値引き", "is_tax_included": True, "is_withholding_target": False, "is_tax_exempt": False},
    {"id": "other", "label": "その他", "is_tax_included": False, "is_withholding_target": False, "is_tax_exempt": False},
]


def get_category(category_id: str) -> Optional[Dict]:
    for category in INVOICE_CATEGORIES:
        if category["id"] == category_id:
            return category
    return None


def category_template(category_id: str) -> LineItem:
    """
    ジャンルの初期明細（数量1、金額0）
    """
    category = get_category(category_id)
    if category is None:
        raise KeyError(category_id)

    return LineItem(
        name="" if category_id == "other" else category["label"],
        quantity=1,
        unit_amount=0,
        category=category_id,
        is_tax_included=category["is_tax_included"],
        is_withholding_target=category["is_withholding_target"],
        is_tax_exempt=category["is_tax_exempt"],
    )


def apply_category(item: LineItem, category_id: str) -> LineItem:
    """
    既存の明細にジャンルの初期値を一度だけ適用する
    「その他」の場合は入力済みの項目名を残す
    """
    template = category_template(category_id)
    return item.model_copy(
        update={
            "category": category_id,
            "name": item.name if category_id == "other" else template.name,
            "is_tax_included": template.is_tax_included,
            "is_withholding_target": template.is_withholding_target,
            "is_tax_exempt": template.is_tax_exempt,
        }
    )
