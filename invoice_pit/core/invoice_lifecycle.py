"""
請求書ライフサイクル管理
タレント側の請求書（invoices）と主催者側レコード（organizer_invoices）の
ステータスを一つのトランザクションで同時に遷移させる
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy.orm import Session

from invoice_pit.config import settings
from invoice_pit.core.codes import generate_invoice_number, normalize_organizer_code
from invoice_pit.core.exceptions import (
    ConsistencyError,
    InvalidTransitionError,
    InvoiceValidationError,
    NotFoundError,
    SubscriptionLimitError,
)
from invoice_pit.core.invoice_calculator import InvoiceCalculator, invoice_calculator
from invoice_pit.core.profile_check import get_missing_profile_fields
from invoice_pit.core.subscription import check_subscription_limits
from invoice_pit.models.database import transaction
from invoice_pit.models.invoice import Invoice
from invoice_pit.models.organizer import Organizer
from invoice_pit.models.organizer_invoice import OrganizerInvoice
from invoice_pit.models.profile import Profile
from invoice_pit.schemas import InvoiceCreate, InvoiceTotals, InvoiceUpdate, LineItem

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    """請求書の状態（請求書と主催者側レコードの組から一意に決まる）"""

    DRAFT = "draft"
    AWAITING_APPROVAL = "awaiting_approval"
    APPROVED = "approved"
    RETURNED = "returned"
    RESUBMITTED = "resubmitted"
    PAID = "paid"


# 操作ごとに許可される遷移元
ALLOWED_TRANSITIONS = {
    "approve": {LifecycleState.AWAITING_APPROVAL, LifecycleState.RESUBMITTED},
    "mark_paid": {LifecycleState.APPROVED},
    "return": {LifecycleState.AWAITING_APPROVAL, LifecycleState.RESUBMITTED},
    "resubmit": {LifecycleState.RETURNED},
    "delete_linked": {LifecycleState.RETURNED},
}

TRANSITION_ERRORS = {
    "approve": "承認待ちの請求書のみ承認できます",
    "mark_paid": "承認済みの請求書のみ支払済みにできます",
    "return": "承認前の請求書のみ差し戻しできます",
    "resubmit": "主催者に送信済みの請求書は差し戻し中のみ編集できます",
    "delete_linked": "主催者に送信済みの請求書は差し戻し中のみ削除できます",
}

# 主催者側にコピーする請求内容
SNAPSHOT_FIELDS = (
    "invoice_number",
    "subject",
    "work_date",
    "payment_due_date",
    "items",
    "subtotal",
    "tax",
    "withholding",
    "total",
)

# 作成時点のタレント情報
TALENT_SNAPSHOT_FIELDS = (
    "bank_name",
    "branch_name",
    "account_type",
    "account_number",
    "account_holder",
    "invoice_reg_number",
)


def derive_state(invoice: Invoice, organizer_invoice: Optional[OrganizerInvoice]) -> LifecycleState:
    """
    永続化された各ステータスから現在の状態を導出

    主催者連携済みの場合は主催者側ステータスを正とする。
    """
    if invoice.organizer_id is None:
        if invoice.payment_status == "paid":
            return LifecycleState.PAID
        return LifecycleState.DRAFT

    if organizer_invoice is None:
        raise ConsistencyError("主催者側の請求書が見つかりません")

    if organizer_invoice.status == "paid":
        return LifecycleState.PAID
    if organizer_invoice.status == "returned":
        return LifecycleState.RETURNED
    if organizer_invoice.status == "approved":
        return LifecycleState.APPROVED
    if invoice.return_status == "resubmitted":
        return LifecycleState.RESUBMITTED
    return LifecycleState.AWAITING_APPROVAL


def is_editable(invoice: Invoice) -> bool:
    """未連携の請求書は常に、連携済みは差し戻し中のみ編集可能"""
    return invoice.organizer_id is None or invoice.return_status == "returned"


class InvoiceLifecycle:
    """請求書ステータス管理"""

    def __init__(self, calculator: InvoiceCalculator = invoice_calculator, tax_rate_percent: Optional[int] = None):
        self.calculator = calculator
        self._tax_rate_percent = tax_rate_percent

    @property
    def tax_rate_percent(self) -> int:
        if self._tax_rate_percent is None:
            return settings.TAX_RATE_PERCENT
        return self._tax_rate_percent

    def preview(self, items: List[LineItem]) -> InvoiceTotals:
        """入力中のプレビューと保存時で同じ計算を使う"""
        return self.calculator.calculate(items, self.tax_rate_percent)

    def _require(self, action: str, state: LifecycleState):
        if state not in ALLOWED_TRANSITIONS[action]:
            logger.info(f"Rejected {action} from state {state.value}")
            raise InvalidTransitionError(TRANSITION_ERRORS[action])

    def _validate_items(self, items: List[LineItem]):
        if not items:
            raise InvoiceValidationError("請求項目を1つ以上入力してください")

        for index, item in enumerate(items, 1):
            if not item.name or not item.name.strip():
                raise InvoiceValidationError(f"{index}行目: 項目名を入力してください")
            if item.quantity < 1:
                raise InvoiceValidationError(f"{index}行目: 個数は1以上で入力してください")
            if item.unit_amount < 0:
                raise InvoiceValidationError(f"{index}行目: 単価は0以上で入力してください")

    def _dump_items(self, items: List[LineItem]) -> List[Dict]:
        return [item.model_dump(by_alias=True) for item in items]

    def _copy_snapshot(self, invoice: Invoice, organizer_invoice: OrganizerInvoice):
        for field in SNAPSHOT_FIELDS:
            value = getattr(invoice, field)
            setattr(organizer_invoice, field, list(value) if field == "items" else value)

    def _apply_edit(self, invoice: Invoice, data: InvoiceUpdate, totals: InvoiceTotals):
        invoice.items = self._dump_items(data.items)
        invoice.subtotal = totals.subtotal
        invoice.tax = totals.tax
        invoice.withholding = totals.withholding
        invoice.total = totals.total
        invoice.subject = data.subject
        invoice.work_date = data.work_date
        invoice.payment_due_date = data.payment_due_date
        invoice.notes = data.notes

        # 連携済みの請求先は主催者で固定
        if invoice.organizer_id is None:
            invoice.recipient_name = data.recipient_name
            invoice.recipient_type = data.recipient_type
            invoice.recipient_address = data.recipient_address

    # ------------------------------------------------------------------
    # 参照
    # ------------------------------------------------------------------

    def find_organizer_by_code(self, db: Session, raw_code: str) -> Organizer:
        code = normalize_organizer_code(raw_code)
        if code is None:
            raise InvoiceValidationError("主催者コードの形式が正しくありません")

        organizer = db.query(Organizer).filter(Organizer.organizer_code == code).first()
        if not organizer:
            raise NotFoundError("主催者コードが見つかりません")
        return organizer

    def get_talent_invoice(self, db: Session, talent_id: uuid.UUID, invoice_id: uuid.UUID) -> Invoice:
        invoice = (
            db.query(Invoice)
            .filter(Invoice.id == invoice_id, Invoice.talent_id == talent_id)
            .first()
        )
        if not invoice:
            raise NotFoundError("請求書が見つかりません")
        return invoice

    def get_mirror(self, db: Session, invoice: Invoice) -> Optional[OrganizerInvoice]:
        if invoice.organizer_id is None:
            return None
        return (
            db.query(OrganizerInvoice)
            .filter(
                OrganizerInvoice.invoice_id == invoice.id,
                OrganizerInvoice.organizer_id == invoice.organizer_id,
            )
            .first()
        )

    def get_organizer_invoice(
        self, db: Session, organizer_id: uuid.UUID, organizer_invoice_id: uuid.UUID
    ) -> Tuple[OrganizerInvoice, Invoice]:
        organizer_invoice = (
            db.query(OrganizerInvoice)
            .filter(
                OrganizerInvoice.id == organizer_invoice_id,
                OrganizerInvoice.organizer_id == organizer_id,
            )
            .first()
        )
        if not organizer_invoice:
            raise NotFoundError("請求書が見つかりません")

        invoice = db.get(Invoice, organizer_invoice.invoice_id)
        if invoice is None:
            logger.error(f"Organizer invoice {organizer_invoice.id} references missing invoice")
            raise ConsistencyError("元の請求書が見つかりません")
        return organizer_invoice, invoice

    def list_organizer_invoices(
        self, db: Session, organizer_id: uuid.UUID, status: Optional[str] = None
    ) -> List[OrganizerInvoice]:
        query = db.query(OrganizerInvoice).filter(OrganizerInvoice.organizer_id == organizer_id)
        if status:
            query = query.filter(OrganizerInvoice.status == status)
        return query.order_by(OrganizerInvoice.created_at.desc()).all()

    def search_talent_invoices(
        self,
        db: Session,
        talent_id: uuid.UUID,
        returned_only: bool = False,
        search: Optional[str] = None,
        payment_status: Optional[str] = None,
        sort_by: str = "date",
        sort_order: str = "desc",
    ) -> Tuple[List[Invoice], Dict]:
        """
        タレントの請求書一覧と集計（売上合計・入金済み・未入金）

        集計は絞り込み前の全件が対象。
        """
        invoices = (
            db.query(Invoice)
            .filter(Invoice.talent_id == talent_id)
            .order_by(Invoice.created_at.desc())
            .all()
        )

        stats = {
            "total_sales": sum(inv.total for inv in invoices),
            "paid_amount": sum(inv.total for inv in invoices if inv.payment_status == "paid"),
            "unpaid_amount": sum(inv.total for inv in invoices if inv.payment_status == "unpaid"),
            "returned_count": sum(1 for inv in invoices if inv.return_status == "returned"),
        }

        result = list(invoices)
        if returned_only:
            result = [inv for inv in result if inv.return_status == "returned"]

        if search:
            keyword = search.lower()
            organizer_ids = {inv.organizer_id for inv in result if inv.organizer_id}
            organizer_names = {}
            if organizer_ids:
                for organizer in db.query(Organizer).filter(Organizer.id.in_(organizer_ids)).all():
                    organizer_names[organizer.id] = organizer.display_name

            def matches(inv: Invoice) -> bool:
                fields = [
                    inv.invoice_number,
                    inv.subject,
                    inv.recipient_name,
                    organizer_names.get(inv.organizer_id),
                ]
                return any(keyword in value.lower() for value in fields if value)

            result = [inv for inv in result if matches(inv)]

        if payment_status:
            result = [inv for inv in result if inv.payment_status == payment_status]

        reverse = sort_order == "desc"
        if sort_by == "amount":
            result.sort(key=lambda inv: inv.total, reverse=reverse)
        else:
            result.sort(key=lambda inv: inv.created_at or datetime.min, reverse=reverse)

        return result, stats

    # ------------------------------------------------------------------
    # タレント側の操作
    # ------------------------------------------------------------------

    def create_invoice(
        self, db: Session, talent: Profile, data: InvoiceCreate, now: Optional[datetime] = None
    ) -> Invoice:
        """
        請求書作成
        主催者コードが指定されていれば主催者側レコードを同時に作成する
        """
        now = now or datetime.now()

        missing = get_missing_profile_fields(talent)
        if missing:
            raise InvoiceValidationError(f"プロフィールを登録してください（未登録: {'、'.join(missing)}）")

        limits = check_subscription_limits(talent, now)
        if not limits["can_create_invoice"]:
            raise SubscriptionLimitError(limits["reason"])

        self._validate_items(data.items)

        organizer = None
        if data.organizer_code:
            organizer = self.find_organizer_by_code(db, data.organizer_code)

        totals = self.preview(data.items)

        with transaction(db, "create invoice"):
            invoice = Invoice(
                invoice_number=generate_invoice_number(now),
                talent_id=talent.id,
                organizer_id=organizer.id if organizer else None,
                invoice_date=now.date(),
                work_date=data.work_date,
                payment_due_date=data.payment_due_date or now.date(),
                subject=data.subject,
                recipient_name=data.recipient_name or (organizer.display_name if organizer else None),
                recipient_type="company" if organizer else data.recipient_type,
                recipient_address=data.recipient_address,
                notes=data.notes,
                items=self._dump_items(data.items),
                subtotal=totals.subtotal,
                tax=totals.tax,
                withholding=totals.withholding,
                total=totals.total,
                status="draft",
                payment_status="unpaid",
            )
            db.add(invoice)
            db.flush()

            if organizer:
                organizer_invoice = OrganizerInvoice(
                    organizer_id=organizer.id,
                    invoice_id=invoice.id,
                    talent_name=talent.full_name,
                    talent_email=talent.email,
                    status="pending",
                )
                for field in TALENT_SNAPSHOT_FIELDS:
                    setattr(organizer_invoice, field, getattr(talent, field))
                self._copy_snapshot(invoice, organizer_invoice)
                db.add(organizer_invoice)

            if talent.subscription_status == "trial":
                talent.invoice_count = (talent.invoice_count or 0) + 1

        db.refresh(invoice)
        logger.info(
            f"Invoice created: {invoice.id} ({invoice.invoice_number}), "
            f"organizer={invoice.organizer_id}, total={invoice.total}"
        )
        return invoice

    def update_invoice(
        self, db: Session, talent_id: uuid.UUID, invoice_id: uuid.UUID, data: InvoiceUpdate
    ) -> Invoice:
        """
        請求書編集
        差し戻し中の場合は再提出として主催者側も承認待ちに戻す
        """
        invoice = self.get_talent_invoice(db, talent_id, invoice_id)
        organizer_invoice = self.get_mirror(db, invoice)
        state = derive_state(invoice, organizer_invoice)

        resubmitting = invoice.organizer_id is not None
        if resubmitting:
            self._require("resubmit", state)

        self._validate_items(data.items)
        totals = self.preview(data.items)

        with transaction(db, "update invoice"):
            self._apply_edit(invoice, data, totals)

            if resubmitting:
                invoice.return_status = "resubmitted"
                invoice.status = "sent"
                self._copy_snapshot(invoice, organizer_invoice)
                organizer_invoice.status = "pending"

        db.refresh(invoice)
        if resubmitting:
            logger.info(f"Invoice resubmitted: {invoice.id}, total={invoice.total}")
        else:
            logger.info(f"Invoice updated: {invoice.id}, total={invoice.total}")
        return invoice

    def set_payment_status(
        self, db: Session, talent_id: uuid.UUID, invoice_id: uuid.UUID, payment_status: str
    ) -> Invoice:
        """
        入金ステータスの手動切り替え（主催者未連携の請求書のみ）
        """
        invoice = self.get_talent_invoice(db, talent_id, invoice_id)
        if invoice.organizer_id is not None:
            raise InvalidTransitionError("主催者連携済みの請求書は主催者が支払済みにします")

        with transaction(db, "update payment status"):
            invoice.payment_status = payment_status
            invoice.paid_date = datetime.now() if payment_status == "paid" else None

        db.refresh(invoice)
        logger.info(f"Payment status of {invoice.id} set to {payment_status}")
        return invoice

    def delete_invoice(self, db: Session, talent_id: uuid.UUID, invoice_id: uuid.UUID):
        """
        請求書削除
        主催者連携済みの場合は差し戻し中のみ、主催者側レコードと一緒に削除する
        """
        invoice = self.get_talent_invoice(db, talent_id, invoice_id)
        organizer_invoice = self.get_mirror(db, invoice)

        if invoice.organizer_id is not None and organizer_invoice is not None:
            self._require("delete_linked", derive_state(invoice, organizer_invoice))
        elif invoice.organizer_id is not None:
            logger.warning(f"Deleting invoice {invoice.id} without organizer record")

        with transaction(db, "delete invoice"):
            if organizer_invoice is not None:
                db.delete(organizer_invoice)
            db.delete(invoice)

        logger.info(f"Invoice deleted: {invoice_id}")

    # ------------------------------------------------------------------
    # 主催者側の操作
    # ------------------------------------------------------------------

    def approve(
        self, db: Session, organizer_id: uuid.UUID, organizer_invoice_id: uuid.UUID
    ) -> OrganizerInvoice:
        """承認（タレント側の請求書は変更しない）"""
        organizer_invoice, invoice = self.get_organizer_invoice(db, organizer_id, organizer_invoice_id)
        self._require("approve", derive_state(invoice, organizer_invoice))

        with transaction(db, "approve invoice"):
            organizer_invoice.status = "approved"
            organizer_invoice.approved_at = datetime.now()

        db.refresh(organizer_invoice)
        logger.info(f"Invoice approved: {invoice.id} by organizer {organizer_id}")
        return organizer_invoice

    def mark_paid(
        self, db: Session, organizer_id: uuid.UUID, organizer_invoice_id: uuid.UUID
    ) -> OrganizerInvoice:
        """支払済み（タレント側も支払済み・入金済みにする）"""
        organizer_invoice, invoice = self.get_organizer_invoice(db, organizer_id, organizer_invoice_id)
        self._require("mark_paid", derive_state(invoice, organizer_invoice))

        now = datetime.now()
        with transaction(db, "mark invoice paid"):
            organizer_invoice.status = "paid"
            organizer_invoice.paid_at = now
            invoice.status = "paid"
            invoice.payment_status = "paid"
            invoice.paid_date = now

        db.refresh(organizer_invoice)
        logger.info(f"Invoice paid: {invoice.id} by organizer {organizer_id}")
        return organizer_invoice

    def return_invoice(
        self, db: Session, organizer_id: uuid.UUID, organizer_invoice_id: uuid.UUID, comment: str
    ) -> OrganizerInvoice:
        """差し戻し（タレント側を下書きに戻して編集可能にする）"""
        comment = (comment or "").strip()
        if not comment:
            raise InvoiceValidationError("差し戻し理由を入力してください")

        organizer_invoice, invoice = self.get_organizer_invoice(db, organizer_id, organizer_invoice_id)
        self._require("return", derive_state(invoice, organizer_invoice))

        with transaction(db, "return invoice"):
            invoice.return_status = "returned"
            invoice.return_comment = comment
            invoice.return_date = datetime.now()
            invoice.returned_by = organizer_id
            invoice.status = "draft"
            organizer_invoice.status = "returned"

        db.refresh(organizer_invoice)
        logger.info(f"Invoice returned: {invoice.id} by organizer {organizer_id}")
        return organizer_invoice

    # ------------------------------------------------------------------
    # 整合性チェック
    # ------------------------------------------------------------------

    def reconcile(self, db: Session) -> Dict:
        """
        請求書と主催者側レコードのずれを検出

        主催者側が支払済みなのに請求書が未払いのものだけ自動修復し、
        それ以外は判断できないためログに残す。
        """
        repaired = []
        unresolved = []

        with transaction(db, "reconcile invoices"):
            linked = db.query(Invoice).filter(Invoice.organizer_id.isnot(None)).all()

            for invoice in linked:
                organizer_invoice = self.get_mirror(db, invoice)

                if organizer_invoice is None:
                    unresolved.append({"invoice_id": str(invoice.id), "reason": "missing_organizer_invoice"})
                elif organizer_invoice.status == "paid":
                    if invoice.status != "paid" or invoice.payment_status != "paid":
                        invoice.status = "paid"
                        invoice.payment_status = "paid"
                        invoice.paid_date = invoice.paid_date or organizer_invoice.paid_at or datetime.now()
                        repaired.append(str(invoice.id))
                elif organizer_invoice.status == "returned" and invoice.return_status != "returned":
                    unresolved.append({"invoice_id": str(invoice.id), "reason": "return_not_mirrored"})
                elif organizer_invoice.status != "returned" and invoice.return_status == "returned":
                    unresolved.append({"invoice_id": str(invoice.id), "reason": "stale_return_status"})

        for invoice_id in repaired:
            logger.warning(f"Repaired payment status of invoice {invoice_id}")
        for item in unresolved:
            logger.warning(f"Unresolved invoice divergence: {item['invoice_id']} ({item['reason']})")

        return {"checked": len(linked), "repaired": repaired, "unresolved": unresolved}


invoice_lifecycle = InvoiceLifecycle()
