"""
リクエスト/レスポンススキーマ
"""

from datetime import date, datetime
from typing import List, Literal, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


CATEGORY_IDS = (
    "performance_fee",
    "ticket_back",
    "royalty",
    "music_performance",
    "music_production",
    "production_commission",
    "honorarium",
    "transportation",
    "discount",
    "other",
)


class LineItem(BaseModel):
    """請求明細1行（JSONはcamelCaseで保存）"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    quantity: int = Field(1, ge=1)
    unit_amount: int = Field(0, ge=0)  # 円単位
    category: Optional[str] = None
    is_tax_included: bool = False
    is_withholding_target: bool = False
    is_tax_exempt: bool = False

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if value not in CATEGORY_IDS:
            raise ValueError(f"unknown category: {value}")
        return value


class InvoiceTotals(BaseModel):
    subtotal: int
    tax: int
    withholding: int
    total: int


class PreviewRequest(BaseModel):
    items: List[LineItem] = Field(default_factory=list)


class InvoiceBase(BaseModel):
    items: List[LineItem] = Field(..., min_length=1)
    subject: str = ""
    work_date: Optional[date] = None
    payment_due_date: Optional[date] = None
    recipient_name: Optional[str] = None
    recipient_type: Literal["company", "individual"] = "company"
    recipient_address: Optional[str] = None
    notes: Optional[str] = None


class InvoiceCreate(InvoiceBase):
    organizer_code: Optional[str] = None


class InvoiceUpdate(InvoiceBase):
    pass


class ReturnRequest(BaseModel):
    comment: str = ""


class PaymentStatusUpdate(BaseModel):
    payment_status: Literal["paid", "unpaid"]


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    account_type: Optional[Literal["普通", "当座"]] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    invoice_reg_number: Optional[str] = None


class OrganizerRegister(BaseModel):
    name: str = Field(..., min_length=1)
    company_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class OrganizerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    company_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("name cannot be null")
        return value


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    postal_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    account_type: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    invoice_reg_number: Optional[str] = None
    subscription_status: str
    trial_end_date: Optional[datetime] = None
    invoice_count: int


class OrganizerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    company_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    organizer_code: str


class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_number: str
    talent_id: uuid.UUID
    organizer_id: Optional[uuid.UUID] = None
    invoice_date: date
    work_date: Optional[date] = None
    payment_due_date: Optional[date] = None
    subject: Optional[str] = None
    recipient_name: Optional[str] = None
    recipient_type: Optional[str] = None
    recipient_address: Optional[str] = None
    notes: Optional[str] = None
    items: List[dict]
    subtotal: int
    tax: int
    withholding: int
    total: int
    status: str
    return_status: Optional[str] = None
    return_comment: Optional[str] = None
    return_date: Optional[datetime] = None
    returned_by: Optional[uuid.UUID] = None
    payment_status: str
    paid_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OrganizerInvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organizer_id: uuid.UUID
    invoice_id: uuid.UUID
    talent_name: Optional[str] = None
    talent_email: Optional[str] = None
    bank_name: Optional[str] = None
    branch_name: Optional[str] = None
    account_type: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    invoice_reg_number: Optional[str] = None
    invoice_number: str
    subject: Optional[str] = None
    work_date: Optional[date] = None
    payment_due_date: Optional[date] = None
    items: List[dict]
    subtotal: int
    tax: int
    withholding: int
    total: int
    status: str
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
