"""
主催者側請求書モデル
タレントの請求書をミラーした承認用レコード
"""

from sqlalchemy import Column, String, Integer, Date, DateTime, JSON, ForeignKey, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from invoice_pit.models.database import Base


class OrganizerInvoice(Base):
    """主催者側請求書テーブル"""

    __tablename__ = "organizer_invoices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organizer_id = Column(Uuid, ForeignKey("organizers.id"), nullable=False, index=True)
    invoice_id = Column(Uuid, ForeignKey("invoices.id"), nullable=False, unique=True)

    # 作成時点のタレント情報
    talent_name = Column(String(100))
    talent_email = Column(String(255))
    bank_name = Column(String(100))
    branch_name = Column(String(100))
    account_type = Column(String(10))
    account_number = Column(String(20))
    account_holder = Column(String(100))
    invoice_reg_number = Column(String(20))

    # 請求内容スナップショット
    invoice_number = Column(String(20), nullable=False)
    subject = Column(String(200))
    work_date = Column(Date)
    payment_due_date = Column(Date)
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Integer, nullable=False, default=0)
    tax = Column(Integer, nullable=False, default=0)
    withholding = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)

    status = Column(String(20), nullable=False, default="pending")  # pending, approved, paid, returned
    approved_at = Column(DateTime)
    paid_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    organizer = relationship("Organizer", back_populates="organizer_invoices")
    invoice = relationship("Invoice")

    def __repr__(self):
        return f"<OrganizerInvoice(id={self.id}, invoice_id={self.invoice_id}, status={self.status})>"
