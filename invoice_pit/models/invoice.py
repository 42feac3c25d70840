"""
請求書モデル（タレント側）
"""

from sqlalchemy import Column, String, Integer, Date, Text, DateTime, JSON, ForeignKey, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid

from invoice_pit.models.database import Base


class Invoice(Base):
    """請求書テーブル"""

    __tablename__ = "invoices"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_number = Column(String(20), nullable=False, index=True)  # INV-YYYYMM-####
    talent_id = Column(Uuid, ForeignKey("profiles.id"), nullable=False, index=True)
    # 参照のみ（所有関係ではない）
    organizer_id = Column(Uuid, index=True)

    invoice_date = Column(Date, nullable=False)
    work_date = Column(Date)
    payment_due_date = Column(Date)
    subject = Column(String(200))

    # 請求先
    recipient_name = Column(String(100))
    recipient_type = Column(String(20), default="company")  # company: 御中, individual: 様
    recipient_address = Column(String(255))
    notes = Column(Text)

    # 明細と金額スナップショット
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Integer, nullable=False, default=0)
    tax = Column(Integer, nullable=False, default=0)
    withholding = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False, default=0)

    # ステータス
    status = Column(String(20), nullable=False, default="draft")  # draft, sent, paid
    return_status = Column(String(20))  # returned, resubmitted
    return_comment = Column(Text)
    return_date = Column(DateTime)
    returned_by = Column(Uuid)
    payment_status = Column(String(20), nullable=False, default="unpaid")  # unpaid, paid
    paid_date = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    talent = relationship("Profile", back_populates="invoices")

    def __repr__(self):
        return f"<Invoice(id={self.id}, number={self.invoice_number}, status={self.status})>"
