"""
主催者モデル
"""

from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from invoice_pit.models.database import Base


class Organizer(Base):
    """主催者テーブル"""

    __tablename__ = "organizers"

    id = Column(Uuid, primary_key=True)
    email = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    company_name = Column(String(100))
    phone = Column(String(20))
    address = Column(String(255))
    organizer_code = Column(String(8), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    organizer_invoices = relationship("OrganizerInvoice", back_populates="organizer")

    @property
    def display_name(self) -> str:
        return self.company_name or self.name

    def __repr__(self):
        return f"<Organizer(id={self.id}, code={self.organizer_code})>"
