"""
タレントプロフィールモデル
"""

from sqlalchemy import Column, String, Integer, DateTime, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from invoice_pit.models.database import Base


class Profile(Base):
    """タレント（請求書発行者）テーブル"""

    __tablename__ = "profiles"

    # 認証基盤のユーザーIDをそのまま主キーにする
    id = Column(Uuid, primary_key=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(100))
    postal_code = Column(String(10))
    address = Column(String(255))
    phone = Column(String(20))

    # 振込先
    bank_name = Column(String(100))
    branch_name = Column(String(100))
    account_type = Column(String(10))  # 普通, 当座
    account_number = Column(String(20))
    account_holder = Column(String(100))
    invoice_reg_number = Column(String(20))  # インボイス登録番号

    # サブスクリプション
    subscription_status = Column(String(20), nullable=False, default="trial")  # trial, active, inactive, cancelled
    subscription_id = Column(String(100), index=True)
    subscription_start_date = Column(DateTime)
    trial_end_date = Column(DateTime)
    invoice_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    invoices = relationship("Invoice", back_populates="talent")

    def __repr__(self):
        return f"<Profile(id={self.id}, email={self.email})>"
