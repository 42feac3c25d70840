"""
pytest共通設定
"""

import os

# アプリ読み込み前にテスト用設定を入れる
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = "redis://localhost:6399/0"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["TAX_RATE_PERCENT"] = "10"

import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from invoice_pit.models import Base, get_db, init_db, Profile, Organizer
from invoice_pit.main import app
from invoice_pit.schemas import InvoiceCreate, LineItem


# テスト用インメモリデータベース
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """テスト用DBセッション"""
    init_db(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """テスト用FastAPIクライアント"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def talent(db_session):
    """プロフィール登録済みのタレント（有料プラン）"""
    profile = Profile(
        id=uuid.uuid4(),
        email="hanako@example.com",
        full_name="山田花子",
        postal_code="150-0001",
        address="東京都渋谷区神宮前1-2-3",
        phone="090-1234-5678",
        bank_name="みずほ銀行",
        branch_name="渋谷支店",
        account_type="普通",
        account_number="1234567",
        account_holder="ヤマダハナコ",
        subscription_status="active",
        trial_end_date=datetime.now() + timedelta(days=30),
        invoice_count=0,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def organizer(db_session):
    """主催者"""
    org = Organizer(
        id=uuid.uuid4(),
        email="booking@livehouse.example.com",
        name="ライブハウスABC",
        company_name="株式会社ABC",
        organizer_code="ABCD2345",
    )
    db_session.add(org)
    db_session.commit()
    db_session.refresh(org)
    return org


@pytest.fixture
def talent_headers(talent):
    return {"X-User-Id": str(talent.id), "X-User-Email": talent.email}


@pytest.fixture
def organizer_headers(organizer):
    return {"X-User-Id": str(organizer.id), "X-User-Email": organizer.email}


def performance_fee(amount: int = 10000, **overrides) -> LineItem:
    """出演料（税抜・源泉徴収対象）の明細"""
    values = {
        "name": "出演料",
        "quantity": 1,
        "unit_amount": amount,
        "category": "performance_fee",
        "is_tax_included": False,
        "is_withholding_target": True,
        "is_tax_exempt": False,
    }
    values.update(overrides)
    return LineItem(**values)


@pytest.fixture
def invoice_data():
    """請求書作成リクエストを組み立てる"""
    def build(amount: int = 10000, organizer_code=None, **overrides) -> InvoiceCreate:
        values = {
            "items": [performance_fee(amount)],
            "subject": "2024年12月分出演料",
            "recipient_name": "株式会社テスト",
            "organizer_code": organizer_code,
        }
        values.update(overrides)
        return InvoiceCreate(**values)
    return build
