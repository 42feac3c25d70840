"""
タレントプロフィール・主催者アカウント管理
"""

from datetime import datetime
import logging
import uuid

from sqlalchemy.orm import Session

from invoice_pit.core.codes import generate_organizer_code
from invoice_pit.core.exceptions import InvoiceValidationError
from invoice_pit.core.subscription import trial_end_from
from invoice_pit.models.database import transaction
from invoice_pit.models.organizer import Organizer
from invoice_pit.models.profile import Profile
from invoice_pit.schemas import OrganizerRegister, OrganizerUpdate, ProfileUpdate

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 10


def get_or_create_profile(db: Session, user_id: uuid.UUID, email: str) -> Profile:
    """
    初回アクセス時にトライアル状態のプロフィールを作成
    """
    profile = db.get(Profile, user_id)
    if profile:
        return profile

    now = datetime.now()
    profile = Profile(
        id=user_id,
        email=email,
        subscription_status="trial",
        trial_end_date=trial_end_from(now),
        invoice_count=0,
    )
    with transaction(db, "create profile"):
        db.add(profile)
    db.refresh(profile)
    logger.info(f"New profile created: {profile.id}")
    return profile


def update_profile(db: Session, profile: Profile, data: ProfileUpdate) -> Profile:
    with transaction(db, "update profile"):
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(profile, field, value)
    db.refresh(profile)
    logger.info(f"Profile updated: {profile.id}")
    return profile


def register_organizer(db: Session, user_id: uuid.UUID, email: str, data: OrganizerRegister) -> Organizer:
    """
    主催者登録
    重複しない主催者コードを最大10回まで生成し直す
    """
    existing = db.get(Organizer, user_id)
    if existing:
        return existing

    organizer_code = None
    for _ in range(MAX_CODE_ATTEMPTS):
        candidate = generate_organizer_code()
        taken = db.query(Organizer).filter(Organizer.organizer_code == candidate).first()
        if not taken:
            organizer_code = candidate
            break

    if organizer_code is None:
        raise InvoiceValidationError("主催者コードの生成に失敗しました。もう一度お試しください。")

    organizer = Organizer(
        id=user_id,
        email=email,
        name=data.name,
        company_name=data.company_name,
        phone=data.phone,
        address=data.address,
        organizer_code=organizer_code,
    )
    with transaction(db, "register organizer"):
        db.add(organizer)
    db.refresh(organizer)
    logger.info(f"Organizer registered: {organizer.id} ({organizer.organizer_code})")
    return organizer


def update_organizer(db: Session, organizer: Organizer, data: OrganizerUpdate) -> Organizer:
    """
    主催者情報の更新（主催者コードは変更しない）
    送信済み請求書の請求先は作成時のまま
    """
    with transaction(db, "update organizer"):
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(organizer, field, value)
    db.refresh(organizer)
    logger.info(f"Organizer updated: {organizer.id}")
    return organizer
