"""
認証情報の依存性注入
認証は上流のゲートウェイが行い、ユーザーIDとメールアドレスをヘッダーで渡す
"""

from dataclasses import dataclass
import uuid

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from invoice_pit.core.accounts import get_or_create_profile
from invoice_pit.core.exceptions import PermissionDeniedError
from invoice_pit.models.database import get_db
from invoice_pit.models.organizer import Organizer
from invoice_pit.models.profile import Profile


@dataclass
class CurrentUser:
    id: uuid.UUID
    email: str


def get_current_user(
    x_user_id: str = Header(None),
    x_user_email: str = Header(""),
) -> CurrentUser:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user id")
    return CurrentUser(id=user_id, email=x_user_email or "")


def get_current_talent(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Profile:
    return get_or_create_profile(db, user.id, user.email)


def get_current_organizer(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Organizer:
    organizer = db.get(Organizer, user.id)
    if not organizer:
        raise PermissionDeniedError("主催者として登録されていません")
    return organizer
