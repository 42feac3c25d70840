"""
主催者登録・主催者情報・主催者コード確認
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from invoice_pit.api.deps import CurrentUser, get_current_organizer, get_current_user
from invoice_pit.core.accounts import register_organizer, update_organizer
from invoice_pit.core.invoice_lifecycle import invoice_lifecycle
from invoice_pit.models.database import get_db
from invoice_pit.models.organizer import Organizer
from invoice_pit.schemas import OrganizerOut, OrganizerRegister, OrganizerUpdate

router = APIRouter()


@router.post("", response_model=OrganizerOut, status_code=201)
def register(
    data: OrganizerRegister,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """主催者登録（主催者コードを発行）"""
    return register_organizer(db, user.id, user.email, data)


@router.get("/me", response_model=OrganizerOut)
def get_me(organizer: Organizer = Depends(get_current_organizer)):
    return organizer


@router.put("/me", response_model=OrganizerOut)
def put_me(
    data: OrganizerUpdate,
    organizer: Organizer = Depends(get_current_organizer),
    db: Session = Depends(get_db),
):
    """主催者情報の更新"""
    return update_organizer(db, organizer, data)


@router.get("/verify")
def verify_code(
    code: str = Query(...),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """タレントが入力した主催者コードの確認"""
    organizer = invoice_lifecycle.find_organizer_by_code(db, code)
    return {"id": str(organizer.id), "name": organizer.display_name}
