"""
データベース接続とセッション管理
"""

from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
import logging

from invoice_pit.config import settings
from invoice_pit.core.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # SQLiteはスレッド間でコネクションを共有する
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_recycle=300,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """全テーブルを作成（存在するものはそのまま）"""
    # モデルを読み込んでメタデータに登録する
    from invoice_pit.models import profile, organizer, invoice, organizer_invoice  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info(f"Database tables ready: {', '.join(sorted(Base.metadata.tables))}")


def get_db():
    """データベースセッションの依存性注入"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session, action: str):
    """
    ブロック内の変更をまとめてコミット
    失敗時はロールバックしてPersistenceErrorを送出する
    """
    try:
        yield
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceError("保存に失敗しました。時間をおいて再度お試しください。") from e
    except Exception:
        db.rollback()
        raise
