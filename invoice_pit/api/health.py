"""
ヘルスチェックエンドポイント
"""

from fastapi import APIRouter, Depends
from sqlalchemy import inspect, text
from sqlalchemy.orm import Session
import logging
import redis

from invoice_pit import __version__
from invoice_pit.config import settings
from invoice_pit.models.database import Base, get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def check_db_connection(db: Session) -> bool:
    """データベース接続確認"""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database check failed: {e}")
        return False


def missing_tables(db: Session) -> list:
    """未作成のテーブル"""
    existing = set(inspect(db.get_bind()).get_table_names())
    return sorted(name for name in Base.metadata.tables if name not in existing)


def check_redis_connection() -> bool:
    """Redis（Celeryブローカー）接続確認"""
    try:
        client = redis.from_url(settings.REDIS_URL, socket_connect_timeout=1)
        client.ping()
        return True
    except redis.RedisError as e:
        logger.warning(f"Redis check failed: {e}")
        return False


@router.get("/")
def health_check(db: Session = Depends(get_db)):
    """
    ヘルスチェック
    ブローカーが落ちていても請求書APIは動くため、状態はdegradedとする
    """
    services = {
        "database": "connected" if check_db_connection(db) else "disconnected",
        "redis": "connected" if check_redis_connection() else "disconnected",
    }

    if services["database"] != "connected":
        status = "unhealthy"
    elif services["redis"] != "connected":
        status = "degraded"
    else:
        status = "healthy"

    return {"status": status, "version": __version__, "services": services}


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """レディネスチェック（DB接続とテーブル作成済み）"""
    if not check_db_connection(db):
        return {"status": "not ready", "reason": "Database not available"}

    missing = missing_tables(db)
    if missing:
        return {"status": "not ready", "reason": f"Missing tables: {', '.join(missing)}"}
    return {"status": "ready"}


@router.get("/live")
def liveness_check():
    """ライブネスチェック"""
    return {"status": "alive"}
