"""
Celery設定
"""

from celery import Celery
from celery.schedules import crontab
from invoice_pit.config import settings

celery_app = Celery(
    "invoice_tasks",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "invoice_pit.tasks.reconciliation",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Asia/Tokyo",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,
    worker_prefetch_multiplier=1,
)

# 定期タスクスケジュール
celery_app.conf.beat_schedule = {
    # 請求書と主催者側レコードの整合性チェック（毎時15分）
    "reconcile-invoice-pairs": {
        "task": "invoice_pit.tasks.reconciliation.reconcile_invoice_pairs",
        "schedule": crontab(minute=15),
    },
}
