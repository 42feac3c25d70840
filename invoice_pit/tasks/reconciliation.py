"""
整合性チェックタスク
"""

from invoice_pit.tasks.celery_app import celery_app
from invoice_pit.models.database import SessionLocal
from invoice_pit.core.invoice_lifecycle import invoice_lifecycle
import logging

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def reconcile_invoice_pairs(self):
    """
    請求書と主催者側レコードのずれを検出・修復
    """
    db = SessionLocal()
    try:
        result = invoice_lifecycle.reconcile(db)
        logger.info(
            f"Reconciliation finished: checked={result['checked']}, "
            f"repaired={len(result['repaired'])}, unresolved={len(result['unresolved'])}"
        )
        return result
    except Exception as e:
        logger.error(f"Reconciliation task failed: {e}")
        raise self.retry(exc=e, countdown=60 * 5)
    finally:
        db.close()
