"""
Tareas en segundo plano de facturación
"""
from pos_api.core.celery import celery_app
from pos_api.core.config import settings
from pos_api.database.database import Database
from pos_api.modules.sales.service import SaleService
from pos_api.modules.sales.storage import build_invoice_storage
import logging

logger = logging.getLogger(__name__)


@celery_app.task
def regenerate_pending_invoices(limit: int = 50):
    """
    Tarea periódica: reintentar las facturas que quedaron pendientes porque
    el almacén falló al momento de la venta.
    """
    database = Database(settings.database_url)
    db = database.session()
    try:
        logger.info("Regenerando facturas pendientes")
        result = SaleService(db, build_invoice_storage()).regenerate_pending(limit)
        logger.info(
            f"Facturas regeneradas: {result['regenerated']}, con error: {result['failed']}"
        )
        return result
    except Exception as e:
        logger.error(f"Regeneración de facturas falló: {str(e)}")
        raise
    finally:
        db.close()
        database.dispose()
