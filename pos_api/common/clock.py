"""
Hora local del negocio.

Los turnos y los cortes se calculan con la hora de la tienda, no con UTC.
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from pos_api.core.config import settings


def local_now() -> datetime:
    """Hora local del negocio como datetime naive (así se guarda en la base)."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()
