from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from pos_api.modules.services.models import Service

MAX_SUGGESTIONS = 10


class ServiceCatalogService:
    """Consultas sobre el catálogo de servicios"""

    def __init__(self, db: Session):
        self.db = db

    def suggest(self, text: Optional[str]) -> List[Service]:
        """Servicios activos cuyo nombre contiene el texto (sin distinguir mayúsculas)"""
        if not text or not text.strip():
            return []
        pattern = f"%{text.strip().lower()}%"
        return self.db.query(Service).filter(
            Service.is_active == True,
            func.lower(Service.name).like(pattern)
        ).order_by(Service.name.asc()).limit(MAX_SUGGESTIONS).all()
