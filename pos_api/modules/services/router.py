from fastapi import APIRouter, Query
from typing import Optional

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.modules.services.service import ServiceCatalogService
from pos_api.modules.services.schemas import ServiceSuggestion, ServiceSuggestionList

services_router = APIRouter(prefix="/servicios", tags=["Services"])


@services_router.get("/sugerencias", response_model=ServiceSuggestionList)
def suggest_services(
    db: db_dependency,
    current_user: user_dependency,
    q: Optional[str] = Query(None, description="Texto a buscar en el nombre")
):
    """Sugerencias de servicios para autocompletar en caja"""
    services = ServiceCatalogService(db).suggest(q)
    return ServiceSuggestionList(services=[ServiceSuggestion.model_validate(s) for s in services])
