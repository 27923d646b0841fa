"""
Endpoints de caja: apertura, corte, caja abierta y último corte.
"""
from fastapi import APIRouter

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.modules.pos.services import CashDrawerService
from pos_api.modules.pos.schemas import (
    CashDrawerOpen, CashDrawerClose, CashDrawerOut, LastClosingOut,
    CashDrawerOpened, CashDrawerClosed, OpenDrawerResponse, LastClosingResponse
)

cash_drawer_router = APIRouter(prefix="/caja", tags=["Cash Drawer"])


@cash_drawer_router.post("/abrir", response_model=CashDrawerOpened)
def open_drawer(data: CashDrawerOpen, db: db_dependency, current_user: user_dependency):
    """
    Abrir caja.

    Si quedó una caja abierta se cierra automáticamente antes de abrir la nueva.
    """
    drawer = CashDrawerService(db).open_drawer(current_user.id, data.opening_float)
    return CashDrawerOpened(message="Caja abierta correctamente.", drawer_id=drawer.id)


@cash_drawer_router.post("/cerrar", response_model=CashDrawerClosed)
def close_drawer(data: CashDrawerClose, db: db_dependency, current_user: user_dependency):
    """
    Corte de caja.

    - **venta bruta** = (efectivo + tigo + claro - fondo base) + transferencias + tarjeta
    - Responde 409 si no hay caja abierta
    """
    drawer = CashDrawerService(db).close_drawer(data)
    return CashDrawerClosed(
        message="Corte de caja guardado correctamente.",
        drawer_id=drawer.id,
        gross_sales=drawer.gross_sales,
        shift=drawer.shift
    )


@cash_drawer_router.get("/abierta", response_model=OpenDrawerResponse)
def get_open_drawer(db: db_dependency, current_user: user_dependency):
    drawer = CashDrawerService(db).get_open()
    return OpenDrawerResponse(drawer=CashDrawerOut.model_validate(drawer) if drawer else None)


@cash_drawer_router.get("/ultimo-corte-info", response_model=LastClosingResponse)
def get_last_closing(db: db_dependency, current_user: user_dependency):
    drawer = CashDrawerService(db).get_last_closing()
    return LastClosingResponse(closing=LastClosingOut.model_validate(drawer) if drawer else None)
