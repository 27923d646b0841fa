from fastapi import APIRouter, Query, Path
from sqlalchemy.exc import SQLAlchemyError

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.common.exceptions import StorageError
from pos_api.modules.products.models import MovementType
from pos_api.modules.inventory.service import StockLedger, MovementResult
from pos_api.modules.inventory.alerts import AlertManager
from pos_api.modules.inventory.schemas import (
    StockMovementCreate, StockMovementResult, MovementHistory, InventoryMovementOut, AlertOut, AlertList
)
from pos_api.modules.auth.schemas import MessageResponse

inventory_router = APIRouter(prefix="/inventario", tags=["Inventory"])


def _movement_response(result: MovementResult, message: str) -> StockMovementResult:
    return StockMovementResult(
        message=message,
        product_id=result.product_id,
        stock=result.stock,
        stock_minimum=result.stock_minimum,
        alert_raised=result.alert_raised,
        alerts_cleared=result.alerts_cleared
    )


@inventory_router.post("/entrada", response_model=StockMovementResult)
def register_entry(data: StockMovementCreate, db: db_dependency, current_user: user_dependency):
    """
    Registrar ENTRADA de inventario.

    Si el stock resultante supera el mínimo, las alertas pendientes del
    producto quedan atendidas.
    """
    result = StockLedger(db).apply_movement(
        data.product_id, MovementType.ENTRADA, data.quantity, current_user.id, data.reason
    )
    return _movement_response(result, "Entrada registrada correctamente")


@inventory_router.post("/salida", response_model=StockMovementResult)
def register_exit(data: StockMovementCreate, db: db_dependency, current_user: user_dependency):
    """
    Registrar SALIDA de inventario.

    Genera alerta si el stock resultante queda en o bajo el mínimo.
    """
    result = StockLedger(db).apply_movement(
        data.product_id, MovementType.SALIDA, data.quantity, current_user.id, data.reason
    )
    return _movement_response(result, "Salida registrada correctamente")


@inventory_router.get("/movimientos", response_model=MovementHistory)
def movement_history(
    db: db_dependency,
    current_user: user_dependency,
    product_id: int = Query(..., gt=0, description="ID del producto")
):
    """Historial de movimientos de un producto, del más reciente al más antiguo"""
    movements = StockLedger(db).movement_history(product_id)
    return MovementHistory(movements=[InventoryMovementOut.model_validate(m) for m in movements])


@inventory_router.get("/alertas", response_model=AlertList)
def list_alerts(db: db_dependency, current_user: user_dependency):
    """Alertas pendientes de atención"""
    alerts = AlertManager(db).list_unattended()
    return AlertList(alerts=[
        AlertOut(
            id=alert.id,
            product_id=alert.product_id,
            product_name=alert.product.name,
            stock_at_creation=alert.stock_at_creation,
            message=alert.message,
            date=alert.date,
            attended=alert.attended
        )
        for alert in alerts
    ])


@inventory_router.patch("/alertas/{alert_id}/atender", response_model=MessageResponse)
def attend_alert(
    db: db_dependency,
    current_user: user_dependency,
    alert_id: int = Path(..., description="ID de la alerta")
):
    try:
        AlertManager(db).mark_attended(alert_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(f"Error al atender alerta: {str(e)}", cause=e)
    return MessageResponse(message="Alerta marcada como atendida")
