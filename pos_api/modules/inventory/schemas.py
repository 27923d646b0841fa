from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from pos_api.modules.products.models import MovementType


class StockMovementCreate(BaseModel):
    """Entrada o salida manual de inventario"""
    product_id: int = Field(..., gt=0, description="ID del producto")
    quantity: int = Field(..., gt=0, description="Cantidad (siempre positiva)")
    reason: Optional[str] = Field(None, max_length=255, description="Motivo del movimiento")


class StockMovementResult(BaseModel):
    ok: bool = True
    message: str
    product_id: int
    stock: int
    stock_minimum: int
    alert_raised: bool
    alerts_cleared: int


class InventoryMovementOut(BaseModel):
    id: int
    movement_type: MovementType
    quantity: int
    user_id: Optional[int] = None
    reason: Optional[str] = None
    date: datetime

    model_config = {"from_attributes": True}


class MovementHistory(BaseModel):
    ok: bool = True
    movements: List[InventoryMovementOut]


class AlertOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    stock_at_creation: int
    message: str
    date: datetime
    attended: bool


class AlertList(BaseModel):
    ok: bool = True
    alerts: List[AlertOut]
