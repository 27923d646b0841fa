from fastapi import APIRouter, Path, Query

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.modules.expenses.service import ExpenseService, DEFAULT_DAYS
from pos_api.modules.expenses.schemas import (
    ExpenseCreate, ExpenseUpdate, ExpenseOut, ExpenseList, ExpenseResponse
)
from pos_api.modules.auth.schemas import MessageResponse

expenses_router = APIRouter(tags=["Expenses"])


@expenses_router.get("/reportes/gastos", response_model=ExpenseList)
def list_expenses(
    db: db_dependency,
    current_user: user_dependency,
    dias: int = Query(DEFAULT_DAYS, gt=0, description="Días hacia atrás")
):
    expenses = ExpenseService(db).list_recent(dias)
    return ExpenseList(expenses=[ExpenseOut.model_validate(e) for e in expenses])


@expenses_router.post("/reportes/gastos", response_model=ExpenseResponse, status_code=201)
def create_expense(data: ExpenseCreate, db: db_dependency, current_user: user_dependency):
    """Registrar un gasto del día"""
    expense = ExpenseService(db).create(data)
    return ExpenseResponse(expense=ExpenseOut.model_validate(expense))


@expenses_router.put("/gastos/editar/{expense_id}", response_model=MessageResponse)
def update_expense(
    data: ExpenseUpdate,
    db: db_dependency,
    current_user: user_dependency,
    expense_id: int = Path(..., description="ID del gasto")
):
    ExpenseService(db).update(expense_id, data)
    return MessageResponse(message="Gasto actualizado")


@expenses_router.delete("/gastos/eliminar/{expense_id}", response_model=MessageResponse)
def delete_expense(
    db: db_dependency,
    current_user: user_dependency,
    expense_id: int = Path(..., description="ID del gasto")
):
    ExpenseService(db).delete(expense_id)
    return MessageResponse(message="Gasto eliminado")
