from typing import Callable, List
from datetime import date, timedelta
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from pos_api.common.clock import local_today
from pos_api.common.exceptions import POSError, ValidationError, NotFoundError, StorageError
from pos_api.modules.expenses.models import Expense
from pos_api.modules.expenses.schemas import ExpenseCreate, ExpenseUpdate

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7


class ExpenseService:
    """Service for daily expenses."""

    def __init__(self, db: Session, today: Callable[[], date] = local_today):
        self.db = db
        self.today = today

    def create(self, data: ExpenseCreate) -> Expense:
        try:
            expense = Expense(date=self.today(), description=data.description, amount=data.amount)
            self.db.add(expense)
            self.db.commit()
            self.db.refresh(expense)
            logger.info(f"Gasto registrado {expense.id}: {expense.amount}")
            return expense
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al guardar gasto: {str(e)}", cause=e)

    def list_recent(self, days: int = DEFAULT_DAYS) -> List[Expense]:
        """Gastos desde hace `days` días, del más antiguo al más reciente"""
        if days is None or days <= 0:
            raise ValidationError("La cantidad de días debe ser mayor a cero")
        cutoff = self.today() - timedelta(days=days)
        return self.db.query(Expense).filter(
            Expense.date >= cutoff
        ).order_by(Expense.date.asc(), Expense.id.asc()).all()

    def get(self, expense_id: int) -> Expense:
        expense = self.db.query(Expense).filter(Expense.id == expense_id).first()
        if not expense:
            raise NotFoundError("Gasto no encontrado")
        return expense

    def update(self, expense_id: int, data: ExpenseUpdate) -> Expense:
        try:
            expense = self.get(expense_id)
            expense.description = data.description
            expense.amount = data.amount
            self.db.commit()
            self.db.refresh(expense)
            return expense
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al actualizar gasto: {str(e)}", cause=e)

    def delete(self, expense_id: int) -> bool:
        try:
            expense = self.get(expense_id)
            self.db.delete(expense)
            self.db.commit()
            logger.info(f"Gasto {expense_id} eliminado")
            return True
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al eliminar gasto: {str(e)}", cause=e)
