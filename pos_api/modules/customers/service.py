from typing import Callable, List
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from pos_api.common.clock import local_now
from pos_api.common.exceptions import POSError, NotFoundError, StorageError
from pos_api.modules.customers.models import Customer
from pos_api.modules.customers.schemas import CreditCustomerCreate

logger = logging.getLogger(__name__)


class CustomerService:
    """Service for customers with store credit."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = local_now):
        self.db = db
        self.clock = clock

    def list_credit_customers(self) -> List[Customer]:
        return self.db.query(Customer).filter(
            Customer.has_credit.is_(True)
        ).order_by(Customer.credit_date.desc(), Customer.id.desc()).all()

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError("Cliente no encontrado")
        return customer

    def create_credit_customer(self, data: CreditCustomerCreate) -> Customer:
        try:
            customer = Customer(
                name=data.name,
                phone=data.phone,
                has_credit=True,
                debt_amount=data.amount,
                credit_date=self.clock()
            )
            self.db.add(customer)
            self.db.commit()
            self.db.refresh(customer)
            logger.info(f"Cliente con crédito creado: {customer.id}")
            return customer
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al crear cliente: {str(e)}", cause=e)

    def assign_credit(self, customer_id: int, amount: Decimal) -> Customer:
        """Habilitar crédito con una deuda inicial (reemplaza la anterior)"""
        try:
            customer = self.get_customer(customer_id)
            customer.has_credit = True
            customer.debt_amount = amount
            customer.credit_date = self.clock()
            self.db.commit()
            self.db.refresh(customer)
            return customer
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al asignar crédito: {str(e)}", cause=e)

    def adjust_debt(self, customer_id: int, delta: Decimal) -> Customer:
        """Sumar (o restar, si es negativo) a la deuda en una sola sentencia"""
        try:
            customer = self.get_customer(customer_id)
            self.db.query(Customer).filter(Customer.id == customer_id).update(
                {Customer.debt_amount: Customer.debt_amount + delta},
                synchronize_session=False
            )
            self.db.commit()
            self.db.refresh(customer)
            logger.info(f"Deuda de cliente {customer_id} ajustada en {delta}")
            return customer
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al ajustar deuda: {str(e)}", cause=e)

    def remove_credit(self, customer_id: int) -> Customer:
        try:
            customer = self.get_customer(customer_id)
            customer.has_credit = False
            customer.debt_amount = Decimal("0")
            customer.credit_date = None
            self.db.commit()
            self.db.refresh(customer)
            return customer
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al quitar crédito: {str(e)}", cause=e)
