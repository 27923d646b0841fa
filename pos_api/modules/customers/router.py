from fastapi import APIRouter, Path

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.modules.customers.service import CustomerService
from pos_api.modules.customers.schemas import (
    CreditCustomerCreate, CreditAssign, DebtAdjust,
    CreditCustomerOut, CreditCustomerList, CreditCustomerResponse
)

customers_router = APIRouter(prefix="/clientes", tags=["Customers"])


@customers_router.get("/credito", response_model=CreditCustomerList)
def list_credit_customers(db: db_dependency, current_user: user_dependency):
    """Clientes con crédito activo, del más reciente al más antiguo"""
    customers = CustomerService(db).list_credit_customers()
    return CreditCustomerList(customers=[CreditCustomerOut.model_validate(c) for c in customers])


@customers_router.post("/credito", response_model=CreditCustomerResponse, status_code=201)
def create_credit_customer(data: CreditCustomerCreate, db: db_dependency, current_user: user_dependency):
    customer = CustomerService(db).create_credit_customer(data)
    return CreditCustomerResponse(customer=CreditCustomerOut.model_validate(customer))


@customers_router.put("/{customer_id}/credito", response_model=CreditCustomerResponse)
def assign_credit(
    data: CreditAssign,
    db: db_dependency,
    current_user: user_dependency,
    customer_id: int = Path(..., description="ID del cliente")
):
    customer = CustomerService(db).assign_credit(customer_id, data.amount)
    return CreditCustomerResponse(customer=CreditCustomerOut.model_validate(customer))


@customers_router.put("/{customer_id}/deuda", response_model=CreditCustomerResponse)
def adjust_debt(
    data: DebtAdjust,
    db: db_dependency,
    current_user: user_dependency,
    customer_id: int = Path(..., description="ID del cliente")
):
    """Aumentar o disminuir deuda (**amount** puede ser negativo)"""
    customer = CustomerService(db).adjust_debt(customer_id, data.amount)
    return CreditCustomerResponse(customer=CreditCustomerOut.model_validate(customer))


@customers_router.put("/{customer_id}/quitar-credito", response_model=CreditCustomerResponse)
def remove_credit(
    db: db_dependency,
    current_user: user_dependency,
    customer_id: int = Path(..., description="ID del cliente")
):
    customer = CustomerService(db).remove_credit(customer_id)
    return CreditCustomerResponse(customer=CreditCustomerOut.model_validate(customer))
