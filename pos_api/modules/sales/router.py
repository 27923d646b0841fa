from fastapi import APIRouter, Path, Response

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.dependencies.storageDependencies import invoice_storage_dependency
from pos_api.modules.sales.service import SaleService
from pos_api.modules.sales.schemas import SaleCreate, SaleRegistered, SaleOut, SaleResponse

sales_router = APIRouter(prefix="/ventas", tags=["Sales"])


@sales_router.post("/registrar", response_model=SaleRegistered, status_code=201)
def register_sale(
    data: SaleCreate,
    db: db_dependency,
    current_user: user_dependency,
    storage: invoice_storage_dependency
):
    """
    Registrar venta y generar factura.

    - Las líneas con ID "S{id}" son servicios y no descuentan inventario
    - Si el PDF no se puede guardar la venta queda registrada con factura
      pendiente y se responde error 500
    """
    sale = SaleService(db, storage).register_sale(data, current_user)
    return SaleRegistered(
        message="Venta registrada correctamente",
        invoice_number=sale.invoice_number,
        file_name=sale.invoice_file
    )


@sales_router.get("/{invoice_number}", response_model=SaleResponse)
def get_sale(
    db: db_dependency,
    current_user: user_dependency,
    storage: invoice_storage_dependency,
    invoice_number: int = Path(..., description="Número de factura")
):
    sale = SaleService(db, storage).get_sale(invoice_number)
    return SaleResponse(sale=SaleOut.model_validate(sale))


@sales_router.post("/{invoice_number}/factura", response_model=SaleRegistered)
def regenerate_invoice(
    db: db_dependency,
    current_user: user_dependency,
    storage: invoice_storage_dependency,
    invoice_number: int = Path(..., description="Número de factura")
):
    """Regenerar el PDF de una factura pendiente (o volver a escribirlo)"""
    sale = SaleService(db, storage).regenerate_invoice(invoice_number)
    return SaleRegistered(
        message="Factura generada correctamente",
        invoice_number=sale.invoice_number,
        file_name=sale.invoice_file
    )


@sales_router.get("/{invoice_number}/factura")
def download_invoice(
    db: db_dependency,
    current_user: user_dependency,
    storage: invoice_storage_dependency,
    invoice_number: int = Path(..., description="Número de factura")
):
    file_name, content = SaleService(db, storage).load_invoice(invoice_number)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{file_name}"'}
    )
