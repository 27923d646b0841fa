from fastapi import Depends, Request
from typing import Annotated
from pos_api.modules.sales.storage import InvoiceStorage


def get_invoice_storage(request: Request) -> InvoiceStorage:
    return request.app.state.invoice_storage


invoice_storage_dependency = Annotated[InvoiceStorage, Depends(get_invoice_storage)]
