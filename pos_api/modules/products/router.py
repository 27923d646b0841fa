from fastapi import APIRouter, Query, Path
from typing import Optional

from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.modules.products.service import ProductService
from pos_api.modules.products.schemas import (
    ProductLookupOut, ProductLookupResult, InventoryProductOut, InventoryList,
    ProductCreate, ProductCreated, PriceUpdate, ProductIdentityUpdate
)
from pos_api.modules.auth.schemas import MessageResponse

product_router = APIRouter(tags=["Products"])


@product_router.get("/productos/buscar", response_model=ProductLookupResult)
def lookup_product(
    db: db_dependency,
    current_user: user_dependency,
    codigo: Optional[str] = Query(None, description="Código de barras")
):
    """Buscar producto por código de barras"""
    product = ProductService(db).lookup_by_barcode(codigo)
    if product is None:
        return ProductLookupResult(found=False)
    return ProductLookupResult(found=True, product=ProductLookupOut.model_validate(product))


@product_router.get("/inventario/productos", response_model=InventoryList)
def list_inventory(db: db_dependency, current_user: user_dependency):
    """Listado general de inventario con nivel de alerta (agotado/bajo/normal)"""
    products = ProductService(db).list_inventory()
    return InventoryList(products=[
        InventoryProductOut(
            id=p.id,
            barcode=p.barcode,
            name=p.name,
            description=p.description,
            category=p.category.name if p.category else None,
            stock=p.stock,
            stock_minimum=p.stock_minimum,
            price=p.price,
            wholesale_price=p.wholesale_price,
            is_active=p.is_active,
            alert_level=p.alert_level
        )
        for p in products
    ])


@product_router.post("/inventario/productos", response_model=ProductCreated, status_code=201)
def create_product(data: ProductCreate, db: db_dependency, current_user: user_dependency):
    """
    Crear producto.

    - **stock**: existencia inicial; si es mayor a cero se registra un movimiento
      ENTRADA "Ingreso inicial" en la misma transacción
    """
    product = ProductService(db).create_product(data, current_user.id)
    return ProductCreated(message="Producto creado correctamente", product_id=product.id)


@product_router.patch("/inventario/precio/{product_id}", response_model=MessageResponse)
def update_price(
    data: PriceUpdate,
    db: db_dependency,
    current_user: user_dependency,
    product_id: int = Path(..., description="ID del producto")
):
    ProductService(db).update_price(product_id, data)
    return MessageResponse(message="Precio actualizado correctamente")


@product_router.patch("/inventario/productos/{product_id}", response_model=MessageResponse)
def update_product(
    data: ProductIdentityUpdate,
    db: db_dependency,
    current_user: user_dependency,
    product_id: int = Path(..., description="ID del producto")
):
    """Editar nombre y código de barras"""
    ProductService(db).update_identity(product_id, data)
    return MessageResponse(message="Producto actualizado correctamente")


@product_router.delete("/inventario/productos/{product_id}", response_model=MessageResponse)
def delete_product(
    db: db_dependency,
    current_user: user_dependency,
    product_id: int = Path(..., description="ID del producto")
):
    """Eliminar producto y sus dependencias (no aplica si tiene ventas)"""
    ProductService(db).delete_product(product_id)
    return MessageResponse(message="Producto eliminado definitivamente")
