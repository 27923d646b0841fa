"""
Servicio del catálogo de productos.

Las operaciones de varias sentencias (alta con ingreso inicial, baja con
limpieza de dependencias) se ejecutan en una sola transacción.
"""
from typing import List, Optional
from decimal import Decimal
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from pos_api.common.exceptions import (
    POSError, ValidationError, NotFoundError, ConflictError, StorageError
)
from pos_api.modules.products.models import (
    Product, InventoryMovement, InventoryLog, InventoryAlert, MovementType
)
from pos_api.modules.products.schemas import ProductCreate, PriceUpdate, ProductIdentityUpdate
from pos_api.modules.inventory.service import StockLedger
from pos_api.modules.sales.models import SaleDetail

logger = logging.getLogger(__name__)


class ProductService:
    """Service for product catalog operations."""

    def __init__(self, db: Session):
        self.db = db

    def lookup_by_barcode(self, barcode: Optional[str]) -> Optional[Product]:
        if not barcode:
            raise ValidationError("Debe enviar un código de barra")
        return self.db.query(Product).filter(Product.barcode == barcode).first()

    def list_inventory(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.name.asc()).all()

    def get_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Producto no encontrado")
        return product

    def create_product(self, data: ProductCreate, user_id: Optional[int]) -> Product:
        """Crear producto; si trae stock inicial se registra como ENTRADA en la misma transacción"""
        try:
            if self.db.query(Product).filter(Product.barcode == data.barcode).first():
                raise ConflictError("El código de barras ya está en uso")

            product = Product(
                barcode=data.barcode,
                name=data.name,
                description=data.description or "",
                category_id=data.category_id,
                stock=0,
                stock_minimum=data.stock_minimum,
                price=data.price,
                wholesale_price=data.wholesale_price,
                is_active=True
            )
            self.db.add(product)
            self.db.flush()

            if data.stock > 0:
                StockLedger(self.db).record_movement(
                    product.id, MovementType.ENTRADA, data.stock, user_id, "Ingreso inicial"
                )

            self.db.commit()
            self.db.refresh(product)
            logger.info(f"Producto creado {product.id} ({product.barcode})")
            return product

        except POSError:
            self.db.rollback()
            raise
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("El código de barras ya está en uso")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al crear producto: {str(e)}", cause=e)

    def update_price(self, product_id: int, data: PriceUpdate) -> Product:
        try:
            product = self.get_product(product_id)
            product.price = data.price
            product.wholesale_price = data.wholesale_price or Decimal("0")
            self.db.commit()
            self.db.refresh(product)
            return product
        except POSError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al actualizar precio: {str(e)}", cause=e)

    def update_identity(self, product_id: int, data: ProductIdentityUpdate) -> Product:
        """Editar nombre y código de barras (el código debe seguir siendo único)"""
        try:
            product = self.get_product(product_id)

            duplicate = self.db.query(Product.id).filter(
                Product.barcode == data.barcode,
                Product.id != product_id
            ).first()
            if duplicate:
                raise ConflictError("El código de barras ya está en uso")

            product.barcode = data.barcode
            product.name = data.name
            self.db.commit()
            self.db.refresh(product)
            return product
        except POSError:
            raise
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("El código de barras ya está en uso")
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al actualizar producto: {str(e)}", cause=e)

    def delete_product(self, product_id: int) -> bool:
        """Eliminar definitivamente un producto sin ventas registradas"""
        try:
            product = self.get_product(product_id)

            has_sales = self.db.query(SaleDetail.id).filter(
                SaleDetail.product_id == product_id
            ).first()
            if has_sales:
                raise ConflictError("No se puede eliminar un producto con ventas registradas")

            self.db.query(InventoryMovement).filter(InventoryMovement.product_id == product_id).delete()
            self.db.query(InventoryAlert).filter(InventoryAlert.product_id == product_id).delete()
            self.db.query(InventoryLog).filter(InventoryLog.product_id == product_id).delete()
            self.db.delete(product)
            self.db.commit()

            logger.info(f"Producto {product_id} eliminado definitivamente")
            return True

        except POSError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error al eliminar producto: {str(e)}", cause=e)
