from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import logging

from pos_api.core.config import settings
from pos_api.database.database import Database
from pos_api.common.exceptions import POSError
from pos_api.common.middleware import SecurityHeadersMiddleware, RequestLogMiddleware
from pos_api.modules.sales.storage import InvoiceStorage, build_invoice_storage

# Import routers
from pos_api.modules.auth.router import auth_router
from pos_api.modules.products.router import product_router
from pos_api.modules.inventory.router import inventory_router
from pos_api.modules.services.router import services_router
from pos_api.modules.sales.router import sales_router
from pos_api.modules.pos.routers import cash_drawer_router
from pos_api.modules.customers.router import customers_router
from pos_api.modules.expenses.router import expenses_router
from pos_api.modules.reports.router import reports_router

API_VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _error_response(status_code: int, message) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return "; ".join(messages) or "Datos inválidos"


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(POSError)
    async def pos_error_handler(request: Request, exc: POSError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.url.path}: {exc}")
        return _error_response(500, "Error de base de datos")


def create_app(database: Optional[Database] = None,
               invoice_storage: Optional[InvoiceStorage] = None) -> FastAPI:
    """
    Construir la aplicación.

    - **database**: almacén relacional; por defecto el de settings.database_url
    - **invoice_storage**: destino de facturas; por defecto según INVOICE_STORAGE
    """
    app = FastAPI(
        title="POS API",
        description="Backend de punto de venta: caja, inventario, ventas y reportes",
        version=API_VERSION,
        docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
    )

    app.state.database = database or Database(settings.database_url)
    app.state.invoice_storage = invoice_storage or build_invoice_storage(settings)

    # Add middleware (order matters!)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    app.include_router(product_router, prefix="/api")
    app.include_router(inventory_router, prefix="/api")
    app.include_router(services_router, prefix="/api")
    app.include_router(sales_router, prefix="/api")
    app.include_router(cash_drawer_router, prefix="/api")
    app.include_router(customers_router, prefix="/api")
    app.include_router(expenses_router, prefix="/api")
    app.include_router(reports_router, prefix="/api")

    @app.get("/")
    def read_root():
        return {
            "ok": True,
            "message": "POS API is running",
            "version": API_VERSION,
            "environment": settings.ENVIRONMENT
        }

    @app.get("/health")
    def health_check(request: Request):
        try:
            request.app.state.database.ping()
        except SQLAlchemyError as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"ok": False, "status": "unhealthy", "error": "Base de datos no disponible"}
            )
        return {"ok": True, "status": "healthy", "environment": settings.ENVIRONMENT}

    @app.on_event("startup")
    def startup_event():
        logger.info("POS API starting up...")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Debug mode: {settings.DEBUG}")

        # Create database tables (only for development - use migrations in production)
        if settings.ENVIRONMENT == "development":
            app.state.database.create_all()

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.database.dispose()

    return app


app = create_app()
