from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool
from fastapi import Request
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def import_models():
    """Registrar todos los modelos en el metadata (create_all y Alembic)"""
    import pos_api.modules.auth.models
    import pos_api.modules.products.models
    import pos_api.modules.services.models
    import pos_api.modules.sales.models
    import pos_api.modules.pos.models
    import pos_api.modules.customers.models
    import pos_api.modules.expenses.models


class Database:
    """
    Manejador explícito del almacén relacional.

    Lo crea el punto de entrada del proceso (create_app, tareas de Celery)
    y se inyecta a los servicios a través de las sesiones que entrega.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        if url.startswith("sqlite"):
            # Una sola conexión compartida para que la base en memoria sobreviva entre sesiones
            self.engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        else:
            self.engine = create_engine(
                url,
                pool_pre_ping=True,
                pool_size=10,
                max_overflow=20,
                echo=echo
            )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self):
        """Crear tablas (solo desarrollo y pruebas)."""
        import_models()
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request):
    """Genera una sesión por request a partir del Database registrado en la app."""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
