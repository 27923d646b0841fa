#!/usr/bin/env python3
"""
Script para gestionar migraciones de la base del POS con Alembic.
"""
import sys
from pathlib import Path

from alembic.config import Config
from alembic import command

from pos_api.core.config import settings

root_dir = Path(__file__).parent


def get_alembic_config(database_url: str = None) -> Config:
    """Configuración de Alembic apuntando a la base de settings (o a la indicada)"""
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    command.revision(get_alembic_config(), autogenerate=True, message=message)
    print(f"Migración creada: {message}")


def run_migrations():
    command.upgrade(get_alembic_config(), "head")
    print("Migraciones ejecutadas exitosamente")


def rollback_migration():
    command.downgrade(get_alembic_config(), "-1")
    print("Rollback ejecutado exitosamente")


def show_history():
    command.history(get_alembic_config())


def show_current():
    command.current(get_alembic_config())


ACTIONS = {
    "upgrade": run_migrations,
    "downgrade": rollback_migration,
    "history": show_history,
    "current": show_current,
}


def main(argv):
    if len(argv) < 2:
        print("Uso:")
        print("  python migrate.py create 'mensaje'   # Crear migración")
        print("  python migrate.py upgrade            # Ejecutar migraciones")
        print("  python migrate.py downgrade          # Rollback")
        print("  python migrate.py history            # Ver historial")
        print("  python migrate.py current            # Ver actual")
        return 1

    action = argv[1]
    if action == "create":
        if len(argv) < 3:
            print("Error: Se requiere un mensaje para la migración")
            return 1
        create_migration(argv[2])
        return 0

    if action not in ACTIONS:
        print(f"Acción desconocida: {action}")
        return 1

    ACTIONS[action]()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
