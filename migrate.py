#!/usr/bin/env python3
"""
Script para gestionar las migraciones del esquema de albaranes con Alembic.

La URL de la base de datos sale de app.core.config.settings (POSTGRES_* o
DATABASE_URL).
"""
import sys
from pathlib import Path

from alembic.config import Config
from alembic import command

root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from app.core.config import settings


def get_alembic_config():
    """Obtener configuración de Alembic apuntando a la base de datos configurada."""
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    command.revision(get_alembic_config(), autogenerate=True, message=message)
    print(f"Migración creada: {message}")


def run_migrations(target: str = "head"):
    command.upgrade(get_alembic_config(), target)
    print(f"Base de datos migrada a {target}")


def rollback_migration(target: str = "-1"):
    command.downgrade(get_alembic_config(), target)
    print(f"Rollback ejecutado hasta {target}")


def print_sql(target: str = "head"):
    """Mostrar el SQL de la migración sin ejecutarlo (modo offline)."""
    command.upgrade(get_alembic_config(), target, sql=True)


def stamp(target: str = "head"):
    """Marcar una base de datos existente (p.ej. creada con create_all) como migrada."""
    command.stamp(get_alembic_config(), target)
    print(f"Base de datos marcada en {target}")


ACTIONS = {
    "upgrade": run_migrations,
    "downgrade": rollback_migration,
    "sql": print_sql,
    "stamp": stamp,
    "history": lambda: command.history(get_alembic_config()),
    "current": lambda: command.current(get_alembic_config()),
}

USAGE = """Uso:
  python migrate.py create 'message'   # Crear migración (autogenerate)
  python migrate.py upgrade [rev]      # Ejecutar migraciones (por defecto head)
  python migrate.py downgrade [rev]    # Rollback (por defecto -1)
  python migrate.py sql [rev]          # Ver el SQL sin ejecutarlo
  python migrate.py stamp [rev]        # Marcar revisión sin ejecutar
  python migrate.py history            # Ver historial
  python migrate.py current            # Ver actual"""


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    action, args = sys.argv[1], sys.argv[2:]

    if action == "create":
        if not args:
            print("Error: Se requiere un mensaje para la migración")
            sys.exit(1)
        create_migration(args[0])
    elif action in ACTIONS:
        ACTIONS[action](*args[:1])
    else:
        print(f"Acción desconocida: {action}")
        print(USAGE)
        sys.exit(1)
