#!/usr/bin/env python
"""
Script helper para migraciones de base de datos con Alembic.

Uso:
    python scripts/migrate.py upgrade          # Aplicar migraciones pendientes
    python scripts/migrate.py downgrade        # Revertir ultima migracion
    python scripts/migrate.py downgrade -2     # Revertir 2 migraciones
    python scripts/migrate.py current          # Ver version actual
    python scripts/migrate.py history          # Ver historial de migraciones

La URL de la base se toma de la configuracion (.env / variables de entorno),
igual que al arrancar main.py.
"""
import sys
from pathlib import Path

from alembic import command
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv(PROJECT_ROOT / ".env", override=False)

from tariffs_sync.core.config import get_settings  # noqa: E402
from tariffs_sync.infrastructure.database.migrations import build_alembic_config  # noqa: E402


def _config():
    return build_alembic_config(get_settings().effective_database_url)


def upgrade(target: str = "head") -> int:
    """Aplica migraciones hasta el target especificado."""
    command.upgrade(_config(), target)
    return 0


def downgrade(target: str = "-1") -> int:
    """Revierte migraciones hasta el target especificado."""
    command.downgrade(_config(), target)
    return 0


def current() -> int:
    """Muestra la version actual de la base de datos."""
    command.current(_config(), verbose=True)
    return 0


def history() -> int:
    """Muestra el historial de migraciones."""
    command.history(_config(), verbose=True)
    return 0


def show_help():
    """Muestra ayuda de uso."""
    print(__doc__)


def main():
    """Funcion principal del script."""
    if len(sys.argv) < 2:
        show_help()
        sys.exit(1)

    cmd = sys.argv[1].lower()

    if cmd == "upgrade":
        target = sys.argv[2] if len(sys.argv) > 2 else "head"
        sys.exit(upgrade(target))

    elif cmd == "downgrade":
        target = sys.argv[2] if len(sys.argv) > 2 else "-1"
        sys.exit(downgrade(target))

    elif cmd == "current":
        sys.exit(current())

    elif cmd == "history":
        sys.exit(history())

    elif cmd in ["help", "-h", "--help"]:
        show_help()
        sys.exit(0)

    else:
        print(f"Comando desconocido: {cmd}")
        show_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
