from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.office_hours.office_hours.container import build_container
from src.office_hours.office_hours.database.connection import DBConfig


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    container = build_container(db_config=db_config, backend="mysql")
    count = container.admin_service.seed_leaders()

    print(f"OK: Seeded {count} leaders -> {DBConfig.from_mapping(db_config).describe()}")


if __name__ == "__main__":
    main()
