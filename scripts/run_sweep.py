"""Run the midnight sweep once.

Schedule it right after midnight (e.g. cron ``1 0 * * *``); it is safe to run
any number of times.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.office_hours.office_hours.common.logging_setup import configure_logging
from src.office_hours.office_hours.container import build_container


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), backend="mysql")
    result = container.midnight_sweep.run()

    print(
        f"OK: Sweep at {result.midnight:%Y-%m-%d %H:%M} closed {result.closed_count} session(s), "
        f"{len(result.inconsistent)} inconsistent leader(s)"
    )
    if result.inconsistent:
        print("Inconsistent: " + ", ".join(result.inconsistent))


if __name__ == "__main__":
    main()
