"""Example: use the service layer without Flask.

Controllers are a thin layer; the clock-in rules live in the services.
"""

from datetime import datetime

from src.office_hours.office_hours.container import build_container


def main():
    container = build_container(backend="memory")
    container.admin_service.seed_leaders()

    container.clock_service.clock_in("pres", now=datetime(2026, 2, 2, 9, 0))
    container.clock_service.clock_out("pres", now=datetime(2026, 2, 2, 11, 30))

    view = container.dashboard_service.build(now=datetime(2026, 2, 2, 12, 0))
    for row in view.totals[:3]:
        print(row.name, row.today, row.week, row.status)


if __name__ == "__main__":
    main()
