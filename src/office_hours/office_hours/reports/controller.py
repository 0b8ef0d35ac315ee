from __future__ import annotations

import csv
import io
import json
import logging
import time

from flask import Flask, Response, jsonify, render_template, stream_with_context

from ..common.responses import json_failure
from ..container import Container
from ..core.constants import DASHBOARD_TICK_SECONDS

logger = logging.getLogger(__name__)

CSV_FIELDS = ["leader_id", "leader", "today_minutes", "week_minutes", "today", "this_week", "status"]


def register(app: Flask, container: Container) -> None:
    @app.route("/dashboard", methods=["GET"], endpoint="dashboard")
    def dashboard():
        view = container.dashboard_service.build()
        return render_template("dashboard.html", view=view, active_page="dashboard")

    @app.route("/api/dashboard", methods=["GET"], endpoint="api_dashboard")
    def api_dashboard():
        try:
            view = container.dashboard_service.build()
        except Exception:
            logger.exception("Dashboard build failed")
            return json_failure("System error while building the dashboard")
        return jsonify({"success": True, **view.to_dict()})

    @app.route("/api/dashboard/stream", methods=["GET"], endpoint="api_dashboard_stream")
    def api_dashboard_stream():
        """Server-sent events: one dashboard snapshot per tick until the client leaves."""
        tick_seconds = float(app.config.get("DASHBOARD_TICK_SECONDS", DASHBOARD_TICK_SECONDS))
        live = container.live_dashboard()

        def generate():
            live.start()
            try:
                while True:
                    view = live.tick()
                    yield f"data: {json.dumps(view.to_dict())}\n\n"
                    time.sleep(tick_seconds)
            finally:
                # Runs on client disconnect (GeneratorExit) as well.
                live.stop()

        return Response(
            stream_with_context(generate()),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )

    @app.route("/dashboard/report.csv", methods=["GET"], endpoint="dashboard_report_csv")
    def dashboard_report_csv():
        view = container.dashboard_service.build()

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in view.csv_rows():
            writer.writerow(row)

        filename = f"office_hours_{view.generated_at.strftime('%Y%m%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
