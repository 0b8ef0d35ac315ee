from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from ..common.responses import json_error, json_failure
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _wants_json() -> bool:
        return request.is_json or request.accept_mimetypes.best == "application/json"

    def _respond(message: str, payload: dict):
        if _wants_json():
            return jsonify({"success": True, "message": message, **payload}), 200
        flash(message, "success")
        return redirect(url_for("admin"))

    def _fail(error: Exception, what: str):
        if isinstance(error, DomainError):
            if _wants_json():
                return json_error(error)
            flash(str(error), "warning")
            return redirect(url_for("admin"))

        logger.exception("Admin %s failed", what)
        if _wants_json():
            return json_failure(f"System error during {what}")
        flash(f"System error during {what}", "danger")
        return redirect(url_for("admin"))

    @app.route("/admin", methods=["GET"], endpoint="admin")
    def admin():
        return render_template("admin.html", active_page="admin")

    @app.route("/admin/seed", methods=["POST"], endpoint="admin_seed")
    def admin_seed():
        try:
            count = container.admin_service.seed_leaders()
        except Exception as e:
            return _fail(e, "seed")
        return _respond(f"Seed done. Added {count} leaders.", {"leaders_seeded": count})

    @app.route("/admin/reset", methods=["POST"], endpoint="admin_reset")
    def admin_reset():
        try:
            result = container.admin_service.reset()
        except Exception as e:
            return _fail(e, "reset")
        return _respond(
            result.message,
            {"leaders_deleted": result.leaders_deleted, "sessions_deleted": result.sessions_deleted},
        )

    @app.route("/admin/sweep", methods=["POST"], endpoint="admin_sweep")
    def admin_sweep():
        try:
            result = container.midnight_sweep.run()
        except Exception as e:
            return _fail(e, "sweep")
        return _respond(
            f"Sweep done. Auto-closed {result.closed_count} session(s).",
            {
                "closed_session_ids": [s.session_id for s in result.closed],
                "inconsistent_leader_ids": list(result.inconsistent),
            },
        )
