from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, url_for

from ..common.responses import json_error, json_failure
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _leader_cards():
        return [
            {
                "id": l.leader_id,
                "name": l.display_name,
                "order": l.order,
                "is_active": l.is_active,
                "status": l.status.value,
            }
            for l in container.leaders_repo.list_all()
        ]

    @app.route("/kiosk", methods=["GET"], endpoint="kiosk")
    def kiosk():
        container.midnight_sweep.run()
        return render_template("kiosk.html", leaders=_leader_cards(), active_page="kiosk")

    @app.route("/kiosk/<leader_id>/clock-in", methods=["POST"], endpoint="kiosk_clock_in")
    def kiosk_clock_in(leader_id: str):
        try:
            result = container.clock_service.clock_in(leader_id)
            flash(result.message, "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("Clock-in failed for %s", leader_id)
            flash("System error while clocking in", "danger")
        return redirect(url_for("kiosk"))

    @app.route("/kiosk/<leader_id>/clock-out", methods=["POST"], endpoint="kiosk_clock_out")
    def kiosk_clock_out(leader_id: str):
        try:
            result = container.clock_service.clock_out(leader_id)
            flash(result.message, "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("Clock-out failed for %s", leader_id)
            flash("System error while clocking out", "danger")
        return redirect(url_for("kiosk"))

    @app.route("/api/leaders", methods=["GET"], endpoint="api_leaders")
    def api_leaders():
        return jsonify({"success": True, "leaders": _leader_cards()})

    @app.route("/api/leaders/<leader_id>/clock-in", methods=["POST"], endpoint="api_clock_in")
    def api_clock_in(leader_id: str):
        try:
            result = container.clock_service.clock_in(leader_id)
        except DomainError as e:
            return json_error(e)
        except Exception:
            logger.exception("Clock-in failed for %s", leader_id)
            return json_failure("System error while clocking in")
        return jsonify(
            {
                "success": True,
                "message": result.message,
                "session_id": result.session.session_id,
                "check_in_time": result.session.check_in_time.isoformat(),
            }
        ), 200

    @app.route("/api/leaders/<leader_id>/clock-out", methods=["POST"], endpoint="api_clock_out")
    def api_clock_out(leader_id: str):
        try:
            result = container.clock_service.clock_out(leader_id)
        except DomainError as e:
            return json_error(e)
        except Exception:
            logger.exception("Clock-out failed for %s", leader_id)
            return json_failure("System error while clocking out")
        return jsonify(
            {
                "success": True,
                "message": result.message,
                "session_id": result.session.session_id,
                "duration_minutes": result.session.duration_minutes,
            }
        ), 200
