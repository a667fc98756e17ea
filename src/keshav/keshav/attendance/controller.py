from __future__ import annotations

import inspect
from dataclasses import asdict
from functools import wraps

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.enums import PresenceFilter
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    FetchError,
    NotFoundError,
    SyncError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (FetchError, 502),
    (SyncError, 503),
)


def _error_response(exc: DomainError):
    status = next((code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind)), 400)
    return jsonify({"success": False, "message": str(exc)}), status


def register(app: Flask, container: Container) -> None:
    def _unauthorized():
        return jsonify({"success": False, "message": "Please log in to continue"}), 401

    def login_required(view):
        if inspect.iscoroutinefunction(view):

            @wraps(view)
            async def async_wrapper(*args, **kwargs):
                if "user_id" not in session:
                    return _unauthorized()
                return await view(*args, **kwargs)

            return async_wrapper

        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return _unauthorized()
            return view(*args, **kwargs)

        return wrapper

    def _profile():
        return container.auth_service.get_profile(session.get("user_id"))

    @app.route("/api/projects/<project_id>/events/<event_id>/attendance", endpoint="attendance_roster")
    @login_required
    async def attendance_roster(project_id: str, event_id: str):
        try:
            presence = PresenceFilter(request.args.get("filter", PresenceFilter.ALL.value))
        except ValueError:
            return jsonify({"success": False, "message": "Unknown filter"}), 400

        try:
            attendance = await container.attendance_service.open_session(
                _profile(), project_id=project_id, event_id=event_id
            )
        except DomainError as e:
            return _error_response(e)

        try:
            rows = attendance.list_members(
                search=request.args.get("search", ""),
                presence=presence,
                mandal_id=request.args.get("mandal_id") or None,
            )
            return jsonify(
                {
                    "success": True,
                    "event": {"id": attendance.event.event_id, "name": attendance.event.name},
                    "can_mark": attendance.can_mark,
                    "present": attendance.present_count,
                    "total": len(attendance.roster),
                    "members": [asdict(attendance.to_ui(r)) for r in rows],
                }
            )
        finally:
            attendance.close()

    @app.route(
        "/api/projects/<project_id>/events/<event_id>/attendance/<member_id>/toggle",
        methods=["POST"],
        endpoint="attendance_toggle",
    )
    @login_required
    async def attendance_toggle(project_id: str, event_id: str, member_id: str):
        attendance = None
        try:
            attendance = await container.attendance_service.open_session(
                _profile(), project_id=project_id, event_id=event_id
            )
            present = await attendance.mark(member_id)
            return jsonify({"success": True, "member_id": member_id, "present": present})
        except DomainError as e:
            return _error_response(e)
        finally:
            if attendance is not None:
                attendance.close()

    @app.route(
        "/api/projects/<project_id>/events/<event_id>/attendance/scan",
        methods=["POST"],
        endpoint="attendance_scan",
    )
    @login_required
    async def attendance_scan(project_id: str, event_id: str):
        data = request.get_json(silent=True) or {}
        attendance = None
        try:
            attendance = await container.attendance_service.open_session(
                _profile(), project_id=project_id, event_id=event_id
            )
            result = await attendance.scan(str(data.get("code", "")))
            payload = {
                "success": result.success,
                "message": result.message,
                "type": result.outcome.value,
                "member_id": result.member_id,
            }
            return jsonify(payload), 200 if result.success else 409
        except DomainError as e:
            return _error_response(e)
        finally:
            if attendance is not None:
                attendance.close()

    @app.route("/api/projects/<project_id>/events/<event_id>/summary", endpoint="attendance_summary")
    @login_required
    def attendance_summary(project_id: str, event_id: str):
        try:
            container.attendance_service.load_context(project_id, event_id)
            access = container.attendance_service.resolve_scope(_profile())
            summary = container.attendance_summary_service.summarize(
                access, project_id=project_id, event_id=event_id
            )
        except DomainError as e:
            return _error_response(e)
        except Exception:
            app.logger.exception("Summary failed for event %s", event_id)
            return jsonify({"success": False, "message": "Failed to load summary"}), 500

        return jsonify(
            {
                "success": True,
                "present": summary.present,
                "registered": summary.registered,
                "percent": summary.percent,
                "mandals": [
                    {
                        "id": row.mandal_id,
                        "name": row.mandal_name,
                        "registered": row.registered,
                        "present": row.present,
                        "percent": row.percent,
                    }
                    for row in summary.rows
                ],
            }
        )
