"""
Test sessions

Blueprint: session_bp
Prefix: /api

Endpoints:
  Sessions:
    GET    /sessions                    — All sessions, newest first (?status=, ?user_id=)
    POST   /sessions                    — Create session (url XOR app_path)
    GET    /sessions/<sid>              — One session with screenshots/logs/network requests
    DELETE /sessions/<sid>              — Delete session and its children

  Lifecycle:
    POST   /sessions/<sid>/start        — CREATED → RUNNING
    POST   /sessions/<sid>/stop         — → COMPLETED
    POST   /sessions/<sid>/fail         — → FAILED (body: reason)
    POST   /sessions/<sid>/cancel       — → CANCELLED

  Attachments & device actions:
    POST   /sessions/<sid>/logs         — Append a log line
    POST   /sessions/<sid>/install-app  — Simulated app install
    POST   /sessions/<sid>/screenshot   — Placeholder screenshot
    GET    /sessions/<sid>/metrics      — Placeholder performance snapshot
"""

from flask import Blueprint, jsonify, request

from devicelab.blueprints import register_error_handlers
from devicelab.services import device_actions, session_service
from devicelab.utils.helpers import parse_id

session_bp = Blueprint("sessions", __name__, url_prefix="/api")
register_error_handlers(session_bp)


# ── Sessions ─────────────────────────────────────────────────────────────

@session_bp.route("/sessions", methods=["GET"])
def list_sessions():
    status = request.args.get("status", "") or None
    user_id = parse_id(request.args.get("user_id"), "user_id")
    return jsonify(session_service.list_sessions(status=status, user_id=user_id)), 200


@session_bp.route("/sessions", methods=["POST"])
def create_session():
    data = request.get_json(silent=True) or {}
    session = session_service.create_session(
        user_id=parse_id(data.get("user_id"), "user_id"),
        browser_device_id=parse_id(data.get("browser_device_id"), "browser_device_id"),
        url=data.get("url"),
        app_path=data.get("app_path"),
        app_type=data.get("app_type"),
    )
    return jsonify(session.to_dict()), 201


@session_bp.route("/sessions/<int:sid>", methods=["GET"])
def get_session(sid):
    return jsonify(session_service.get_session(sid)), 200


@session_bp.route("/sessions/<int:sid>", methods=["DELETE"])
def delete_session(sid):
    session_service.delete_session(sid)
    return jsonify({"message": "Session deleted successfully"}), 200


# ── Lifecycle ────────────────────────────────────────────────────────────

@session_bp.route("/sessions/<int:sid>/start", methods=["POST"])
def start_session(sid):
    return jsonify(session_service.start_session(sid)), 200


@session_bp.route("/sessions/<int:sid>/stop", methods=["POST"])
def stop_session(sid):
    return jsonify(session_service.stop_session(sid)), 200


@session_bp.route("/sessions/<int:sid>/fail", methods=["POST"])
def fail_session(sid):
    data = request.get_json(silent=True) or {}
    return jsonify(session_service.fail_session(sid, reason=data.get("reason"))), 200


@session_bp.route("/sessions/<int:sid>/cancel", methods=["POST"])
def cancel_session(sid):
    return jsonify(session_service.cancel_session(sid)), 200


# ── Attachments & device actions ─────────────────────────────────────────

@session_bp.route("/sessions/<int:sid>/logs", methods=["POST"])
def append_log(sid):
    data = request.get_json(silent=True) or {}
    log = session_service.append_log(
        sid,
        level=data.get("level", "INFO"),
        message=data.get("message"),
        metadata=data.get("metadata"),
    )
    return jsonify(log), 201


@session_bp.route("/sessions/<int:sid>/install-app", methods=["POST"])
def install_app(sid):
    return jsonify(device_actions.install_app(sid)), 200


@session_bp.route("/sessions/<int:sid>/screenshot", methods=["POST"])
def take_screenshot(sid):
    return jsonify(device_actions.take_screenshot(sid)), 200


@session_bp.route("/sessions/<int:sid>/metrics", methods=["GET"])
def session_metrics(sid):
    return jsonify(device_actions.poll_metrics(sid)), 200
