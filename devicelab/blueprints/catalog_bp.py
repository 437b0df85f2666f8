"""
Device / Browser catalog

Blueprint: catalog_bp
Prefix: /api

Endpoints:
    GET  /devices   — Active devices with their active-browser pairings
    POST /devices   — Create device
    GET  /browsers  — Active browsers with their active-device pairings
    POST /browsers  — Create browser
"""

from flask import Blueprint, jsonify, request

from devicelab.blueprints import register_error_handlers
from devicelab.services import catalog_service

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")
register_error_handlers(catalog_bp)


@catalog_bp.route("/devices", methods=["GET"])
def list_devices():
    return jsonify(catalog_service.list_devices()), 200


@catalog_bp.route("/devices", methods=["POST"])
def create_device():
    data = request.get_json(silent=True) or {}
    return jsonify(catalog_service.create_device(data)), 201


@catalog_bp.route("/browsers", methods=["GET"])
def list_browsers():
    return jsonify(catalog_service.list_browsers()), 200


@catalog_bp.route("/browsers", methods=["POST"])
def create_browser():
    data = request.get_json(silent=True) or {}
    return jsonify(catalog_service.create_browser(data)), 201
