"""
Mobile app uploads

Blueprint: upload_bp

Endpoints:
    POST /api/upload-app          — multipart: appFile, deviceId, userId
    GET  /uploads/apps/<name>     — Download a stored artifact
"""

from flask import Blueprint, jsonify, request, send_from_directory

from devicelab.blueprints import register_error_handlers
from devicelab.services.upload_service import app_upload_dir, submit_app_upload
from devicelab.utils.helpers import parse_id

upload_bp = Blueprint("uploads", __name__)
register_error_handlers(upload_bp)


def _form_value(*names):
    for name in names:
        value = request.form.get(name)
        if value:
            return value
    return None


@upload_bp.route("/api/upload-app", methods=["POST"])
def upload_app():
    """Validate and store an .apk/.aab, then create a CREATED session for it."""
    app_file = request.files.get("appFile") or request.files.get("app_file")
    device_id = parse_id(_form_value("deviceId", "device_id"), "deviceId")
    user_id = parse_id(_form_value("userId", "user_id"), "userId")

    result = submit_app_upload(app_file, device_id=device_id, user_id=user_id)
    return jsonify(result), 201


@upload_bp.route("/uploads/apps/<path:filename>", methods=["GET"])
def download_app(filename):
    return send_from_directory(app_upload_dir(), filename, as_attachment=True)
