"""
Device Lab
Blueprint registry and shared error handlers.
"""

import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from devicelab.core.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from devicelab.models import db

logger = logging.getLogger(__name__)


def register_error_handlers(bp):
    """Map the service exception hierarchy to ``{"error": ...}`` JSON responses.

    NotFoundError → 404, ValidationError → 400, ConflictError → 409,
    StorageError → 500, anything else → 500 with a generic message.
    """

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        logger.info("Not found on %s: %s", request.endpoint, error)
        return jsonify({"error": error.public_message}), 404

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return jsonify({"error": str(error)}), 400

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return jsonify({"error": str(error)}), 409

    @bp.errorhandler(StorageError)
    def _handle_storage(error: StorageError):
        return jsonify({"error": str(error)}), 500

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description or error.name}), error.code
        db.session.rollback()
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return jsonify({"error": "Internal server error"}), 500

    return bp
