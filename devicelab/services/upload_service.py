"""
Mobile app upload service.

Accepts an Android artifact, stores it under a random name and creates a
CREATED session pointing at it.

Flow (all checks run before anything touches the disk):
    1. required fields present            → ValidationError
    2. validate_app_upload(): size, extension, MIME (advisory)
    3. device exists / has a pairing      → NotFoundError / ValidationError
    4. write <UPLOAD_FOLDER>/apps/<uuid4 hex><ext>   → StorageError on failure
    5. create the session; the stored file is removed if that fails
"""

import logging
import os
import uuid
from dataclasses import dataclass, field

from flask import current_app

from devicelab.core.exceptions import StorageError, ValidationError
from devicelab.middleware.logging_config import lab_extra
from devicelab.models import db
from devicelab.services.catalog_service import first_pairing_for_device
from devicelab.services.session_service import create_session
from devicelab.utils.helpers import commit_or_rollback

logger = logging.getLogger(__name__)

MAX_APP_BYTES = 100 * 1024 * 1024  # 100 MiB

APP_EXTENSIONS = {
    ".apk": "ANDROID_APK",
    ".aab": "ANDROID_AAB",
}

EXPECTED_MIME_TYPES = {
    "application/vnd.android.package-archive",
    "application/octet-stream",
    "application/x-zip-compressed",
}

PUBLIC_APP_PREFIX = "/uploads/apps"


@dataclass
class UploadValidation:
    """Outcome of validate_app_upload(). ``errors`` block, ``warnings`` do not."""

    extension: str = ""
    app_type: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def validate_app_upload(
    filename: str,
    size: int,
    mimetype: str | None = None,
    max_bytes: int = MAX_APP_BYTES,
) -> UploadValidation:
    """Check an app artifact before it is stored.

    Args:
        filename: Client-supplied file name; only its extension is used.
        size: Artifact size in bytes.
        mimetype: Client-declared content type. Unexpected values only warn.
        max_bytes: Size ceiling (inclusive).

    Returns:
        UploadValidation with extension, derived app_type, errors and warnings.
    """
    result = UploadValidation()
    result.extension = os.path.splitext(filename or "")[1].lower()

    if size > max_bytes:
        result.errors.append(
            f"File too large: {size} bytes (max: {max_bytes // (1024 * 1024)}MB)"
        )

    result.app_type = APP_EXTENSIONS.get(result.extension)
    if result.app_type is None:
        result.errors.append("Invalid file type. Only .apk and .aab files are supported")

    if mimetype and mimetype not in EXPECTED_MIME_TYPES:
        result.warnings.append(f"Unexpected MIME type: {mimetype}")

    return result


def _stream_size(file_storage) -> int:
    stream = file_storage.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def app_upload_dir() -> str:
    return os.path.join(current_app.config["UPLOAD_FOLDER"], "apps")


def store_artifact(file_storage, extension: str) -> tuple[str, str]:
    """Write the artifact under a random 128-bit name.

    Returns:
        (stored file name, absolute disk path)

    Raises:
        StorageError: If the directory or file cannot be written.
    """
    stored_name = f"{uuid.uuid4().hex}{extension}"
    target_dir = app_upload_dir()
    disk_path = os.path.join(target_dir, stored_name)
    try:
        os.makedirs(target_dir, exist_ok=True)
        file_storage.save(disk_path)
    except OSError as exc:
        logger.exception("Failed to store app artifact at %s", disk_path)
        raise StorageError("Failed to store uploaded app") from exc
    return stored_name, disk_path


def _discard(disk_path: str) -> None:
    try:
        os.remove(disk_path)
    except OSError:
        logger.warning("Could not remove orphaned artifact %s", disk_path)


def submit_app_upload(file_storage, device_id: int | None, user_id: int | None) -> dict:
    """Validate, store and register an uploaded app.

    Returns:
        ``{"session": <expanded session>, "file_path": <public path>, "message": ...}``
    """
    if file_storage is None or not file_storage.filename or device_id is None or user_id is None:
        raise ValidationError("Missing required fields")

    check = validate_app_upload(
        file_storage.filename,
        _stream_size(file_storage),
        file_storage.mimetype,
        max_bytes=current_app.config.get("APP_UPLOAD_MAX_BYTES", MAX_APP_BYTES),
    )
    for warning in check.warnings:
        logger.warning("App upload %s: %s", file_storage.filename, warning,
                       extra=lab_extra(device_id=device_id))
    if not check.ok:
        raise ValidationError(check.errors[0], details={"errors": check.errors})

    pairing = first_pairing_for_device(device_id)

    stored_name, disk_path = store_artifact(file_storage, check.extension)
    public_path = f"{PUBLIC_APP_PREFIX}/{stored_name}"

    try:
        session = create_session(
            user_id=user_id,
            browser_device_id=pairing.id,
            app_path=public_path,
            app_type=check.app_type,
            commit=False,
        )
        commit_or_rollback()
    except Exception:
        db.session.rollback()
        _discard(disk_path)
        raise

    logger.info(
        "App uploaded session=%s device=%s app_type=%s path=%s",
        session.id, device_id, check.app_type, public_path,
        extra=lab_extra(session, app_type=check.app_type),
    )
    return {
        "session": session.to_dict(),
        "file_path": public_path,
        "message": "Android app uploaded successfully",
    }
